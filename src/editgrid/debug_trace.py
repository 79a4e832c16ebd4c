"""Logging setup and timing helpers for editgrid.

The engine only logs through the "editgrid" logger; handlers are attached
by setup_debug_logging(), which the demo entry points call at startup.
Setting EDITGRID_DEBUG=1 (or calling with debug=True) prints DEBUG lines,
including "PERF:" timings of projections, sheet redraws and bulk commands.

Usage:
    from ..debug_trace import log_perf, logger, perf_timer

    logger.debug(f"delete_rows: skipping unknown row {key!r}")

    with perf_timer("project", row_count=len(base_rows)):
        view = build_view()

    @log_perf
    def modify_rows(self, ids, transform):
        ...
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

# Set to False to silence PERF timings even in debug mode
DEBUG_PERF = True

# Environment variable that turns on console debug output
DEBUG_ENV_VAR = "EDITGRID_DEBUG"

# Package logger; the library never configures handlers itself
logger = logging.getLogger("editgrid")


def debug_requested() -> bool:
    """Check whether debug output was requested through the environment."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in ("1", "true", "yes", "on")


def setup_debug_logging(debug: bool | None = None) -> None:
    """Configure logging for the package (console output).

    Call this once at startup from an entry point.

    Args:
        debug: Force debug mode on or off. None reads EDITGRID_DEBUG.
    """
    # Second call is a no-op
    if logger.handlers:
        return

    if debug is None:
        debug = debug_requested()

    if debug and sys.stdout is not None:
        logger.setLevel(logging.DEBUG)
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        # Rejected rows and observer failures still reach the root handlers
        logger.setLevel(logging.WARNING)


@contextmanager
def perf_timer(operation: str, row_count: int | None = None) -> Iterator[None]:
    """Log how long the wrapped block took, as a "PERF:" debug line.

    Args:
        operation: Label for the timed block, e.g. "project"
        row_count: Rows involved, added to the message when given

    Example:
        with perf_timer("populate_sheet", row_count=len(view)):
            sheet.set_sheet_data(cells)
    """
    if not DEBUG_PERF:
        yield
        return

    label = operation if row_count is None else f"{operation} ({row_count} rows)"
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.debug(f"PERF: {label} took {(time.perf_counter() - started) * 1000:.2f}ms")


def log_perf(func: Callable) -> Callable:
    """Time every call of a store command with perf_timer.

    Example:
        @log_perf
        def delete_rows(self, ids=None):
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        with perf_timer(func.__qualname__):
            return func(*args, **kwargs)

    return wrapper
