"""Structural equality and cloning for schema-agnostic rows.

Rows are plain dicts whose values may nest further dicts, lists and tuples.
Equality compares values, never object identity, and ignores key order.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

Row = dict[str, Any]


def deep_equal(left: Any, right: Any) -> bool:
    """Recursively compare two values by structure.

    Mappings are equal when they have the same keys and equal values,
    regardless of key order. Lists and tuples compare element-wise and are
    interchangeable. A bool never equals a number, so toggling a flag from
    True to 1 still counts as a change.

    Args:
        left: First value.
        right: Second value.

    Returns:
        True if both values are structurally equal.
    """
    if left is right:
        return True

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right

    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(deep_equal(left[key], right[key]) for key in left)

    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))

    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return False

    return left == right


def clone_row(row: Mapping[str, Any]) -> Row:
    """Return a fully independent copy of a row.

    Nested containers are copied too, so mutating the clone can never reach
    the original.
    """
    return copy.deepcopy(dict(row))
