"""Tests for debug tracing helpers."""

import logging

import pytest

from editgrid import debug_trace
from editgrid.debug_trace import debug_requested, log_perf, perf_timer


class TestDebugRequested:
    """Tests for the environment switch."""

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_enabled(self, monkeypatch, value):
        """Truthy values turn debug output on."""
        monkeypatch.setenv(debug_trace.DEBUG_ENV_VAR, value)
        assert debug_requested()

    @pytest.mark.parametrize("value", ["", "0", "off"])
    def test_disabled(self, monkeypatch, value):
        """Anything else leaves it off."""
        monkeypatch.setenv(debug_trace.DEBUG_ENV_VAR, value)
        assert not debug_requested()


class TestPerfLogging:
    """Tests for perf_timer and log_perf."""

    def test_perf_timer_logs(self, caplog):
        """perf_timer logs the operation and row count."""
        with caplog.at_level(logging.DEBUG, logger="editgrid"):
            with perf_timer("project", row_count=3):
                pass
        assert "PERF: project (3 rows)" in caplog.text

    def test_log_perf_returns_result(self, caplog):
        """The decorator passes the return value through."""

        @log_perf
        def compute():
            return 42

        with caplog.at_level(logging.DEBUG, logger="editgrid"):
            assert compute() == 42
        assert "compute took" in caplog.text

    def test_perf_disabled(self, monkeypatch, caplog):
        """With DEBUG_PERF off nothing is logged."""
        monkeypatch.setattr(debug_trace, "DEBUG_PERF", False)
        with caplog.at_level(logging.DEBUG, logger="editgrid"):
            with perf_timer("project"):
                pass
        assert "PERF" not in caplog.text
