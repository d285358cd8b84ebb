"""Tests for PeriodicRefresher."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from magi.cache.scheduler import DEFAULT_INTERVAL_SECONDS, PeriodicRefresher


def test_default_interval_is_four_hours():
    assert DEFAULT_INTERVAL_SECONDS == 4 * 60 * 60


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PeriodicRefresher(MagicMock(), interval_seconds=0)


def test_runs_immediately_then_on_interval():
    calls = threading.Semaphore(0)
    manager = MagicMock()
    manager.refresh.side_effect = lambda: calls.release() or True

    refresher = PeriodicRefresher(manager, interval_seconds=0.01)
    refresher.start()
    try:
        for _ in range(3):
            assert calls.acquire(timeout=5)
    finally:
        refresher.stop(timeout=5)

    assert not refresher.running
    assert manager.refresh.call_count >= 3


def test_without_immediate_run_waits_for_interval():
    manager = MagicMock()
    refresher = PeriodicRefresher(manager, interval_seconds=60, run_immediately=False)
    refresher.start()
    refresher.stop(timeout=5)
    manager.refresh.assert_not_called()


def test_start_twice_keeps_one_thread():
    manager = MagicMock()
    refresher = PeriodicRefresher(manager, interval_seconds=60, run_immediately=False)
    refresher.start()
    first = refresher._thread
    refresher.start()
    assert refresher._thread is first
    refresher.stop(timeout=5)


def test_tick_logs_and_swallows_errors(caplog):
    manager = MagicMock()
    manager.refresh.side_effect = RuntimeError("boom")
    refresher = PeriodicRefresher(manager, interval_seconds=60)

    assert refresher.tick() is False
    assert "Error in scheduled cache refresh" in caplog.text
