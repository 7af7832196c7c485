"""Tests for the run watchdog."""

from __future__ import annotations

import threading
import time

import pytest

from spexrun.runner.watchdog import RunWatchdog


class TestRunWatchdog:
    """Tests for RunWatchdog."""

    def test_disabled_with_zero_timeout(self) -> None:
        watchdog = RunWatchdog(0)

        with watchdog:
            time.sleep(0.01)

        assert not watchdog.enabled
        assert not watchdog.expired

    def test_cancelled_before_expiry(self) -> None:
        watchdog = RunWatchdog(5_000)

        with watchdog:
            pass
        time.sleep(0.01)

        assert not watchdog.expired

    def test_expiry_interrupts_main_thread(self) -> None:
        watchdog = RunWatchdog(50)

        with pytest.raises(KeyboardInterrupt):
            with watchdog:
                for _ in range(500):
                    time.sleep(0.01)

        assert watchdog.expired

    def test_fire_after_cancel_is_ignored(self) -> None:
        watchdog = RunWatchdog(5_000)

        with watchdog:
            pass
        watchdog._fire()
        time.sleep(0.01)

        assert not watchdog.expired

    def test_cancel_waits_for_inflight_fire(self) -> None:
        watchdog = RunWatchdog(5_000)
        watchdog._lock.acquire()
        cancelled = threading.Event()

        def cancel() -> None:
            watchdog.cancel()
            cancelled.set()

        worker = threading.Thread(target=cancel)
        worker.start()
        try:
            assert not cancelled.wait(0.05)
        finally:
            watchdog._lock.release()
        worker.join(1.0)

        assert cancelled.is_set()
        assert not watchdog.expired
