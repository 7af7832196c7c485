"""Overall run timeout."""

from __future__ import annotations

import _thread
import logging
import signal
import threading

logger = logging.getLogger(__name__)


def _interrupt_main_thread() -> None:
    # A real SIGINT also wakes blocking sleeps and socket reads.
    handler = signal.getsignal(signal.SIGINT)
    if hasattr(signal, "pthread_kill") and handler is signal.default_int_handler:
        signal.pthread_kill(threading.main_thread().ident, signal.SIGINT)
    else:
        _thread.interrupt_main()


class RunWatchdog:
    """Interrupts the main thread when the run exceeds ``timeout_ms``.

    The interrupt arrives as KeyboardInterrupt in the main thread; the
    orchestrator checks ``expired`` to tell it apart from a real Ctrl+C.
    A timeout of 0 disables the watchdog. Once ``cancel()`` has returned
    the watchdog never fires, even if its timer was already due.
    """

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        self.expired = False
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def enabled(self) -> bool:
        return self.timeout_ms > 0

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                logger.debug("Run timer fired after cancel; ignoring")
                return
            self.expired = True
            logger.error(f"Run exceeded its {self.timeout_ms}ms timeout; interrupting")
            _interrupt_main_thread()

    def start(self) -> None:
        if not self.enabled or self._timer is not None:
            return
        self._timer = threading.Timer(self.timeout_ms / 1000.0, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __enter__(self) -> RunWatchdog:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel()
