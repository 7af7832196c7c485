"""TCP readiness probing for the subject-under-test.

The probe only checks connect-then-close on ``(host, port)``: no payload is
sent or read.
"""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from typing import Any

from spexrun.errors import ReadinessError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000
DEFAULT_MAX_ATTEMPTS = 30


def can_connect(host: str, port: int, timeout: float = 1.0) -> bool:
    """Single connect attempt; True if something accepted the connection."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ReadinessProber:
    """Polls a TCP endpoint until it accepts connections or the budget runs out.

    Attempts are spaced ``interval_ms`` apart; there is no sleep after the
    last failed attempt.

    Example:
        >>> prober = ReadinessProber("localhost", 9999, interval_ms=10, max_attempts=3)
        >>> prober.wait()  # raises ReadinessError if nothing listens
    """

    def __init__(
        self,
        host: str,
        port: int,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        connect_timeout: float = 1.0,
        connect: Callable[..., Any] = socket.create_connection,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.host = host
        self.port = port
        self.interval_ms = interval_ms
        self.max_attempts = max_attempts
        self.connect_timeout = connect_timeout
        self._connect = connect
        self._sleep = sleep
        self.attempts = 0

    def attempt(self) -> bool:
        """One connect-then-close attempt."""
        self.attempts += 1
        conn = self._connect((self.host, self.port), timeout=self.connect_timeout)
        conn.close()
        return True

    def wait(self) -> int:
        """Block until the endpoint is reachable.

        Returns:
            The number of attempts it took.

        Raises:
            ReadinessError: After ``max_attempts`` failed connects.
        """
        self.attempts = 0
        last_error: OSError | None = None
        logger.info(f"Waiting for {self.host}:{self.port} (up to {self.max_attempts} attempts)")

        for attempt in range(1, self.max_attempts + 1):
            try:
                self.attempt()
            except OSError as e:
                last_error = e
                logger.debug(f"Readiness attempt {attempt}/{self.max_attempts} failed: {e}")
                if attempt < self.max_attempts:
                    self._sleep(self.interval_ms / 1000.0)
                continue

            logger.info(f"{self.host}:{self.port} ready after {attempt} attempt(s)")
            return attempt

        raise ReadinessError(
            host=self.host,
            port=self.port,
            attempts=self.attempts,
            interval_ms=self.interval_ms,
            last_error=last_error,
        )
