"""Subject-under-test run as a local child process."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from spexrun.errors import SubjectStartError
from spexrun.infra.base import SubjectManager

logger = logging.getLogger(__name__)


class ProcessSubject(SubjectManager):
    """Launches the subject with ``subprocess.Popen`` and terminates it on stop.

    Args:
        command: Program and arguments, e.g. ``["python", "-m", "myapp"]``.
        cwd: Working directory (the application path).
        env: Extra environment variables layered over ``os.environ``.
        startup_grace: Seconds to watch for an immediate crash after launch.
        stop_timeout: Seconds to wait after SIGTERM before SIGKILL.
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        startup_grace: float = 0.2,
        stop_timeout: float = 10.0,
    ) -> None:
        super().__init__()
        if not command:
            raise ValueError("ProcessSubject needs a command")
        self.command = list(command)
        self.cwd = str(cwd) if cwd else None
        self.env = env or {}
        self.startup_grace = startup_grace
        self.stop_timeout = stop_timeout
        self._process: subprocess.Popen[bytes] | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    def start(self) -> None:
        logger.debug(f"Launching subject: {' '.join(self.command)} (cwd={self.cwd or '.'})")
        try:
            self._process = subprocess.Popen(
                self.command,
                cwd=self.cwd,
                env={**os.environ, **self.env},
            )
        except (OSError, ValueError) as e:
            raise SubjectStartError(
                message=f"Could not launch {self.command[0]!r}: {e}",
                cause=e,
                command=self.command,
                cwd=self.cwd,
            ) from e

        if self.startup_grace > 0:
            time.sleep(self.startup_grace)
        code = self._process.poll()
        if code is not None:
            raise SubjectStartError(
                message=f"Subject exited during startup with code {code}",
                command=self.command,
                cwd=self.cwd,
                exit_code=code,
            )
        self._running = True

    def stop(self) -> None:
        process = self._process
        self._running = False
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Subject {process.pid} ignored SIGTERM; killing it")
            process.kill()
            process.wait()

    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def describe(self) -> str:
        return f"process '{' '.join(self.command)}'"
