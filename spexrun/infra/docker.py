"""Subject-under-test run through docker compose."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from spexrun.errors import SubjectStartError
from spexrun.infra.base import SubjectManager

logger = logging.getLogger(__name__)


class DockerError(Exception):
    """Base exception for Docker operations."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class DockerNotFoundError(DockerError):
    """Raised when Docker is not installed or not running."""

    pass


class DockerComposeError(DockerError):
    """Raised when a docker compose command fails."""

    pass


class DockerComposeSubject(SubjectManager):
    """Subject-under-test defined as docker compose services.

    ``start`` runs ``up -d`` and ``stop`` runs ``down``. Readiness is still
    decided by the TCP probe, not by compose health checks.
    """

    def __init__(
        self,
        compose_file: str | Path | None = None,
        project_name: str | None = None,
        services: list[str] | None = None,
        command_timeout: float = 300.0,
    ) -> None:
        super().__init__()
        self.compose_file = str(compose_file) if compose_file else None
        self.project_name = project_name
        self.services = services or []
        self.command_timeout = command_timeout
        self._compose_cmd: list[str] | None = None

    def _detect_compose_command(self) -> list[str]:
        """Pick 'docker compose' (v2) or fall back to 'docker-compose' (v1).

        Raises:
            DockerNotFoundError: If neither is available.
        """
        for candidate in (["docker", "compose"], ["docker-compose"]):
            try:
                result = subprocess.run(
                    [*candidate, "version"],
                    capture_output=True,
                    text=True,
                    timeout=10,
                )
            except (FileNotFoundError, subprocess.TimeoutExpired):
                continue
            if result.returncode == 0:
                return candidate

        raise DockerNotFoundError(
            "Docker Compose not found. Please install Docker.",
            command=["docker", "compose", "version"],
        )

    def _build_command(self, *args: str) -> list[str]:
        if self._compose_cmd is None:
            self._compose_cmd = self._detect_compose_command()
        cmd = self._compose_cmd.copy()
        if self.compose_file:
            cmd.extend(["-f", self.compose_file])
        if self.project_name:
            cmd.extend(["-p", self.project_name])
        cmd.extend(args)
        return cmd

    def _run_command(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd = self._build_command(*args)
        logger.debug(f"Running docker command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DockerComposeError(
                f"Docker compose command timed out: {' '.join(args)}",
                command=cmd,
            ) from e

        if result.returncode != 0:
            raise DockerComposeError(
                f"Docker compose command failed: {' '.join(args)}",
                command=cmd,
                stderr=result.stderr,
            )
        return result

    def start(self) -> None:
        try:
            self._run_command("up", "-d", *self.services)
        except DockerError as e:
            raise SubjectStartError(
                message=str(e),
                cause=e,
                command=e.command,
                stderr=e.stderr.strip(),
            ) from e
        self._running = True

    def stop(self) -> None:
        self._running = False
        self._run_command("down")

    def describe(self) -> str:
        target = self.compose_file or "docker-compose.yml"
        return f"docker compose ({target})"
