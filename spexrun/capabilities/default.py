"""Default capabilities that need nothing but the subject's TCP port."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from spexrun.capabilities.base import CapabilityResult, SubjectCapabilities
from spexrun.core.models import ExecutionConfig
from spexrun.infra.readiness import can_connect

logger = logging.getLogger(__name__)


class DefaultCapabilities(SubjectCapabilities):
    """Port-level status and inspection; screenshots are placeholder files.

    Subjects with a real remote-control protocol supply their own
    SubjectCapabilities implementation.
    """

    def __init__(self, config: ExecutionConfig) -> None:
        self.config = config

    def status(self) -> CapabilityResult:
        reachable = can_connect(self.config.host, self.config.port)
        return CapabilityResult.success(
            {
                "host": self.config.host,
                "port": self.config.port,
                "reachable": reachable,
            }
        )

    def take_screenshot(self, name: str | None = None) -> CapabilityResult:
        filename = name or f"spex_screenshot_{int(time.time() * 1000)}"
        path = Path(self.config.screenshot_dir) / f"{filename}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                f"spexrun placeholder screenshot - {datetime.now(timezone.utc).isoformat()}\n"
            )
        except OSError as e:
            return CapabilityResult.failure(f"Could not write {path}: {e}")
        logger.debug(f"Placeholder screenshot written to {path}")
        return CapabilityResult.success(str(path))

    def inspect_state(self) -> CapabilityResult:
        return CapabilityResult.success(
            {
                "host": self.config.host,
                "port": self.config.port,
                "reachable": can_connect(self.config.host, self.config.port),
                "speed": self.config.speed.value,
                "manual_mode": self.config.manual_mode,
            }
        )
