"""Capability interface for driving and observing the subject-under-test.

Capabilities are ordinary functions called from step bodies and from the
manual-mode debug shell. The core never depends on how they talk to the
subject; it only relies on the result shape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CapabilityResult:
    """Result-or-error of one capability call."""

    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> CapabilityResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> CapabilityResult:
        return cls(ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, raising RuntimeError if the call failed."""
        if not self.ok:
            raise RuntimeError(self.error or "capability call failed")
        return self.value


class SubjectCapabilities(ABC):
    """Operations the debug shell can invoke by name."""

    @abstractmethod
    def status(self) -> CapabilityResult:
        """Whether the subject is up, plus anything cheap to report."""
        ...

    @abstractmethod
    def take_screenshot(self, name: str | None = None) -> CapabilityResult:
        """Capture visual evidence; the value is an artifact handle (a path)."""
        ...

    @abstractmethod
    def inspect_state(self) -> CapabilityResult:
        """Introspect the subject's current state."""
        ...
