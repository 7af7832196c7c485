"""Reporter interface consumed by the specification runner.

The runner calls these hooks at fixed points and never depends on what a
reporter prints. Hooks must not raise; a reporter that fails is a bug in
the reporter, not a failed specification.

Call order for one specification:

    start_spec(name, opts)
      start_scenario(name)
        step(kind, description)            # once per step, before it runs
      scenario_passed(name) | scenario_failed(name, error)
    spec_passed(name) | spec_failed(name, error)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from spexrun.core.models import RunOutcome


class Reporter(ABC):
    """Abstract base class for print-event reporters."""

    @abstractmethod
    def start_spec(self, name: str, opts: dict[str, Any]) -> None: ...

    @abstractmethod
    def spec_passed(self, name: str) -> None: ...

    @abstractmethod
    def spec_failed(self, name: str, error: BaseException) -> None: ...

    @abstractmethod
    def start_scenario(self, name: str) -> None: ...

    @abstractmethod
    def scenario_passed(self, name: str) -> None: ...

    @abstractmethod
    def scenario_failed(self, name: str, error: BaseException) -> None: ...

    @abstractmethod
    def step(self, kind: str, description: str) -> None: ...

    def run_summary(self, outcome: RunOutcome) -> None:
        """Called once after aggregation. Optional."""


class NullReporter(Reporter):
    """Discards every event."""

    def start_spec(self, name: str, opts: dict[str, Any]) -> None:
        pass

    def spec_passed(self, name: str) -> None:
        pass

    def spec_failed(self, name: str, error: BaseException) -> None:
        pass

    def start_scenario(self, name: str) -> None:
        pass

    def scenario_passed(self, name: str) -> None:
        pass

    def scenario_failed(self, name: str, error: BaseException) -> None:
        pass

    def step(self, kind: str, description: str) -> None:
        pass
