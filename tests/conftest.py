"""Pytest fixtures for spexrun tests."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Iterator
from typing import Any

import pytest
from rich.console import Console

from spexrun.capabilities import CapabilityResult, SubjectCapabilities
from spexrun.core.models import ExecutionConfig, RunOutcome
from spexrun.dsl import SpecRegistry, use_registry
from spexrun.infra.base import SubjectManager
from spexrun.infra.readiness import ReadinessProber
from spexrun.reporters.base import Reporter
from spexrun.runner import SpecificationRunner, StepExecutor


class RecordingReporter(Reporter):
    """Reporter that records every callback as a tuple."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []
        self.summary: RunOutcome | None = None

    def start_spec(self, name: str, opts: dict[str, Any]) -> None:
        self.events.append(("start_spec", name, opts))

    def spec_passed(self, name: str) -> None:
        self.events.append(("spec_passed", name))

    def spec_failed(self, name: str, error: BaseException) -> None:
        self.events.append(("spec_failed", name, error))

    def start_scenario(self, name: str) -> None:
        self.events.append(("start_scenario", name))

    def scenario_passed(self, name: str) -> None:
        self.events.append(("scenario_passed", name))

    def scenario_failed(self, name: str, error: BaseException) -> None:
        self.events.append(("scenario_failed", name, error))

    def step(self, kind: str, description: str) -> None:
        self.events.append(("step", kind, description))

    def run_summary(self, outcome: RunOutcome) -> None:
        self.summary = outcome

    def names(self, event: str) -> list[str]:
        return [e[1] for e in self.events if e[0] == event]


class ScriptedInput:
    """Stands in for ``input``: replays answers, then raises EOFError."""

    def __init__(self, answers: Iterable[str | BaseException] = ()) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str = "") -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


class FakeSubject(SubjectManager):
    """Subject manager that only counts calls."""

    def __init__(self, fail_on_start: Exception | None = None, fail_on_stop: Exception | None = None) -> None:
        super().__init__()
        self.fail_on_start = fail_on_start
        self.fail_on_stop = fail_on_stop
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self._running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self._running = False
        if self.fail_on_stop is not None:
            raise self.fail_on_stop

    def describe(self) -> str:
        return "fake subject"


class FakeCapabilities(SubjectCapabilities):
    """Capabilities that record calls and return canned results."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def status(self) -> CapabilityResult:
        self.calls.append("status")
        return CapabilityResult.success({"reachable": True})

    def take_screenshot(self, name: str | None = None) -> CapabilityResult:
        self.calls.append(f"screenshot:{name}")
        return CapabilityResult.success(f"/tmp/{name or 'shot'}.png")

    def inspect_state(self) -> CapabilityResult:
        self.calls.append("inspect")
        return CapabilityResult.success({"port": 9999})


class _Connection:
    def close(self) -> None:
        pass


def fake_connect(fail_times: int) -> Callable[..., _Connection]:
    """A connect function that refuses the first ``fail_times`` calls."""
    calls = {"n": 0}

    def connect(address: tuple[str, int], timeout: float | None = None) -> _Connection:
        calls["n"] += 1
        if calls["n"] <= fail_times:
            raise ConnectionRefusedError(f"refused {address}")
        return _Connection()

    return connect


@pytest.fixture(autouse=True)
def fresh_registry() -> Iterator[SpecRegistry]:
    """Each test declares specifications into its own current registry."""
    with use_registry(SpecRegistry()) as registry:
        yield registry


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def console_output(console: Console) -> Callable[[], str]:
    return lambda: console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def scripted_input() -> Callable[..., ScriptedInput]:
    def factory(*answers: str | BaseException) -> ScriptedInput:
        return ScriptedInput(answers)

    return factory


@pytest.fixture
def fake_subject() -> FakeSubject:
    return FakeSubject()


@pytest.fixture
def capabilities() -> FakeCapabilities:
    return FakeCapabilities()


@pytest.fixture
def config() -> ExecutionConfig:
    return ExecutionConfig.create(speed="fast", step_delay_ms=0, timeout_ms=0)


@pytest.fixture
def ready_prober() -> ReadinessProber:
    return ReadinessProber("localhost", 9999, interval_ms=0, max_attempts=3, connect=fake_connect(0))


@pytest.fixture
def executor(config: ExecutionConfig, capabilities: FakeCapabilities, console: Console) -> StepExecutor:
    return StepExecutor(config, capabilities=capabilities, console=console)


@pytest.fixture
def runner(executor: StepExecutor, reporter: RecordingReporter) -> SpecificationRunner:
    return SpecificationRunner(executor, reporter)


@pytest.fixture
def connect_factory() -> Callable[[int], Callable[..., _Connection]]:
    return fake_connect


@pytest.fixture
def subject_factory() -> type[FakeSubject]:
    return FakeSubject
