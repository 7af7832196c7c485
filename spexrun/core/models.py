"""Core domain models for spexrun.

This module defines the building blocks of an executable specification:
- Step: one labeled, described unit of behavior
- Scenario: an ordered sequence of steps sharing one execution context
- Specification: a named, taggable group of scenarios
- ExecutionConfig: the immutable settings of one run
- Results: ScenarioResult, SpecificationResult and the aggregated RunOutcome

Specifications are normally built with the helpers in ``spexrun.dsl``, but
the models can be constructed directly:

Example:
    >>> from spexrun.core import Scenario, Specification, Step, StepKind
    >>> spec = Specification(
    ...     name="calculator",
    ...     scenarios=[
    ...         Scenario(name="adds", steps=[
    ...             Step(kind=StepKind.WHEN, description="1 + 1", body=lambda: 1 + 1),
    ...         ]),
    ...     ],
    ... )
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

StepBody = Callable[..., Any]
SetupCallable = Callable[[], Any]


class StepKind(Enum):
    """Documentation label of a step.

    Kinds carry no execution semantics: every kind runs the same way and no
    ordering between them is enforced.
    """

    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"
    AND = "And"

    def __str__(self) -> str:
        return self.value


def _clean_tags(v: Any) -> frozenset[str]:
    if v is None:
        return frozenset()
    if isinstance(v, str):
        v = [v]
    return frozenset(str(tag).strip().lower() for tag in v if str(tag).strip())


class Step(BaseModel):
    """A single labeled unit of executable behavior.

    Attributes:
        kind: Given/When/Then/And label.
        description: Human-readable description shown in reports and prompts.
        body: The callable to run. Context-aware steps receive the current
            ExecutionContext and must return UNCHANGED or Updated(...);
            context-less steps are called with no arguments.
        uses_context: Whether the body takes part in the context contract.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    kind: StepKind
    description: str = Field(..., min_length=1, max_length=500)
    body: StepBody
    uses_context: bool = False

    @field_validator("kind", mode="before")
    @classmethod
    def validate_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            for kind in StepKind:
                if v.strip().lower() == kind.value.lower():
                    return kind
        return v

    @property
    def label(self) -> str:
        return f"{self.kind.value} {self.description}"


class Scenario(BaseModel):
    """An ordered sequence of steps sharing one execution context.

    Declaration order of ``steps`` is execution order.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    name: str = Field(..., min_length=1, max_length=200)
    uses_context: bool = False
    steps: tuple[Step, ...] = ()
    tags: frozenset[str] = frozenset()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Scenario name cannot be empty or whitespace")
        return v.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> frozenset[str]:
        return _clean_tags(v)


class Specification(BaseModel):
    """A named, taggable top-level executable description.

    Attributes:
        name: Unique name of the specification.
        description: Optional human-readable description.
        tags: Tags used by the run's tag filter.
        scenarios: Scenarios in declaration order.
        setup: Setup collaborators. Each is called once per run of the
            specification and may return a mapping merged into the context
            every scenario starts from.
        source: File the specification was declared in, if known.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    tags: frozenset[str] = frozenset()
    scenarios: tuple[Scenario, ...] = ()
    setup: tuple[SetupCallable, ...] = ()
    source: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Specification name cannot be empty or whitespace")
        return v.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> frozenset[str]:
        return _clean_tags(v)

    @property
    def options(self) -> dict[str, Any]:
        """Options handed to Reporter.start_spec."""
        opts: dict[str, Any] = {}
        if self.description:
            opts["description"] = self.description
        if self.tags:
            opts["tags"] = sorted(self.tags)
        return opts

    def has_tag(self, tag: str) -> bool:
        return tag.strip().lower() in self.tags


class Speed(Enum):
    """Pacing of step execution."""

    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"
    MANUAL = "manual"

    @property
    def delay_ms(self) -> int:
        return SPEED_DELAYS_MS[self]


SPEED_DELAYS_MS: dict[Speed, int] = {
    Speed.SLOW: 2000,
    Speed.NORMAL: 500,
    Speed.FAST: 100,
    Speed.MANUAL: 0,
}


class ExecutionConfig(BaseModel):
    """Settings of one invocation, fixed once the run starts.

    Build it with ``ExecutionConfig.create`` so that speed, manual mode and
    step delay stay consistent with each other.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    speed: Speed = Speed.NORMAL
    step_delay_ms: int = Field(default=500, ge=0)
    manual_mode: bool = False
    timeout_ms: int = Field(default=60_000, ge=0)
    host: str = "localhost"
    port: int = Field(default=9999, ge=1, le=65535)
    watch_after_success: bool = False
    sequential: bool = True
    readiness_interval_ms: int = Field(default=1000, ge=0)
    readiness_attempts: int = Field(default=30, ge=1)
    screenshot_dir: str = "spec/screenshots"
    preempt_port: bool = True

    @model_validator(mode="after")
    def validate_manual(self) -> ExecutionConfig:
        if self.manual_mode and self.speed is not Speed.MANUAL:
            raise ValueError("manual_mode requires speed=manual")
        if self.speed is Speed.MANUAL and not self.manual_mode:
            raise ValueError("speed=manual requires manual_mode")
        return self

    @classmethod
    def create(
        cls,
        speed: Speed | str = Speed.NORMAL,
        manual: bool = False,
        step_delay_ms: int | None = None,
        **kwargs: Any,
    ) -> ExecutionConfig:
        """Build a consistent config.

        ``manual=True`` or ``speed="manual"`` switches to manual mode, which
        has no pacing delay. Otherwise the delay follows the speed unless
        ``step_delay_ms`` is given explicitly.
        """
        speed = Speed(speed) if isinstance(speed, str) else speed
        manual_mode = manual or speed is Speed.MANUAL
        if manual_mode:
            speed = Speed.MANUAL
            step_delay_ms = 0
        elif step_delay_ms is None:
            step_delay_ms = speed.delay_ms
        return cls(
            speed=speed,
            manual_mode=manual_mode,
            step_delay_ms=step_delay_ms,
            **kwargs,
        )


class ScenarioResult(BaseModel):
    """Outcome of one scenario."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    name: str
    passed: bool
    steps_run: int = 0
    error: Exception | None = None
    duration_ms: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def validate_consistency(self) -> ScenarioResult:
        if self.passed and self.error is not None:
            raise ValueError("Passed scenario should not carry an error")
        if not self.passed and self.error is None:
            raise ValueError("Failed scenario must carry an error")
        return self


class SpecificationResult(BaseModel):
    """Outcome of one specification: its scenarios plus any setup failure."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    name: str
    scenario_results: list[ScenarioResult] = Field(default_factory=list)
    setup_error: Exception | None = None
    duration_ms: float = Field(default=0.0, ge=0)

    @property
    def passed(self) -> bool:
        return self.setup_error is None and all(r.passed for r in self.scenario_results)

    @property
    def first_error(self) -> Exception | None:
        if self.setup_error is not None:
            return self.setup_error
        for r in self.scenario_results:
            if r.error is not None:
                return r.error
        return None

    @property
    def passed_scenarios(self) -> int:
        return sum(1 for r in self.scenario_results if r.passed)

    @property
    def failed_scenarios(self) -> int:
        return sum(1 for r in self.scenario_results if not r.passed)


class ScenarioFailure(BaseModel):
    """One recorded failure with its specification/scenario identity."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid", frozen=True)

    spec_name: str
    scenario_name: str
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "spec_name": self.spec_name,
            "scenario_name": self.scenario_name,
            "error_type": type(self.error).__name__,
            "error": self.message,
        }


SETUP_SCENARIO_NAME = "setup"


class RunOutcome(BaseModel):
    """Aggregated result of one invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    specifications_run: int = 0
    scenarios_passed: int = 0
    scenarios_failed: int = 0
    failures: list[ScenarioFailure] = Field(default_factory=list)
    duration_ms: float = Field(default=0.0, ge=0)

    @classmethod
    def from_results(
        cls, results: list[SpecificationResult], duration_ms: float = 0.0
    ) -> RunOutcome:
        failures: list[ScenarioFailure] = []
        for spec_result in results:
            if spec_result.setup_error is not None:
                failures.append(
                    ScenarioFailure(
                        spec_name=spec_result.name,
                        scenario_name=SETUP_SCENARIO_NAME,
                        error=spec_result.setup_error,
                    )
                )
            for r in spec_result.scenario_results:
                if r.error is not None:
                    failures.append(
                        ScenarioFailure(spec_name=spec_result.name, scenario_name=r.name, error=r.error)
                    )
        return cls(
            specifications_run=len(results),
            scenarios_passed=sum(r.passed_scenarios for r in results),
            scenarios_failed=sum(r.failed_scenarios for r in results),
            failures=failures,
            duration_ms=duration_ms,
        )

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "specifications_run": self.specifications_run,
            "scenarios_passed": self.scenarios_passed,
            "scenarios_failed": self.scenarios_failed,
            "duration_ms": round(self.duration_ms, 2),
            "failures": [f.to_dict() for f in self.failures],
        }
