"""Core module exports."""

from spexrun.core.context import (
    UNCHANGED,
    ExecutionContext,
    StepResult,
    StepResultKind,
    Updated,
    apply_step_result,
)
from spexrun.core.models import (
    ExecutionConfig,
    RunOutcome,
    Scenario,
    ScenarioFailure,
    ScenarioResult,
    Specification,
    SpecificationResult,
    Speed,
    Step,
    StepKind,
)

__all__ = [
    "UNCHANGED",
    "ExecutionConfig",
    "ExecutionContext",
    "RunOutcome",
    "Scenario",
    "ScenarioFailure",
    "ScenarioResult",
    "Specification",
    "SpecificationResult",
    "Speed",
    "Step",
    "StepKind",
    "StepResult",
    "StepResultKind",
    "Updated",
    "apply_step_result",
]
