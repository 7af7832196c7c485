"""spexrun - executable Given/When/Then specifications against a live subject.

spexrun runs ordered, labeled steps grouped into scenarios and
specifications against a long-lived subject-under-test reachable over a TCP
port. It starts the subject, waits until it accepts connections, runs every
specification, and always stops the subject again.

Key Features:
    - Context contract: steps hand state on with UNCHANGED or Updated(...)
    - Execution modes: immediate, timed pacing, or manual with a debug shell
    - Failure isolation: one broken scenario never stops the rest
    - Subject lifecycle: local process, docker compose, or external
    - Tag filtering and watch mode

Example:
    >>> from spexrun import UNCHANGED, Updated, define_spec
    >>>
    >>> spec = define_spec("arithmetic", tags=["smoke"])
    >>> doubling = spec.scenario("doubling", uses_context=True)
    >>>
    >>> @doubling.given("x is 10")
    ... def _(ctx):
    ...     return Updated(ctx.merge(x=10))
    >>>
    >>> @doubling.when("x is doubled")
    ... def _(ctx):
    ...     return Updated(ctx.merge(computed=ctx.x * 2))
    >>>
    >>> @doubling.then("the result is 20")
    ... def _(ctx):
    ...     assert ctx.computed == 20
    ...     return UNCHANGED

Save this as ``spec/arithmetic_spec.py`` and run ``spexrun run``.
"""

from spexrun.core.context import UNCHANGED, ExecutionContext, StepResult, Updated
from spexrun.core.models import (
    ExecutionConfig,
    RunOutcome,
    Scenario,
    ScenarioResult,
    Specification,
    SpecificationResult,
    Speed,
    Step,
    StepKind,
)
from spexrun.dsl import (
    ScenarioBuilder,
    SpecificationBuilder,
    SpecRegistry,
    define_spec,
    get_registry,
)
from spexrun.errors import (
    ConfigError,
    ContextContractError,
    OperatorAbort,
    ReadinessError,
    RunTimeoutError,
    SpecLoadError,
    SpexError,
    SubjectStartError,
)
from spexrun.runner import SpecificationRunner, StepExecutor
from spexrun.runner.orchestrator import RunOrchestrator, RunState

__version__ = "0.1.0"

__all__ = [
    # Context contract
    "UNCHANGED",
    "Updated",
    "ExecutionContext",
    "StepResult",
    # Models
    "ExecutionConfig",
    "RunOutcome",
    "Scenario",
    "ScenarioResult",
    "Specification",
    "SpecificationResult",
    "Speed",
    "Step",
    "StepKind",
    # Declaration
    "define_spec",
    "get_registry",
    "SpecRegistry",
    "SpecificationBuilder",
    "ScenarioBuilder",
    # Execution
    "StepExecutor",
    "SpecificationRunner",
    "RunOrchestrator",
    "RunState",
    # Errors
    "SpexError",
    "ConfigError",
    "ContextContractError",
    "OperatorAbort",
    "ReadinessError",
    "RunTimeoutError",
    "SpecLoadError",
    "SubjectStartError",
]
