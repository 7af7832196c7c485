"""Step execution engine.

Runs one step body under the run's execution mode:

- Immediate: the body runs straight away (no delay configured).
- Timed: a blocking ``step_delay_ms`` pause before the body. The pause never
  cancels or times out the body itself.
- Manual: the step is announced and the operator decides whether to
  continue, inspect through the debug shell, or quit the run.

A step body's own exception propagates to the caller untouched. Debug shell
errors never do.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum

from rich.console import Console
from rich.markup import escape

from spexrun.capabilities import DefaultCapabilities, SubjectCapabilities
from spexrun.core.context import ExecutionContext, StepResult, apply_step_result
from spexrun.core.models import ExecutionConfig, Step
from spexrun.errors import ErrorContext, OperatorAbort
from spexrun.errors.debug import InputFn, ManualStepController, PromptChoice

logger = logging.getLogger(__name__)


class ExecutionMode(Enum):
    """How a step is paced."""

    IMMEDIATE = "immediate"
    TIMED = "timed"
    MANUAL = "manual"

    @classmethod
    def for_config(cls, config: ExecutionConfig) -> ExecutionMode:
        if config.manual_mode:
            return cls.MANUAL
        if config.step_delay_ms > 0:
            return cls.TIMED
        return cls.IMMEDIATE


class StepExecutor:
    """Executes step bodies according to an ExecutionConfig.

    Args:
        config: The run's execution config.
        capabilities: Capability functions offered by the debug shell.
        console: Where announcements and prompts are printed.
        input_fn: Operator input source (``input`` by default).
        sleep: Pacing sleep function (``time.sleep`` by default).
        controller: Manual-mode controller; built from the above if omitted.
    """

    def __init__(
        self,
        config: ExecutionConfig,
        capabilities: SubjectCapabilities | None = None,
        console: Console | None = None,
        input_fn: InputFn = input,
        sleep: Callable[[float], None] = time.sleep,
        controller: ManualStepController | None = None,
    ) -> None:
        self.config = config
        self.mode = ExecutionMode.for_config(config)
        self.console = console or Console()
        self.capabilities = capabilities or DefaultCapabilities(config)
        self._sleep = sleep
        self.controller = controller or ManualStepController(
            self.capabilities, console=self.console, input_fn=input_fn
        )

    def execute(
        self,
        step: Step,
        context: ExecutionContext,
        error_context: ErrorContext | None = None,
    ) -> ExecutionContext:
        """Run one step and return the context for the next one.

        Context-less steps are called without arguments and always hand the
        incoming context on. Context-aware steps go through the context
        contract.

        Raises:
            OperatorAbort: The operator chose quit at the manual prompt.
            ContextContractError: A context-aware step broke the contract.
            Exception: Whatever the step body raised.
        """
        self._before_step(step, context)

        logger.debug(f"Executing step: {step.label}")
        if not step.uses_context:
            step.body()
            self._after_step()
            return context

        returned = step.body(context)
        next_context = apply_step_result(StepResult.from_return(returned), context, error_context)
        self._after_step()
        return next_context

    def _before_step(self, step: Step, context: ExecutionContext) -> None:
        if self.mode is ExecutionMode.MANUAL:
            choice = self.controller.ask(step.label, context)
            if choice is PromptChoice.QUIT:
                self.console.print("  [red]Quitting manual mode...[/red]")
                logger.warning(f"Operator quit before step: {step.label}")
                raise OperatorAbort(f"Run aborted by operator before step: {step.label}")
            self.console.print("  Executing step...")
        elif self.mode is ExecutionMode.TIMED:
            self._sleep(self.config.step_delay_ms / 1000.0)
            self.console.print(f"  [dim]{escape(step.label)}[/dim]")

    def _after_step(self) -> None:
        if self.mode is ExecutionMode.MANUAL:
            self.console.print("  [green]Step completed[/green]")
