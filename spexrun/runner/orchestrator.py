"""Run orchestrator - the state machine of one invocation.

    Idle -> Discovering -> Starting -> WaitingReady -> Running
         -> Aggregating -> CleaningUp -> Success | Failure

A failure in Discovering, Starting or WaitingReady jumps to CleaningUp and
ends in Failure; the error is re-raised after the subject is stopped. An
operator abort or Ctrl+C during Running unwinds the same way.

Watch mode is the one exception to "clean up as soon as the work is done":
after a successful run the orchestrator parks before CleaningUp so the
subject stays up for inspection. The park ends on Ctrl+C, and the subject is
stopped afterwards as usual.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum

from rich.console import Console

from spexrun.core.models import ExecutionConfig, RunOutcome, Specification, SpecificationResult
from spexrun.errors import RunTimeoutError
from spexrun.errors.debug import InputFn
from spexrun.infra.base import SubjectLifecycle
from spexrun.reporters import NullReporter, Reporter
from spexrun.runner import SpecificationRunner
from spexrun.runner.filters import TagFilter
from spexrun.runner.watchdog import RunWatchdog

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    STARTING = "starting"
    WAITING_READY = "waiting_ready"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    CLEANING_UP = "cleaning_up"
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.SUCCESS, RunState.FAILURE)


def park_until_interrupted(console: Console) -> None:
    """Block until Ctrl+C."""
    console.print(
        "\n[bold cyan]Watch mode:[/bold cyan] subject left running for inspection. "
        "Press Ctrl+C to stop."
    )
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        console.print("\nStopping watch mode...")


class RunOrchestrator:
    """Drives one run from discovery to teardown.

    Args:
        config: The run's execution config.
        lifecycle: Owns the subject-under-test; stopped exactly once.
        runner: Executes each specification.
        discover: Returns the specifications of this run.
        reporter: Receives ``run_summary`` after aggregation.
        tag_filter: Prunes specifications and scenarios before running.
        console: Used for the manual-mode banner and the watch-mode park.
        input_fn: Reads the operator's go-ahead in manual mode.
        park: Called in watch mode after a successful run.
    """

    def __init__(
        self,
        config: ExecutionConfig,
        lifecycle: SubjectLifecycle,
        runner: SpecificationRunner,
        discover: Callable[[], Sequence[Specification]],
        reporter: Reporter | None = None,
        tag_filter: TagFilter | None = None,
        console: Console | None = None,
        input_fn: InputFn = input,
        park: Callable[[], None] | None = None,
    ) -> None:
        self.config = config
        self.lifecycle = lifecycle
        self.runner = runner
        self.discover = discover
        self.reporter = reporter or NullReporter()
        self.tag_filter = tag_filter or TagFilter()
        self.console = console or Console()
        self._input = input_fn
        self._park = park or (lambda: park_until_interrupted(self.console))
        self.state = RunState.IDLE
        self.history: list[RunState] = [RunState.IDLE]
        self.outcome: RunOutcome | None = None

    def _transition(self, state: RunState) -> None:
        logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def run(self) -> RunOutcome:
        """Execute the whole run and return its outcome.

        Raises:
            SpecLoadError: A spec file failed to load.
            SubjectStartError: The subject could not be started.
            ReadinessError: The subject never became reachable.
            RunTimeoutError: The run exceeded ``timeout_ms``.
            OperatorAbort: The operator quit from the manual prompt.
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError("A RunOrchestrator can only run once")

        if not self.config.sequential:
            logger.warning("Parallel execution is not supported; running sequentially")

        started = time.perf_counter()
        succeeded = False
        try:
            self._transition(RunState.DISCOVERING)
            specifications = self.tag_filter.apply(self.discover())
            if not specifications:
                logger.warning("No specifications to run")
                self.outcome = RunOutcome(duration_ms=(time.perf_counter() - started) * 1000)
                succeeded = True
                return self.outcome

            self._transition(RunState.STARTING)
            self.lifecycle.start()

            self._transition(RunState.WAITING_READY)
            self.lifecycle.wait_ready()

            self._transition(RunState.RUNNING)
            if self.config.manual_mode:
                self._announce_manual_mode(specifications)
            results = self._run_specifications(specifications)

            self._transition(RunState.AGGREGATING)
            self.outcome = RunOutcome.from_results(
                results, duration_ms=(time.perf_counter() - started) * 1000
            )
            self.reporter.run_summary(self.outcome)
            succeeded = self.outcome.success

            if succeeded and self.config.watch_after_success:
                self._park()
            return self.outcome
        finally:
            self._transition(RunState.CLEANING_UP)
            self.lifecycle.stop()
            self._transition(RunState.SUCCESS if succeeded else RunState.FAILURE)
            logger.info(f"Run finished: {self.state.value}")

    def _run_specifications(self, specifications: Sequence[Specification]) -> list[SpecificationResult]:
        timeout_ms = 0 if self.config.manual_mode else self.config.timeout_ms
        watchdog = RunWatchdog(timeout_ms)
        results: list[SpecificationResult] = []
        try:
            with watchdog:
                for spec in specifications:
                    results.append(self.runner.run(spec))
        except KeyboardInterrupt:
            if watchdog.expired and len(results) == len(specifications):
                logger.warning("Run timeout fired after the last specification finished; keeping results")
                return results
            if watchdog.expired:
                raise RunTimeoutError(
                    message=f"Run exceeded its {timeout_ms}ms timeout",
                    completed_specifications=len(results),
                ) from None
            raise
        return results

    def _announce_manual_mode(self, specifications: Sequence[Specification]) -> None:
        scenarios = sum(len(s.scenarios) for s in specifications)
        self.console.print("\n[bold yellow]MANUAL MODE[/bold yellow]")
        self.console.print(
            f"{len(specifications)} specification(s), {scenarios} scenario(s). "
            f"The subject is reachable on {self.config.host}:{self.config.port}."
        )
        try:
            self._input("Press ENTER to start...")
        except EOFError:
            pass
