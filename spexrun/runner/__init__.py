"""Specification runner - executes scenarios with per-scenario failure isolation."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from spexrun.core.context import ExecutionContext
from spexrun.core.models import Scenario, ScenarioResult, Specification, SpecificationResult
from spexrun.errors import ErrorContext
from spexrun.reporters import NullReporter, Reporter
from spexrun.runner.executor import ExecutionMode, StepExecutor

logger = logging.getLogger(__name__)


class SpecificationRunner:
    """Runs every scenario of a specification through a StepExecutor.

    Each scenario is one catch boundary: the first exception a step raises
    marks the scenario failed, skips its remaining steps, and is recorded in
    the result. The next scenario still runs. A specification fails if its
    setup or any scenario failed.

    BaseExceptions that are not Exceptions (operator abort, Ctrl+C) are not
    caught here; they end the whole run.
    """

    def __init__(self, executor: StepExecutor, reporter: Reporter | None = None) -> None:
        self.executor = executor
        self.reporter = reporter or NullReporter()

    def run(
        self,
        spec: Specification,
        base_context: Mapping[str, Any] | None = None,
    ) -> SpecificationResult:
        """Execute a specification and return its result."""
        logger.info(f"Starting specification: {spec.name}")
        started = time.perf_counter()
        self.reporter.start_spec(spec.name, spec.options)

        result = SpecificationResult(name=spec.name)
        try:
            context = self._run_setup(spec, ExecutionContext(base_context))
        except Exception as e:
            logger.exception(f"Setup of specification {spec.name} failed")
            result.setup_error = e
        else:
            for scenario in spec.scenarios:
                result.scenario_results.append(self.run_scenario(spec, scenario, context))

        result.duration_ms = (time.perf_counter() - started) * 1000

        if result.passed:
            self.reporter.spec_passed(spec.name)
        else:
            self.reporter.spec_failed(spec.name, result.first_error)
        return result

    def _run_setup(self, spec: Specification, context: ExecutionContext) -> ExecutionContext:
        for collaborator in spec.setup:
            provided = collaborator()
            if provided is None:
                continue
            if not isinstance(provided, Mapping):
                raise TypeError(
                    f"Setup collaborator {getattr(collaborator, '__name__', collaborator)!r} "
                    f"must return a mapping or None, got {provided!r}"
                )
            context = context.merge(provided)
        return context

    def run_scenario(
        self,
        spec: Specification,
        scenario: Scenario,
        context: ExecutionContext,
    ) -> ScenarioResult:
        """Execute one scenario's steps in declaration order."""
        self.reporter.start_scenario(scenario.name)
        started = time.perf_counter()
        steps_run = 0

        try:
            for step in scenario.steps:
                self.reporter.step(step.kind.value, step.description)
                error_context = ErrorContext(
                    spec_name=spec.name,
                    scenario_name=scenario.name,
                    step=step.label,
                )
                context = self.executor.execute(step, context, error_context)
                steps_run += 1
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.debug(f"Scenario {scenario.name} failed after {steps_run} step(s): {e}")
            self.reporter.scenario_failed(scenario.name, e)
            return ScenarioResult(
                name=scenario.name,
                passed=False,
                steps_run=steps_run,
                error=e,
                duration_ms=duration_ms,
            )

        self.reporter.scenario_passed(scenario.name)
        return ScenarioResult(
            name=scenario.name,
            passed=True,
            steps_run=steps_run,
            duration_ms=(time.perf_counter() - started) * 1000,
        )


__all__ = ["ExecutionMode", "SpecificationRunner", "StepExecutor"]
