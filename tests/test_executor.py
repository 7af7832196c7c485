"""Tests for the step execution engine."""

from __future__ import annotations

import pytest

from spexrun.core.context import UNCHANGED, ExecutionContext, Updated
from spexrun.core.models import ExecutionConfig, Step, StepKind
from spexrun.errors import ContextContractError, OperatorAbort
from spexrun.errors.debug import ManualStepController
from spexrun.runner.executor import ExecutionMode, StepExecutor


def make_step(body, uses_context: bool = False, kind: StepKind = StepKind.WHEN) -> Step:
    return Step(kind=kind, description="do something", body=body, uses_context=uses_context)


class TestExecutionMode:
    """Tests for choosing the execution mode."""

    def test_manual(self) -> None:
        assert ExecutionMode.for_config(ExecutionConfig.create(manual=True)) is ExecutionMode.MANUAL

    def test_timed(self) -> None:
        assert ExecutionMode.for_config(ExecutionConfig.create(speed="slow")) is ExecutionMode.TIMED

    def test_immediate(self) -> None:
        config = ExecutionConfig.create(speed="fast", step_delay_ms=0)
        assert ExecutionMode.for_config(config) is ExecutionMode.IMMEDIATE


class TestImmediateExecution:
    """Tests for steps run without pacing."""

    def test_context_less_step_passes_context_through(self, executor: StepExecutor) -> None:
        calls = []
        ctx = ExecutionContext(x=1)

        result = executor.execute(make_step(lambda: calls.append(1)), ctx)

        assert calls == [1]
        assert result is ctx

    def test_context_less_step_return_value_ignored(self, executor: StepExecutor) -> None:
        ctx = ExecutionContext(x=1)

        assert executor.execute(make_step(lambda: True), ctx) is ctx

    def test_context_aware_step_receives_context(self, executor: StepExecutor) -> None:
        seen = []

        def body(ctx):
            seen.append(ctx)
            return Updated(ctx.merge(y=2))

        ctx = ExecutionContext(x=1)
        result = executor.execute(make_step(body, uses_context=True), ctx)

        assert seen == [ctx]
        assert result.to_dict() == {"x": 1, "y": 2}

    def test_unchanged_returns_same_context(self, executor: StepExecutor) -> None:
        ctx = ExecutionContext(x=1)

        assert executor.execute(make_step(lambda c: UNCHANGED, uses_context=True), ctx) is ctx

    def test_contract_violation(self, executor: StepExecutor) -> None:
        with pytest.raises(ContextContractError, match="Got: True"):
            executor.execute(make_step(lambda c: True, uses_context=True), ExecutionContext())

    def test_body_exception_propagates(self, executor: StepExecutor) -> None:
        def body():
            raise AssertionError("boom")

        with pytest.raises(AssertionError, match="boom"):
            executor.execute(make_step(body), ExecutionContext())


class TestTimedExecution:
    """Tests for paced execution."""

    def test_sleeps_before_each_step(self, capabilities, console, console_output) -> None:
        sleeps: list[float] = []
        config = ExecutionConfig.create(speed="normal")
        executor = StepExecutor(config, capabilities=capabilities, console=console, sleep=sleeps.append)
        order: list[str] = []

        def body():
            order.append(f"body after {len(sleeps)} sleep(s)")

        executor.execute(make_step(body), ExecutionContext())

        assert sleeps == [0.5]
        assert order == ["body after 1 sleep(s)"]
        assert "When do something" in console_output()

    def test_explicit_delay(self, capabilities, console) -> None:
        sleeps: list[float] = []
        config = ExecutionConfig.create(speed="fast", step_delay_ms=250)
        executor = StepExecutor(config, capabilities=capabilities, console=console, sleep=sleeps.append)

        executor.execute(make_step(lambda: None), ExecutionContext())

        assert sleeps == [0.25]


class TestManualExecution:
    """Tests for operator-paced execution."""

    def make_executor(self, capabilities, console, answers) -> StepExecutor:
        config = ExecutionConfig.create(manual=True)
        return StepExecutor(config, capabilities=capabilities, console=console, input_fn=answers)

    def test_enter_continues(self, capabilities, console, scripted_input) -> None:
        calls = []
        executor = self.make_executor(capabilities, console, scripted_input(""))

        executor.execute(make_step(lambda: calls.append(1)), ExecutionContext())

        assert calls == [1]

    def test_quit_aborts_before_body(self, capabilities, console, scripted_input) -> None:
        calls = []
        executor = self.make_executor(capabilities, console, scripted_input("q"))

        with pytest.raises(SystemExit) as exc_info:
            executor.execute(make_step(lambda: calls.append(1)), ExecutionContext())

        assert isinstance(exc_info.value, OperatorAbort)
        assert exc_info.value.code != 0
        assert calls == []

    def test_end_of_input_continues(self, capabilities, console, scripted_input) -> None:
        calls = []
        executor = self.make_executor(capabilities, console, scripted_input())

        executor.execute(make_step(lambda: calls.append(1)), ExecutionContext())

        assert calls == [1]

    def test_ctrl_c_at_prompt_quits(self, capabilities, console, scripted_input) -> None:
        executor = self.make_executor(capabilities, console, scripted_input(KeyboardInterrupt()))

        with pytest.raises(OperatorAbort):
            executor.execute(make_step(lambda: None), ExecutionContext())

    def test_inspect_then_continue(self, capabilities, console, scripted_input) -> None:
        executor = self.make_executor(capabilities, console, scripted_input("i", "s", ""))

        executor.execute(make_step(lambda: None), ExecutionContext())

        assert capabilities.calls == ["inspect", "screenshot:None"]

    def test_shell_error_does_not_fail_step(self, capabilities, console, scripted_input) -> None:
        capabilities.status = lambda: 1 / 0  # type: ignore[method-assign]
        executor = self.make_executor(
            capabilities, console, scripted_input("sh", "status", "exit", "")
        )
        calls = []

        executor.execute(make_step(lambda: calls.append(1)), ExecutionContext())

        assert calls == [1]

    def test_custom_controller(self, capabilities, console, scripted_input) -> None:
        answers = scripted_input("q")
        controller = ManualStepController(capabilities, console=console, input_fn=answers)
        executor = StepExecutor(
            ExecutionConfig.create(manual=True),
            capabilities=capabilities,
            console=console,
            controller=controller,
        )

        with pytest.raises(OperatorAbort):
            executor.execute(make_step(lambda: None), ExecutionContext())
        assert answers.prompts == [ManualStepController.PROMPT]
