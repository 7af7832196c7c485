"""Tests for the core data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spexrun.core.models import (
    RunOutcome,
    Scenario,
    ScenarioResult,
    Specification,
    SpecificationResult,
    Step,
    StepKind,
)


def noop() -> None:
    pass


class TestStep:
    """Tests for Step."""

    @pytest.mark.parametrize("kind", ["given", "Given", " GIVEN "])
    def test_kind_from_string(self, kind: str) -> None:
        step = Step(kind=kind, description="a user", body=noop)

        assert step.kind is StepKind.GIVEN
        assert step.label == "Given a user"

    def test_empty_description_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Step(kind=StepKind.WHEN, description="", body=noop)

    def test_frozen(self) -> None:
        step = Step(kind=StepKind.THEN, description="done", body=noop)

        with pytest.raises(ValidationError):
            step.description = "changed"  # type: ignore[misc]


class TestSpecification:
    """Tests for Scenario and Specification."""

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Scenario(name="   ")
        with pytest.raises(ValidationError):
            Specification(name="")

    def test_tags_normalized(self) -> None:
        spec = Specification(name="cart", tags=[" Smoke", "AUTH", ""])

        assert spec.tags == frozenset({"smoke", "auth"})
        assert spec.has_tag("Smoke")

    def test_options(self) -> None:
        assert Specification(name="a").options == {}
        assert Specification(name="a", description="d", tags=["y", "x"]).options == {
            "description": "d",
            "tags": ["x", "y"],
        }


class TestScenarioResult:
    """Tests for ScenarioResult consistency."""

    def test_passed_with_error_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScenarioResult(name="s", passed=True, error=RuntimeError("x"))

    def test_failed_without_error_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScenarioResult(name="s", passed=False)


class TestRunOutcome:
    """Tests for aggregation into RunOutcome."""

    def test_from_results(self) -> None:
        boom = RuntimeError("boom")
        setup_error = KeyError("db")
        results = [
            SpecificationResult(
                name="cart",
                scenario_results=[
                    ScenarioResult(name="add", passed=True, steps_run=2),
                    ScenarioResult(name="remove", passed=False, error=boom),
                ],
            ),
            SpecificationResult(name="orders", setup_error=setup_error),
        ]

        outcome = RunOutcome.from_results(results, duration_ms=5.0)

        assert outcome.specifications_run == 2
        assert outcome.scenarios_passed == 1
        assert outcome.scenarios_failed == 1
        assert [(f.spec_name, f.scenario_name) for f in outcome.failures] == [
            ("cart", "remove"),
            ("orders", "setup"),
        ]
        assert not outcome.success
        assert outcome.exit_code == 1

    def test_empty_run_succeeds(self) -> None:
        outcome = RunOutcome.from_results([])

        assert outcome.success
        assert outcome.exit_code == 0

    def test_first_error_prefers_setup(self) -> None:
        setup_error = ValueError("setup")
        result = SpecificationResult(
            name="x",
            scenario_results=[ScenarioResult(name="s", passed=False, error=RuntimeError())],
            setup_error=setup_error,
        )

        assert not result.passed
        assert result.first_error is setup_error
