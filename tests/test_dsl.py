"""Tests for the declaration builders."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spexrun.core.context import UNCHANGED
from spexrun.core.models import StepKind
from spexrun.dsl import SpecRegistry, define_spec, get_registry, use_registry


class TestBuilders:
    """Tests for SpecificationBuilder and ScenarioBuilder."""

    def test_decorator_and_direct_forms(self) -> None:
        registry = SpecRegistry()
        spec = define_spec("cart", description="Shopping cart", tags=["Shop"], registry=registry)
        sc = spec.scenario("add item", uses_context=True, tags=["fast"])

        @sc.given("an empty cart")
        def empty(ctx):
            return UNCHANGED

        sc.when("an item is added", lambda ctx: UNCHANGED)
        sc.then("the cart has one item", lambda ctx: UNCHANGED)
        sc.and_("the total is updated", lambda ctx: UNCHANGED)

        built = spec.build()
        scenario = built.scenarios[0]

        assert empty.__name__ == "empty"
        assert built.name == "cart"
        assert built.description == "Shopping cart"
        assert built.tags == frozenset({"shop"})
        assert scenario.tags == frozenset({"fast"})
        assert [s.kind for s in scenario.steps] == [
            StepKind.GIVEN,
            StepKind.WHEN,
            StepKind.THEN,
            StepKind.AND,
        ]
        assert all(s.uses_context for s in scenario.steps)
        assert scenario.steps[0].label == "Given an empty cart"

    def test_setup_decorator_keeps_order(self) -> None:
        spec = define_spec("setup", registry=SpecRegistry())

        @spec.setup
        def first():
            return {"a": 1}

        spec.setup(lambda: {"b": 2})

        built = spec.build()

        assert built.setup[0] is first
        assert len(built.setup) == 2

    def test_empty_scenario_is_legal(self) -> None:
        spec = define_spec("empty", registry=SpecRegistry())
        spec.scenario("nothing")

        assert spec.build().scenarios[0].steps == ()

    def test_blank_names_rejected(self) -> None:
        with pytest.raises(ValidationError):
            define_spec("   ", registry=SpecRegistry()).build()

    def test_string_kind_accepted(self) -> None:
        spec = define_spec("kinds", registry=SpecRegistry())
        spec.scenario("s").step("then", "works", lambda: None)

        assert spec.build().scenarios[0].steps[0].kind is StepKind.THEN


class TestRegistry:
    """Tests for SpecRegistry."""

    def test_duplicate_names_rejected(self) -> None:
        registry = SpecRegistry()
        define_spec("same", registry=registry)

        with pytest.raises(ValueError, match="already registered"):
            define_spec("same", registry=registry)

    def test_use_registry_swaps_current(self) -> None:
        original = get_registry()
        scoped = SpecRegistry()

        with use_registry(scoped):
            define_spec("scoped")
            assert get_registry() is scoped

        assert get_registry() is original
        assert scoped.names() == ["scoped"]
        assert "scoped" not in original.names()

    def test_specifications_built_in_order(self) -> None:
        registry = SpecRegistry()
        define_spec("b", registry=registry)
        define_spec("a", registry=registry)

        assert [s.name for s in registry.specifications()] == ["b", "a"]
        assert len(registry) == 2
        registry.clear()
        assert len(registry) == 0

    def test_first_declaration_lands_in_explicit_registry(self, fresh_registry: SpecRegistry) -> None:
        target = SpecRegistry()

        define_spec("only-here", registry=target)

        assert target.names() == ["only-here"]
        assert fresh_registry.names() == []
        assert len(get_registry()) == 0

    def test_current_registry_starts_empty(self) -> None:
        assert get_registry().names() == []


class TestStepContextOverride:
    """Tests for per-step uses_context."""

    def test_step_overrides_scenario_default(self) -> None:
        spec = define_spec("mixed", registry=SpecRegistry())
        sc = spec.scenario("mixed steps", uses_context=True)

        sc.given("a plain precondition", lambda: None, uses_context=False)

        @sc.when("the context is read")
        def read(ctx):
            return UNCHANGED

        @sc.then("a plain check", uses_context=False)
        def check():
            pass

        steps = spec.build().scenarios[0].steps

        assert [s.uses_context for s in steps] == [False, True, False]

    def test_context_step_in_plain_scenario(self) -> None:
        spec = define_spec("plain", registry=SpecRegistry())
        spec.scenario("s").step("when", "needs context", lambda ctx: UNCHANGED, uses_context=True)

        assert spec.build().scenarios[0].steps[0].uses_context is True
