"""Tests for tag filtering."""

from __future__ import annotations

import pytest

from spexrun.dsl import SpecRegistry, define_spec
from spexrun.runner.filters import TagFilter


@pytest.fixture
def specs():
    registry = SpecRegistry()
    auth = define_spec("auth", tags=["auth"], registry=registry)
    auth.scenario("login", tags=["fast"]).then("ok", lambda: None)
    auth.scenario("password reset", tags=["slow"]).then("ok", lambda: None)
    misc = define_spec("misc", registry=registry)
    misc.scenario("plain").then("ok", lambda: None)
    misc.scenario("flaky", tags=["flaky"]).then("ok", lambda: None)
    return registry.specifications()


def scenario_names(specs) -> list[str]:
    return [s.name for spec in specs for s in spec.scenarios]


class TestTagFilter:
    """Tests for TagFilter."""

    def test_inactive_filter_keeps_everything(self, specs) -> None:
        assert TagFilter().apply(specs) == specs

    def test_include_keeps_matching_and_untagged(self, specs) -> None:
        kept = TagFilter.create(include=["fast"]).apply(specs)

        assert scenario_names(kept) == ["login", "plain"]

    def test_include_matches_spec_tags(self, specs) -> None:
        kept = TagFilter.create(include=["auth"]).apply(specs)

        assert scenario_names(kept) == ["login", "password reset", "plain"]

    def test_strict_drops_untagged(self, specs) -> None:
        kept = TagFilter.create(include=["flaky"], strict=True).apply(specs)

        assert scenario_names(kept) == ["flaky"]
        assert [s.name for s in kept] == ["misc"]

    def test_exclude_wins(self, specs) -> None:
        kept = TagFilter.create(include=["auth"], exclude=["slow", "flaky"]).apply(specs)

        assert scenario_names(kept) == ["login", "plain"]

    def test_tags_normalized(self) -> None:
        f = TagFilter.create(include=[" Fast "])

        assert f.matches(["FAST"])
        assert not f.matches(["slow"])

    def test_spec_without_scenarios(self) -> None:
        registry = SpecRegistry()
        define_spec("bare", tags=["wip"], registry=registry)

        assert TagFilter.create(exclude=["wip"]).apply(registry.specifications()) == []
        assert len(TagFilter.create(include=["wip"]).apply(registry.specifications())) == 1
