"""Builder calls for declaring specifications.

Example:
    >>> from spexrun import UNCHANGED, Updated, define_spec
    >>>
    >>> spec = define_spec("counter", tags=["smoke"])
    >>>
    >>> @spec.setup
    ... def seed():
    ...     return {"start": 1}
    >>>
    >>> counting = spec.scenario("increments", uses_context=True)
    >>>
    >>> @counting.given("a counter")
    ... def _(ctx):
    ...     return Updated(ctx.merge(count=ctx.start))
    >>>
    >>> @counting.then("it can be read")
    ... def _(ctx):
    ...     assert ctx.count == 1
    ...     return UNCHANGED

Builders register themselves with the current SpecRegistry. Discovery loads
spec files with a fresh registry per file and collects what they declared.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from spexrun.core.models import Scenario, SetupCallable, Specification, Step, StepBody, StepKind


class ScenarioBuilder:
    """Collects the steps of one scenario in declaration order."""

    def __init__(self, name: str, uses_context: bool = False, tags: Iterable[str] = ()) -> None:
        self.name = name
        self.uses_context = uses_context
        self.tags = list(tags)
        self._steps: list[Step] = []

    def step(
        self,
        kind: StepKind | str,
        description: str,
        body: StepBody | None = None,
        uses_context: bool | None = None,
    ) -> Any:
        """Append a step; without ``body`` this returns a decorator.

        Steps follow the scenario's ``uses_context`` unless ``uses_context``
        is given, so a context-less step can sit in a context scenario.
        """
        if body is None:

            def decorator(fn: StepBody) -> StepBody:
                self.step(kind, description, fn, uses_context=uses_context)
                return fn

            return decorator

        self._steps.append(
            Step(
                kind=kind,
                description=description,
                body=body,
                uses_context=self.uses_context if uses_context is None else uses_context,
            )
        )
        return self

    def given(
        self, description: str, body: StepBody | None = None, uses_context: bool | None = None
    ) -> Any:
        return self.step(StepKind.GIVEN, description, body, uses_context=uses_context)

    def when(
        self, description: str, body: StepBody | None = None, uses_context: bool | None = None
    ) -> Any:
        return self.step(StepKind.WHEN, description, body, uses_context=uses_context)

    def then(
        self, description: str, body: StepBody | None = None, uses_context: bool | None = None
    ) -> Any:
        return self.step(StepKind.THEN, description, body, uses_context=uses_context)

    def and_(
        self, description: str, body: StepBody | None = None, uses_context: bool | None = None
    ) -> Any:
        return self.step(StepKind.AND, description, body, uses_context=uses_context)

    def build(self) -> Scenario:
        return Scenario(
            name=self.name,
            uses_context=self.uses_context,
            steps=tuple(self._steps),
            tags=self.tags,
        )


class SpecificationBuilder:
    """Collects scenarios and setup collaborators of one specification."""

    def __init__(
        self,
        name: str,
        description: str | None = None,
        tags: Iterable[str] = (),
    ) -> None:
        self.name = name
        self.description = description
        self.tags = list(tags)
        self._scenarios: list[ScenarioBuilder] = []
        self._setup: list[SetupCallable] = []

    def scenario(
        self,
        name: str,
        uses_context: bool = False,
        tags: Iterable[str] = (),
    ) -> ScenarioBuilder:
        builder = ScenarioBuilder(name, uses_context=uses_context, tags=tags)
        self._scenarios.append(builder)
        return builder

    def setup(self, fn: SetupCallable) -> SetupCallable:
        """Register a setup collaborator (usable as a decorator)."""
        self._setup.append(fn)
        return fn

    def build(self) -> Specification:
        return Specification(
            name=self.name,
            description=self.description,
            tags=self.tags,
            scenarios=tuple(s.build() for s in self._scenarios),
            setup=tuple(self._setup),
        )


class SpecRegistry:
    """Specifications declared while a registry is current."""

    def __init__(self) -> None:
        self._builders: list[SpecificationBuilder] = []

    def register(self, builder: SpecificationBuilder) -> None:
        if any(b.name == builder.name for b in self._builders):
            raise ValueError(f"Specification '{builder.name}' is already registered")
        self._builders.append(builder)

    def specifications(self) -> list[Specification]:
        return [b.build() for b in self._builders]

    def names(self) -> list[str]:
        return [b.name for b in self._builders]

    def clear(self) -> None:
        self._builders.clear()

    def __len__(self) -> int:
        return len(self._builders)


_current_registry = SpecRegistry()


def get_registry() -> SpecRegistry:
    return _current_registry


@contextmanager
def use_registry(registry: SpecRegistry) -> Iterator[SpecRegistry]:
    """Make ``registry`` current for the duration of the block."""
    global _current_registry
    previous = _current_registry
    _current_registry = registry
    try:
        yield registry
    finally:
        _current_registry = previous


def define_spec(
    name: str,
    description: str | None = None,
    tags: Iterable[str] = (),
    registry: SpecRegistry | None = None,
) -> SpecificationBuilder:
    """Declare a specification and register it."""
    builder = SpecificationBuilder(name, description=description, tags=tags)
    target = registry if registry is not None else get_registry()
    target.register(builder)
    return builder
