"""Tag filtering of specifications and scenarios."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from spexrun.core.models import Specification

logger = logging.getLogger(__name__)


def _normalize(tags: Iterable[str]) -> frozenset[str]:
    return frozenset(t.strip().lower() for t in tags if t and t.strip())


@dataclass(frozen=True)
class TagFilter:
    """Selects scenarios by tag.

    A scenario's effective tags are its own tags plus its specification's.
    Anything carrying an ``exclude`` tag is dropped. With a non-empty
    ``include``, tagged scenarios must carry one of those tags; untagged
    scenarios still run unless ``strict`` is set.
    """

    include: frozenset[str] = field(default_factory=frozenset)
    exclude: frozenset[str] = field(default_factory=frozenset)
    strict: bool = False

    @classmethod
    def create(
        cls,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        strict: bool = False,
    ) -> TagFilter:
        return cls(include=_normalize(include), exclude=_normalize(exclude), strict=strict)

    @property
    def active(self) -> bool:
        return bool(self.include or self.exclude or self.strict)

    def matches(self, tags: Iterable[str]) -> bool:
        tags = _normalize(tags)
        if tags & self.exclude:
            return False
        if not tags:
            return not self.strict
        if self.include:
            return bool(tags & self.include)
        return True

    def apply(self, specifications: Iterable[Specification]) -> list[Specification]:
        """Return the specifications left after filtering, scenarios pruned."""
        if not self.active:
            return list(specifications)

        kept: list[Specification] = []
        for spec in specifications:
            if not spec.scenarios:
                if self.matches(spec.tags):
                    kept.append(spec)
                continue

            scenarios = tuple(s for s in spec.scenarios if self.matches(s.tags | spec.tags))
            if not scenarios:
                logger.debug(f"Filtered out specification: {spec.name}")
                continue
            if len(scenarios) < len(spec.scenarios):
                spec = spec.model_copy(update={"scenarios": scenarios})
            kept.append(spec)
        return kept
