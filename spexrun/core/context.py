"""Execution context and the step hand-off contract.

A context-aware step receives the current ExecutionContext and must say
explicitly what the next step gets:

    UNCHANGED                               # keep the context as it was
    Updated(context.merge(user=user))       # hand over a new context

Anything else is a ContextContractError. A step that forgets to propagate
an update fails loudly instead of silently dropping state.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from spexrun.errors import ContextContractError, ErrorContext


class ExecutionContext(Mapping[str, Any]):
    """Immutable mapping of state threaded between the steps of one scenario.

    Values can be read as items or attributes. Every "mutation" returns a new
    context, so a context handed to a step is never changed behind its back.

    Example:
        >>> ctx = ExecutionContext({"x": 10})
        >>> ctx.x
        10
        >>> ctx.merge(y=2).to_dict()
        {'x': 10, 'y': 2}
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None, **values: Any) -> None:
        merged = dict(data or {})
        merged.update(values)
        for key in merged:
            if not isinstance(key, str):
                raise TypeError(f"Context keys must be strings, got {key!r}")
        object.__setattr__(self, "_data", merged)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_data":
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(
                f"Context has no key {name!r} (available: {sorted(self._data)})"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError("ExecutionContext is immutable; use merge() or put()")

    def __setitem__(self, key: str, value: Any) -> None:
        raise TypeError("ExecutionContext is immutable; use merge() or put()")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ExecutionContext):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ExecutionContext({self._data!r})"

    # Copying and pickling rebuild through __init__; __setattr__ is closed.
    def __reduce__(self) -> tuple[Any, ...]:
        return (ExecutionContext, (self._data,))

    def __copy__(self) -> ExecutionContext:
        return ExecutionContext(self._data)

    def __deepcopy__(self, memo: dict[int, Any]) -> ExecutionContext:
        return ExecutionContext(copy.deepcopy(self._data, memo))

    def get_required(self, key: str) -> Any:
        """Retrieve a value, raising if not found."""
        if key not in self._data:
            raise KeyError(f"Required context key not found: {key}")
        return self._data[key]

    def merge(self, data: Mapping[str, Any] | None = None, **values: Any) -> ExecutionContext:
        """Return a new context with the given keys added or replaced."""
        merged = dict(self._data)
        merged.update(data or {})
        merged.update(values)
        return ExecutionContext(merged)

    def put(self, key: str, value: Any) -> ExecutionContext:
        """Return a new context with one key set."""
        return self.merge({key: value})

    def without(self, key: str) -> ExecutionContext:
        """Return a new context with one key removed."""
        remaining = {k: v for k, v in self._data.items() if k != key}
        return ExecutionContext(remaining)

    def to_dict(self) -> dict[str, Any]:
        """Export context as a plain (shallow-copied) dictionary."""
        return dict(self._data)


class _Unchanged:
    """Sentinel type for "keep the context as it was"."""

    _instance: _Unchanged | None = None

    def __new__(cls) -> _Unchanged:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"

    def __reduce__(self) -> str:
        return "UNCHANGED"


UNCHANGED = _Unchanged()


@dataclass(frozen=True)
class Updated:
    """Wrapper carrying the replacement context for the next step."""

    context: Any


class StepResultKind(Enum):
    """How a context-aware step's return value was interpreted."""

    UNCHANGED = "unchanged"
    UPDATED = "updated"
    INVALID = "invalid"


@dataclass(frozen=True)
class StepResult:
    """Classified return value of a context-aware step body.

    Attributes:
        kind: Which of the accepted forms (or none) the value matched.
        context: The replacement context for UPDATED results.
        value: The raw return value, kept for error reporting.
    """

    kind: StepResultKind
    context: ExecutionContext | None = None
    value: Any = None

    @classmethod
    def from_return(cls, value: Any) -> StepResult:
        """Classify the raw return value of a step body."""
        if value is UNCHANGED:
            return cls(StepResultKind.UNCHANGED, value=value)
        if isinstance(value, Updated):
            payload = value.context
            if isinstance(payload, Mapping) and all(isinstance(k, str) for k in payload):
                context = payload if isinstance(payload, ExecutionContext) else ExecutionContext(payload)
                return cls(StepResultKind.UPDATED, context=context, value=value)
        return cls(StepResultKind.INVALID, value=value)

    @property
    def is_valid(self) -> bool:
        return self.kind is not StepResultKind.INVALID


CONTRACT_HELP = """Valid returns:
  UNCHANGED                                   # keep context unchanged
  Updated(context)                            # return updated context
  Updated(context.merge(key=value))           # return modified context"""


def apply_step_result(
    result: StepResult,
    context: ExecutionContext,
    error_context: ErrorContext | None = None,
) -> ExecutionContext:
    """Return the context for the next step, or raise on a contract violation.

    Raises:
        ContextContractError: If the step returned anything but UNCHANGED or
            Updated(mapping). The message includes the offending value.
    """
    if result.kind is StepResultKind.UNCHANGED:
        return context
    if result.kind is StepResultKind.UPDATED and result.context is not None:
        return result.context

    raise ContextContractError(
        message=(
            "Context-aware step must return UNCHANGED or Updated(context).\n"
            f"Got: {result.value!r}\n\n{CONTRACT_HELP}"
        ),
        context=error_context,
        returned=repr(result.value),
    )
