"""Error types for spexrun."""

from spexrun.errors.base import (
    ConfigError,
    ContextContractError,
    ErrorCode,
    ErrorContext,
    OperatorAbort,
    ReadinessError,
    RunTimeoutError,
    SpecLoadError,
    SpexError,
    SubjectStartError,
)

__all__ = [
    "ConfigError",
    "ContextContractError",
    "ErrorCode",
    "ErrorContext",
    "OperatorAbort",
    "ReadinessError",
    "RunTimeoutError",
    "SpecLoadError",
    "SpexError",
    "SubjectStartError",
]
