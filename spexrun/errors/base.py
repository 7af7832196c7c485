"""Exception hierarchy for spexrun.

spexrun errors carry:
- A structured error code for programmatic handling
- Context naming the specification, scenario and step involved
- Actionable suggestions for recovery

All errors that end up in a run report inherit from SpexError. The one
exception is OperatorAbort, which derives from SystemExit so that it passes
through scenario catch boundaries untouched.

Example:
    try:
        orchestrator.run()
    except ReadinessError as e:
        print(e.format_verbose())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes.

    Error codes are organized by category:
    - E0xx: Subject-under-test errors (start, readiness)
    - E2xx: Validation errors (config, declarations, context contract)
    - E4xx: Run execution errors
    - E9xx: Unknown/internal errors
    """

    SUBJECT_START_FAILED = "E001"
    SUBJECT_NOT_READY = "E002"

    INVALID_CONFIG = "E201"
    SPEC_LOAD_FAILED = "E202"
    CONTEXT_CONTRACT = "E203"

    RUN_TIMEOUT = "E402"
    RUN_ABORTED = "E403"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 100:
            return "subject"
        elif code_num < 300:
            return "validation"
        elif code_num < 500:
            return "run"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Where an error happened.

    Attributes:
        spec_name: Name of the specification being executed
        scenario_name: Name of the scenario being executed
        step: Step label, e.g. "When the user logs in"
        extra: Additional context-specific information
        timestamp: When the error occurred
    """

    spec_name: str | None = None
    scenario_name: str | None = None
    step: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for serialization."""
        result = {
            "spec_name": self.spec_name,
            "scenario_name": self.scenario_name,
            "step": self.step,
            "extra": self.extra,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.spec_name:
            parts.append(f"spec={self.spec_name}")
        if self.scenario_name:
            parts.append(f"scenario={self.scenario_name}")
        if self.step:
            parts.append(f"step={self.step}")
        return " > ".join(parts) if parts else "unknown location"


class SpexError(Exception):
    """Base exception for all spexrun errors.

    Attributes:
        error_code: Unique ErrorCode for this error type
        message: Human-readable error description
        context: ErrorContext with execution details
        suggestions: List of actionable steps to resolve the issue
        cause: The underlying exception (if any)
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        """Get actionable suggestions for resolving this error."""
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")

        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [
            f"Error [{self.error_code.value}]: {self.message}",
        ]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.cause is not None:
            lines.append(f"Cause: {type(self.cause).__name__}: {self.cause}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigError(SpexError):
    """Invalid configuration value or unreadable config file."""

    error_code = ErrorCode.INVALID_CONFIG
    default_message = "Invalid configuration"
    default_suggestions = [
        "Check spexrun.yaml and SPEXRUN_* environment variables",
        "Run 'spexrun run --help' to see accepted values",
    ]


class SpecLoadError(SpexError):
    """A specification file could not be imported."""

    error_code = ErrorCode.SPEC_LOAD_FAILED
    default_message = "Failed to load specification file"
    default_suggestions = [
        "Import the file directly with python to see the full traceback",
        "Check that the file only declares specifications at import time",
    ]


class ContextContractError(SpexError):
    """A context-aware step returned something other than UNCHANGED or Updated(...).

    Fatal for the scenario; never retried.
    """

    error_code = ErrorCode.CONTEXT_CONTRACT
    default_message = "Step returned an invalid context hand-off value"
    default_suggestions = [
        "Return UNCHANGED to keep the context as it was",
        "Return Updated(context.merge(key=value)) to hand a new context to the next step",
    ]


class SubjectStartError(SpexError):
    """The subject-under-test could not be started."""

    error_code = ErrorCode.SUBJECT_START_FAILED
    default_message = "Subject-under-test failed to start"
    default_suggestions = [
        "Run the subject command by hand to see its output",
        "Check --app-path and --command",
    ]


class ReadinessError(SpexError):
    """The subject-under-test never accepted a TCP connection."""

    error_code = ErrorCode.SUBJECT_NOT_READY
    default_message = "Subject-under-test did not become reachable"

    def __init__(
        self,
        host: str,
        port: int,
        attempts: int,
        interval_ms: int,
        last_error: Exception | None = None,
        **kwargs: Any,
    ) -> None:
        self.host = host
        self.port = port
        self.attempts = attempts
        self.interval_ms = interval_ms
        message = (
            f"No listener on {host}:{port} after {attempts} attempt(s) "
            f"at {interval_ms}ms intervals"
        )
        if last_error is not None:
            message += f" (last error: {last_error})"
        kwargs.setdefault(
            "suggestions",
            [
                f"Check that the subject listens on port {port}",
                "Raise readiness_attempts if the subject is slow to boot",
                "Look at the subject's own logs for a crash during startup",
            ],
        )
        super().__init__(message=message, cause=last_error, **kwargs)
        self.context.extra.update(
            {"host": host, "port": port, "attempts": attempts, "interval_ms": interval_ms}
        )


class RunTimeoutError(SpexError):
    """The run exceeded its overall time budget."""

    error_code = ErrorCode.RUN_TIMEOUT
    default_message = "Run exceeded its timeout"
    default_suggestions = [
        "Raise --timeout for slow subjects",
        "Use --timeout 0 to disable the run timeout",
    ]


class OperatorAbort(SystemExit):
    """The operator quit from the manual-mode prompt.

    Derived from SystemExit with a non-zero code: it is not an Exception, so
    scenario catch boundaries let it through and the whole run ends. Cleanup
    registered in ``finally`` blocks still runs while it unwinds.
    """

    error_code = ErrorCode.RUN_ABORTED

    def __init__(self, message: str = "Run aborted by operator", code: int = 1) -> None:
        super().__init__(code)
        self.message = message

    def __str__(self) -> str:
        return self.message
