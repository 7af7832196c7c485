"""Configuration settings and loading."""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spexrun.core.models import ExecutionConfig, Speed
from spexrun.errors import ConfigError

DEFAULT_CONFIG_FILE = "spexrun.yaml"
ENV_PREFIX = "SPEXRUN_"

SubjectKind = Literal["process", "docker", "external"]


class SpexSettings(BaseSettings):
    """Project-level defaults for spexrun."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pattern: str = "spec/**/*_spec.py"
    speed: Speed = Speed.NORMAL
    manual: bool = False
    timeout_ms: int = Field(default=60_000, ge=0)
    host: str = "localhost"
    port: int = Field(default=9999, ge=1, le=65535)
    watch: bool = False
    subject: SubjectKind | None = None
    command: str | None = None
    app_path: str | None = None
    compose_file: str | None = None
    compose_services: list[str] = Field(default_factory=list)
    screenshot_dir: str = "spec/screenshots"
    readiness_interval_ms: int = Field(default=1000, ge=0)
    readiness_attempts: int = Field(default=30, ge=1)
    preempt_port: bool = True
    verbose: bool = False

    @field_validator("speed", mode="before")
    @classmethod
    def validate_speed(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            valid = [s.value for s in Speed]
            if v not in valid:
                raise ValueError(f"Invalid speed '{v}'. Valid: {', '.join(valid)}")
        return v

    @field_validator("compose_services", mode="before")
    @classmethod
    def validate_services(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @property
    def resolved_subject(self) -> SubjectKind:
        """The subject kind, inferred from command/compose_file when unset."""
        if self.subject is not None:
            return self.subject
        if self.command:
            return "process"
        if self.compose_file:
            return "docker"
        return "external"

    @property
    def command_args(self) -> list[str]:
        return shlex.split(self.command) if self.command else []

    def with_overrides(self, **overrides: Any) -> SpexSettings:
        """Return a copy with the non-None ``overrides`` applied and validated."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        try:
            return SpexSettings(**{**self.model_dump(), **updates})
        except ValidationError as e:
            raise ConfigError(message=_describe(e), cause=e) from e

    def to_execution_config(self) -> ExecutionConfig:
        try:
            return ExecutionConfig.create(
                speed=self.speed,
                manual=self.manual,
                timeout_ms=self.timeout_ms,
                host=self.host,
                port=self.port,
                watch_after_success=self.watch,
                readiness_interval_ms=self.readiness_interval_ms,
                readiness_attempts=self.readiness_attempts,
                screenshot_dir=self.screenshot_dir,
                preempt_port=self.preempt_port,
            )
        except ValidationError as e:
            raise ConfigError(message=_describe(e), cause=e) from e


def _describe(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "config"
        problems.append(f"{location}: {item['msg']}")
    return "Invalid configuration: " + "; ".join(problems)


def load_config(config_path: str | Path | None = None) -> SpexSettings:
    """Load settings from file and environment.

    Priority: CLI args > env vars > config file > defaults. CLI arguments are
    applied afterwards with ``SpexSettings.with_overrides``. Without an
    explicit path, ``spexrun.yaml`` in the working directory is used if it
    exists.

    Raises:
        ConfigError: The file is missing, not valid YAML, or holds invalid values.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        default = Path(DEFAULT_CONFIG_FILE)
        if default.exists():
            config_path = default
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(message=f"Config file not found: {config_path}")

    if config_path is not None:
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(message=f"Invalid YAML in {config_path}: {e}", cause=e) from e
        if not isinstance(config_data, dict):
            raise ConfigError(message=f"{config_path} must contain a mapping of settings")

    # Values given to the constructor beat the environment, so file values
    # that the environment also sets are dropped here.
    env_fields = {
        name
        for name in SpexSettings.model_fields
        if f"{ENV_PREFIX}{name.upper()}" in os.environ
    }
    config_data = {k: v for k, v in config_data.items() if k not in env_fields}

    try:
        return SpexSettings(**config_data)
    except ValidationError as e:
        raise ConfigError(message=_describe(e), cause=e) from e
