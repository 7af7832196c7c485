"""CLI commands for spexrun."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import click
from rich.console import Console

from spexrun.capabilities import DefaultCapabilities
from spexrun.config import SpexSettings, load_config
from spexrun.core.models import Specification, Speed
from spexrun.discovery import discover_specifications
from spexrun.errors import ConfigError, SpexError
from spexrun.infra import (
    DockerComposeSubject,
    ExternalSubject,
    ProcessSubject,
    ReadinessProber,
    SubjectLifecycle,
    SubjectManager,
    preempt_port,
)
from spexrun.reporters import ConsoleReporter
from spexrun.runner import SpecificationRunner, StepExecutor
from spexrun.runner.filters import TagFilter
from spexrun.runner.orchestrator import RunOrchestrator

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level.

    Without --verbose only warnings are logged; the reporter owns the console.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_subject(settings: SpexSettings) -> SubjectManager:
    """Create the subject manager selected by the settings."""
    kind = settings.resolved_subject
    if kind == "process":
        if not settings.command:
            raise ConfigError(
                message="A process subject needs a command",
                suggestions=["Pass --command 'python -m myapp' or set command in spexrun.yaml"],
            )
        return ProcessSubject(settings.command_args, cwd=settings.app_path)
    if kind == "docker":
        return DockerComposeSubject(
            compose_file=settings.compose_file,
            services=settings.compose_services,
        )
    return ExternalSubject()


def build_orchestrator(
    settings: SpexSettings,
    files: tuple[str, ...],
    tag_filter: TagFilter,
    console: Console,
) -> RunOrchestrator:
    """Wire the configured run together."""
    config = settings.to_execution_config()
    subject = build_subject(settings)

    preempt = None
    if config.preempt_port and not isinstance(subject, ExternalSubject):
        preempt = preempt_port

    prober = ReadinessProber(
        config.host,
        config.port,
        interval_ms=config.readiness_interval_ms,
        max_attempts=config.readiness_attempts,
    )
    reporter = ConsoleReporter(console=console, verbose=settings.verbose)
    executor = StepExecutor(config, capabilities=DefaultCapabilities(config), console=console)

    return RunOrchestrator(
        config=config,
        lifecycle=SubjectLifecycle(subject, prober, preempt=preempt),
        runner=SpecificationRunner(executor, reporter),
        discover=lambda: discover_specifications(files, settings.pattern),
        reporter=reporter,
        tag_filter=tag_filter,
        console=console,
    )


def _report_error(error: SpexError, verbose: bool) -> None:
    if verbose:
        click.echo(error.format_verbose(), err=True)
        return
    click.echo(f"Error: {error}", err=True)
    for suggestion in error.suggestions:
        click.echo(f"  - {suggestion}", err=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.version_option(package_name="spexrun")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """spexrun - executable Given/When/Then specifications against a live subject."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config


def _load_settings(ctx: click.Context, config_path: str | None, **overrides: Any) -> SpexSettings:
    try:
        settings = load_config(config_path or ctx.obj.get("config_path"))
        settings = settings.with_overrides(**overrides)
    except ConfigError as e:
        _report_error(e, bool(ctx.obj.get("verbose")))
        sys.exit(1)
    if ctx.obj.get("verbose"):
        settings = settings.with_overrides(verbose=True)
    setup_logging(settings.verbose)
    return settings


@cli.command()
@click.argument("files", nargs=-1, type=click.Path())
@click.option("--pattern", "-p", default=None, help="Glob used when no files are given")
@click.option("--verbose", "-v", is_flag=True, default=None, help="Enable verbose output")
@click.option("--timeout", "timeout_ms", type=click.IntRange(min=0), default=None, help="Run timeout in ms (0 disables)")
@click.option(
    "--speed",
    type=click.Choice([s.value for s in Speed]),
    default=None,
    help="Step pacing",
)
@click.option("--manual", is_flag=True, default=None, help="Pause before every step")
@click.option("--watch", is_flag=True, default=None, help="Keep the subject running after a successful run")
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="Port the subject listens on")
@click.option("--host", default=None, help="Host the subject listens on")
@click.option("--tag", "tags", multiple=True, help="Only run items with this tag (repeatable)")
@click.option("--exclude-tag", "exclude_tags", multiple=True, help="Skip items with this tag (repeatable)")
@click.option("--only-filtered", is_flag=True, help="Skip untagged items when filtering")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Path to config file")
@click.option(
    "--subject",
    type=click.Choice(["process", "docker", "external"]),
    default=None,
    help="How the subject is managed",
)
@click.option("--command", "command", default=None, help="Command that starts a process subject")
@click.option("--app-path", default=None, type=click.Path(file_okay=False), help="Working directory of the subject")
@click.option("--no-preempt", is_flag=True, help="Do not kill processes already bound to the port")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format of the run summary",
)
@click.pass_context
def run(
    ctx: click.Context,
    files: tuple[str, ...],
    pattern: str | None,
    verbose: bool | None,
    timeout_ms: int | None,
    speed: str | None,
    manual: bool | None,
    watch: bool | None,
    port: int | None,
    host: str | None,
    tags: tuple[str, ...],
    exclude_tags: tuple[str, ...],
    only_filtered: bool,
    config_path: str | None,
    subject: str | None,
    command: str | None,
    app_path: str | None,
    no_preempt: bool,
    output_format: str,
) -> None:
    """Run specifications against the subject-under-test.

    Without FILES, specification files are discovered with --pattern.
    Exits 0 when every scenario passed and 1 otherwise.
    """
    settings = _load_settings(
        ctx,
        config_path,
        pattern=pattern,
        verbose=verbose or None,
        timeout_ms=timeout_ms,
        speed=speed,
        manual=manual or None,
        watch=watch or None,
        port=port,
        host=host,
        subject=subject,
        command=command,
        app_path=app_path,
        preempt_port=False if no_preempt else None,
    )
    tag_filter = TagFilter.create(include=tags, exclude=exclude_tags, strict=only_filtered)
    console = Console(stderr=output_format == "json")

    try:
        orchestrator = build_orchestrator(settings, files, tag_filter, console)
        outcome = orchestrator.run()
    except SpexError as e:
        _report_error(e, settings.verbose)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        sys.exit(130)

    if output_format == "json":
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.specifications_run == 0:
        click.echo("No specifications found.")

    sys.exit(outcome.exit_code)


def _spec_to_dict(spec: Specification) -> dict[str, Any]:
    return {
        "name": spec.name,
        "description": spec.description,
        "tags": sorted(spec.tags),
        "source": spec.source,
        "scenarios": [
            {
                "name": s.name,
                "tags": sorted(s.tags),
                "uses_context": s.uses_context,
                "steps": [step.label for step in s.steps],
            }
            for s in spec.scenarios
        ],
    }


@cli.command("list")
@click.argument("files", nargs=-1, type=click.Path())
@click.option("--pattern", "-p", default=None, help="Glob used when no files are given")
@click.option("--tag", "tags", multiple=True, help="Only list items with this tag (repeatable)")
@click.option("--exclude-tag", "exclude_tags", multiple=True, help="Skip items with this tag (repeatable)")
@click.option("--only-filtered", is_flag=True, help="Skip untagged items when filtering")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_context
def list_specs(
    ctx: click.Context,
    files: tuple[str, ...],
    pattern: str | None,
    tags: tuple[str, ...],
    exclude_tags: tuple[str, ...],
    only_filtered: bool,
    output_format: str,
) -> None:
    """List discovered specifications and their scenarios."""
    settings = _load_settings(ctx, None, pattern=pattern)
    tag_filter = TagFilter.create(include=tags, exclude=exclude_tags, strict=only_filtered)

    try:
        specs = tag_filter.apply(discover_specifications(files, settings.pattern))
    except SpexError as e:
        _report_error(e, settings.verbose)
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps([_spec_to_dict(s) for s in specs], indent=2))
        return

    if not specs:
        click.echo(f"No specifications found matching {settings.pattern}")
        return

    click.echo(f"Found {len(specs)} specification(s):\n")
    for spec in specs:
        tag_str = f" [{', '.join(sorted(spec.tags))}]" if spec.tags else ""
        click.echo(f"  • {spec.name}{tag_str} ({spec.source})")
        for scenario in spec.scenarios:
            click.echo(f"      - {scenario.name} ({len(scenario.steps)} step(s))")
