"""Rich console reporter.

Example:
    >>> from spexrun.reporters import ConsoleReporter
    >>> reporter = ConsoleReporter()
    >>> reporter.start_spec("user login", {"tags": ["auth"]})
    >>> reporter.step("Given", "a registered user")
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from spexrun.core.models import RunOutcome
from spexrun.reporters.base import Reporter


def _error_text(error: BaseException) -> str:
    return str(error) or type(error).__name__


class ConsoleReporter(Reporter):
    """Prints specification progress to the terminal."""

    SYMBOLS = {
        "unicode": {"pass": "✓", "fail": "✗", "spec": "▶"},
        "ascii": {"pass": "[PASS]", "fail": "[FAIL]", "spec": ">"},
    }

    def __init__(
        self,
        console: Console | None = None,
        use_unicode: bool = True,
        verbose: bool = False,
    ) -> None:
        self.console = console or Console()
        self.verbose = verbose
        self._symbols = self.SYMBOLS["unicode" if use_unicode else "ascii"]

    def _symbol(self, name: str) -> str:
        return self._symbols[name]

    def start_spec(self, name: str, opts: dict[str, Any]) -> None:
        self.console.print()
        self.console.print(f"[bold blue]{self._symbol('spec')} Spec:[/bold blue] [bold]{escape(name)}[/bold]")
        self.console.rule(style="blue")
        if opts.get("description"):
            self.console.print(f"   {escape(opts['description'])}")
        if opts.get("tags"):
            tag_str = " ".join(f"#{tag}" for tag in opts["tags"])
            self.console.print(f"   [dim]Tags: {escape(tag_str)}[/dim]")

    def spec_passed(self, name: str) -> None:
        self.console.print(f"[green]{self._symbol('pass')} Spec passed:[/green] {escape(name)}")

    def spec_failed(self, name: str, error: BaseException) -> None:
        self.console.print(f"[red]{self._symbol('fail')} Spec failed:[/red] {escape(name)}")
        self.console.print(f"   [red]Error:[/red] {escape(_error_text(error))}")

    def start_scenario(self, name: str) -> None:
        self.console.print(f"  [cyan]Scenario:[/cyan] {escape(name)}")

    def scenario_passed(self, name: str) -> None:
        self.console.print(f"  [green]{self._symbol('pass')} Scenario passed:[/green] {escape(name)}")
        self.console.print()

    def scenario_failed(self, name: str, error: BaseException) -> None:
        self.console.print(f"  [red]{self._symbol('fail')} Scenario failed:[/red] {escape(name)}")
        self.console.print(f"     [red]Error:[/red] {escape(_error_text(error))}")
        if self.verbose and hasattr(error, "format_verbose"):
            self.console.print(escape(error.format_verbose()), highlight=False)
        self.console.print()

    def step(self, kind: str, description: str) -> None:
        self.console.print(f"    [bold]{escape(kind)}:[/bold] {escape(description)}")

    def run_summary(self, outcome: RunOutcome) -> None:
        self.console.print()
        table = Table(title="Run summary", show_header=True, header_style="bold")
        table.add_column("Specifications", justify="right")
        table.add_column("Scenarios passed", justify="right", style="green")
        table.add_column("Scenarios failed", justify="right", style="red")
        table.add_column("Duration", justify="right")
        table.add_row(
            str(outcome.specifications_run),
            str(outcome.scenarios_passed),
            str(outcome.scenarios_failed),
            f"{outcome.duration_ms / 1000:.2f}s",
        )
        self.console.print(table)

        if outcome.failures:
            self.console.print("[red]Failures:[/red]")
            for failure in outcome.failures:
                self.console.print(
                    f"  - {escape(failure.spec_name)} > {escape(failure.scenario_name)}: "
                    f"{escape(failure.message)}"
                )
        else:
            self.console.print(f"[green]{self._symbol('pass')} All specifications passed[/green]")
