"""Manual-mode operator prompt and the interactive debug shell.

In manual mode every step pauses before its body runs. The operator can
continue, quit the whole run, or drop into a debug shell to look at the
subject-under-test and the scenario's context.

The shell understands a fixed set of commands dispatched to named
capability functions. It does not evaluate arbitrary code.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from rich.console import Console
from rich.markup import escape

from spexrun.capabilities import CapabilityResult, SubjectCapabilities

InputFn = Callable[[str], str]


class PromptChoice(Enum):
    """What the operator decided at a step prompt."""

    CONTINUE = "continue"
    QUIT = "quit"


def _format_value(value: Any) -> str:
    try:
        return json.dumps(value, indent=2, default=str)
    except (TypeError, ValueError):
        return repr(value)


class DebugShell:
    """Read-dispatch-print loop over a restricted command set.

    Every command runs in isolation: an exception is printed and the loop
    carries on. Nothing raised in here ever fails the run.
    """

    PROMPT = "spex> "

    def __init__(
        self,
        capabilities: SubjectCapabilities,
        console: Console | None = None,
        input_fn: InputFn = input,
    ) -> None:
        self.capabilities = capabilities
        self.console = console or Console()
        self.input_fn = input_fn
        self._commands: dict[str, Callable[[str, Mapping[str, Any]], None]] = {
            "help": self._cmd_help,
            "status": self._cmd_status,
            "context": self._cmd_context,
            "get": self._cmd_get,
            "screenshot": self._cmd_screenshot,
            "inspect": self._cmd_inspect,
        }

    def run(self, context: Mapping[str, Any] | None = None) -> None:
        """Loop until 'exit', 'quit', end of input or Ctrl+C."""
        context = context if context is not None else {}
        self.console.print()
        self.console.print("  [bold]Debug shell[/bold] - type 'help' for commands, 'exit' to return")

        while True:
            try:
                line = self.input_fn(self.PROMPT)
            except (EOFError, KeyboardInterrupt):
                self.console.print()
                break

            line = line.strip()
            if not line:
                continue
            if line in ("exit", "quit"):
                break
            self.execute(line, context)

        self.console.print("  Returning to step prompt...")

    def execute(self, line: str, context: Mapping[str, Any]) -> bool:
        """Run one command line. Returns False if the command failed."""
        name, _, arg = line.partition(" ")
        handler = self._commands.get(name.lower())
        if handler is None:
            self.console.print(f"  Unknown command: {escape(name)}. Type 'help' for commands.")
            return False
        try:
            handler(arg.strip(), context)
        except Exception as e:
            self.console.print(f"  [red]Error:[/red] {escape(type(e).__name__)}: {escape(str(e))}")
            return False
        return True

    def _print_result(self, label: str, result: CapabilityResult) -> None:
        if result.ok:
            self.console.print(f"  {label}:")
            self.console.print(escape(_format_value(result.value)), highlight=False)
        else:
            self.console.print(f"  [yellow]{label} failed:[/yellow] {escape(result.error or '')}")

    def _cmd_help(self, arg: str, context: Mapping[str, Any]) -> None:
        self.console.print(
            """
Available commands:
  status              - Subject reachability and status
  context             - Show the full scenario context
  get <key>           - Show one context key
  screenshot [name]   - Capture a screenshot artifact
  inspect             - Inspect the subject's state
  help                - Show this help
  exit, quit          - Return to the step prompt
""",
            markup=False,
            highlight=False,
        )

    def _cmd_status(self, arg: str, context: Mapping[str, Any]) -> None:
        self._print_result("Status", self.capabilities.status())

    def _cmd_context(self, arg: str, context: Mapping[str, Any]) -> None:
        if not context:
            self.console.print("  Context is empty.")
            return
        self.console.print(escape(_format_value(dict(context))), highlight=False)

    def _cmd_get(self, arg: str, context: Mapping[str, Any]) -> None:
        if not arg:
            self.console.print("  Usage: get <key>")
            return
        if arg in context:
            self.console.print(f"  {escape(arg)}:")
            self.console.print(escape(_format_value(context[arg])), highlight=False)
            return
        self.console.print(f"  Key '{escape(arg)}' not found in context.")
        similar = [k for k in context if arg.lower() in k.lower()]
        if similar:
            self.console.print(f"  Similar keys: {escape(', '.join(similar))}")

    def _cmd_screenshot(self, arg: str, context: Mapping[str, Any]) -> None:
        self._print_result("Screenshot", self.capabilities.take_screenshot(arg or None))

    def _cmd_inspect(self, arg: str, context: Mapping[str, Any]) -> None:
        self._print_result("State", self.capabilities.inspect_state())


class ManualStepController:
    """Pauses before each step and asks the operator what to do."""

    PROMPT = "  [ENTER] Continue | [sh] Debug shell | [s] Screenshot | [i] Inspect | [q] Quit: "

    def __init__(
        self,
        capabilities: SubjectCapabilities,
        console: Console | None = None,
        input_fn: InputFn = input,
        shell: DebugShell | None = None,
    ) -> None:
        self.capabilities = capabilities
        self.console = console or Console()
        self.input_fn = input_fn
        self.shell = shell or DebugShell(capabilities, console=self.console, input_fn=input_fn)

    def ask(self, label: str, context: Mapping[str, Any] | None = None) -> PromptChoice:
        """Show the upcoming step and block until the operator decides.

        End of input counts as continue so non-interactive stdin keeps the
        run going; Ctrl+C counts as quit.
        """
        self.console.print()
        self.console.print(f"  [bold cyan]NEXT STEP:[/bold cyan] {escape(label)}")

        while True:
            try:
                answer = self.input_fn(self.PROMPT).strip().lower()
            except EOFError:
                return PromptChoice.CONTINUE
            except KeyboardInterrupt:
                self.console.print()
                return PromptChoice.QUIT

            if answer in ("", "c", "continue"):
                return PromptChoice.CONTINUE
            elif answer in ("q", "quit"):
                return PromptChoice.QUIT
            elif answer in ("sh", "shell"):
                self.shell.run(context)
            elif answer == "s":
                self.shell.execute("screenshot", context or {})
            elif answer == "i":
                self.shell.execute("inspect", context or {})
            else:
                self.console.print(f"  Unknown choice: {escape(answer)}")
