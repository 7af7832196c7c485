"""spexrun CLI - command line interface for spexrun."""

from spexrun.cli.commands import cli


def main() -> None:
    """Main entry point for the spexrun CLI."""
    cli()


__all__ = ["cli", "main"]
