"""Reporters for spexrun."""

from spexrun.reporters.base import NullReporter, Reporter
from spexrun.reporters.console import ConsoleReporter

__all__ = ["ConsoleReporter", "NullReporter", "Reporter"]
