"""CLI commands for dupectl.

This package contains all subcommand implementations.
"""

from dupectl.cli.commands import clean, config, history, scan

__all__ = ["clean", "config", "history", "scan"]
