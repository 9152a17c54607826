"""Command-line interface for Kalshi Brackets."""

from kalshi_brackets.cli.commands import main

__all__ = ["main"]
