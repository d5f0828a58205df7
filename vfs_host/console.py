"""Shared Rich console instance for CLI output."""

from rich.console import Console

console = Console(stderr=True)

__all__ = ["console"]
