"""CLI interface for the playoff pool."""

from .collect_data import app as main

__all__ = ["main"]
