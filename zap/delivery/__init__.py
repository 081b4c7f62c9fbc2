"""
Delivery layer: SQLite persistence and the terminal front-end.

Components:
- StateStore: SQLite cards, XP totals and session history
- cli: Typer/Rich commands (zap due, zap review, zap focus, zap progress)
"""

from .state_store import StateStore

__all__ = ["StateStore"]
