"""Interactive terminal front end."""

from __future__ import annotations

from .commands import Command, parse_command
from .repl import TerminalSession, render_outcomes

__all__ = ["Command", "TerminalSession", "parse_command", "render_outcomes"]
