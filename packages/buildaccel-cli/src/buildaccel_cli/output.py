"""Console messages for buildaccel commands.

All command output goes through one module-level Rich console so that
``--no-color`` and the ``NO_COLOR`` environment variable apply everywhere.
Tables and JSON are written by ``buildaccel_core.output`` onto the console
returned by ``get_console()``.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.markup import escape

# Status symbols and their colors
_MARKS = {
    "success": ("✓", "green"),
    "error": ("✗", "red"),
    "warning": ("⚠", "yellow"),
}


def create_console(no_color: bool = False) -> Console:
    """Create a console; colors are off when asked to or when NO_COLOR is set."""
    plain = no_color or "NO_COLOR" in os.environ
    return Console(force_terminal=False if plain else None, no_color=plain)


console = create_console()


def get_console() -> Console:
    """Return the console currently used for command output."""
    return console


def set_no_color(no_color: bool) -> None:
    """Replace the module console, e.g. from the --no-color callback."""
    global console
    console = create_console(no_color=no_color)


def _mark(kind: str, message: str, **kwargs: Any) -> None:
    symbol, color = _MARKS[kind]
    console.print(f"[{color}]{symbol}[/{color}] {escape(message)}", **kwargs)


def success(message: str, **kwargs: Any) -> None:
    """Print ``✓ message``."""
    _mark("success", message, **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print ``✗ message``."""
    _mark("error", message, **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print ``⚠ message``."""
    _mark("warning", message, **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print a plain line."""
    console.print(message, **kwargs)
