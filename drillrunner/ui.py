"""Coloured status lines for the terminal."""

import os

from rich.console import Console
from rich.text import Text

_WARN_SYMBOL = "⚠️ "
_WARN_FALLBACK = "!"
_SUCCESS_SYMBOL = "✅"
_SUCCESS_FALLBACK = "✓"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _emit(symbol: str, fallback: str, message: str, colour: str) -> None:
    mark = fallback if no_emoji() else symbol
    console = Console(highlight=False, soft_wrap=True, emoji=False)
    console.print(Text(f"{mark} {message}", style=colour))


def warn(message: str) -> None:
    """Print a red warning line."""
    _emit(_WARN_SYMBOL, _WARN_FALLBACK, message, "red")


def success(message: str) -> None:
    """Print a green success line."""
    _emit(_SUCCESS_SYMBOL, _SUCCESS_FALLBACK, message, "green")