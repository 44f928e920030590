"""Coloured status messages printed to the terminal."""

from __future__ import annotations

import os
import sys

from rich.console import Console
from rich.text import Text


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _glyph(emoji: str, fallback: str) -> str:
    """Pick the emoji if standard output can encode it, else the fallback."""
    encoding = getattr(sys.stdout, "encoding", None) or "ascii"
    try:
        emoji.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return fallback
    return emoji


def _emit(prefix: str, message: str, colour: str) -> None:
    console = Console(highlight=False, soft_wrap=True, emoji=False, markup=False)
    console.print(Text.assemble((prefix, colour), " ", (message, colour)))


def warn(message: object) -> None:
    """Print a warning line in red."""
    prefix = "!" if no_emoji() else _glyph("⚠️ ", "!")
    _emit(prefix, str(message), "red")


def success(message: object) -> None:
    """Print a success line in green."""
    prefix = "✓" if no_emoji() else _glyph("✅", "✓")
    _emit(prefix, str(message), "green")