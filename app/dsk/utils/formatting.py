"""Rich console and size formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import sys

from rich.console import Console
from rich.markup import escape

from dsk.core.theme import get_theme

KB = 1 << 10
MB = 1 << 20
GB = 1 << 30
TB = 1 << 40
PB = 1 << 50
EB = 1 << 60

_UNITS: tuple[tuple[int, str], ...] = (
    (EB, "E"),
    (PB, "P"),
    (TB, "T"),
    (GB, "G"),
    (MB, "M"),
    (KB, "K"),
)

_SUFFIXES: dict[str, int] = {suffix: factor for factor, suffix in _UNITS}


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())

_theme_pushed = False


def apply_theme(name: str | None) -> None:
    """Switch both shared consoles to a named palette.

    Replaces any palette applied earlier. Unknown names use the dark palette.

    Args:
        name: Palette name (dark, light or ansi).
    """
    global _theme_pushed
    theme = get_theme(name)
    for target in (console, err_console):
        if _theme_pushed:
            target.pop_theme()
        target.push_theme(theme)
    _theme_pushed = True


def format_size(size: int) -> str:
    """Format a byte count as a short human-readable string.

    Uses binary units with one decimal place, e.g. ``1.5G``. Values
    below one kibibyte are printed as whole bytes (``512B``).

    Args:
        size: Size in bytes.

    Returns:
        Human-readable size string.
    """
    for factor, suffix in _UNITS:
        if size >= factor:
            return f"{size / factor:.1f}{suffix}"
    return f"{size}B"


def parse_size(value: str) -> int:
    """Parse a size string with an optional binary suffix into bytes.

    Accepts a run of digits followed by at most one of ``K M G T P E``
    (case-insensitive). Anything after the suffix is ignored.

    Args:
        value: Size string such as ``"10G"`` or ``"4096"``.

    Returns:
        Size in bytes.

    Raises:
        ValueError: If the string has no leading digits or an unknown suffix.
    """
    text = value.strip()
    digits = 0
    while digits < len(text) and text[digits].isdigit():
        digits += 1

    if digits == 0:
        msg = f"Invalid size: {value!r}"
        raise ValueError(msg)

    number = int(text[:digits])
    if digits == len(text):
        return number

    suffix = text[digits].upper()
    if suffix not in _SUFFIXES:
        msg = f"Invalid size suffix in {value!r}"
        raise ValueError(msg)
    return number * _SUFFIXES[suffix]


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")
