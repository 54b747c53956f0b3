"""Sparklines and trend direction for usage history."""

from collections.abc import Sequence
from enum import Enum

SPARKLINE_WIDTH = 8
TREND_THRESHOLD = 0.02

SPARK_CHARS = "▁▂▃▄▅▆▇█"
ASCII_SPARK_CHARS = "_.-=+*#@"

# Series with a smaller spread are drawn flat
_FLAT_RANGE = 0.001


class TrendDirection(str, Enum):
    """Direction of recent usage change."""

    STABLE = "stable"
    UP = "up"
    DOWN = "down"


def empty_sparkline(width: int = SPARKLINE_WIDTH, use_ascii: bool = False) -> str:
    """Placeholder shown for mounts without history."""
    return ("-" if use_ascii else "·") * width


def render(values: Sequence[float], width: int = SPARKLINE_WIDTH, use_ascii: bool = False) -> str:
    """Render a usage series as a sparkline.

    The newest ``width`` values are scaled between their minimum and
    maximum. Shorter series are left-padded with a gap character. A
    flat series is drawn at the height of its value.

    Args:
        values: Usage ratios, oldest first.
        width: Number of characters to produce.
        use_ascii: Use ASCII characters instead of block elements.

    Returns:
        Sparkline string exactly ``width`` characters long.
    """
    if not values:
        return empty_sparkline(width, use_ascii)

    chars = ASCII_SPARK_CHARS if use_ascii else SPARK_CHARS
    gap = " " if use_ascii else "·"
    top = len(chars) - 1

    recent = list(values[-width:])
    padding = gap * (width - len(recent))

    low = min(recent)
    spread = max(recent) - low

    if spread < _FLAT_RANGE:
        index = min(max(int(recent[0] * top), 0), top)
        return padding + chars[index] * len(recent)

    line = "".join(chars[min(max(int((value - low) / spread * top), 0), top)] for value in recent)
    return padding + line


def trend(values: Sequence[float]) -> TrendDirection:
    """Compare the first and last of the newest three values.

    Returns:
        UP or DOWN when usage moved by more than TREND_THRESHOLD,
        STABLE otherwise (including series with fewer than two values).
    """
    if len(values) < 2:
        return TrendDirection.STABLE

    recent = values[-3:]
    diff = recent[-1] - recent[0]
    if diff > TREND_THRESHOLD:
        return TrendDirection.UP
    if diff < -TREND_THRESHOLD:
        return TrendDirection.DOWN
    return TrendDirection.STABLE
