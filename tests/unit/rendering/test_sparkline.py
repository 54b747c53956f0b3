"""Unit tests for sparklines and trend detection."""

import pytest
from dsk.rendering.sparkline import (
    ASCII_SPARK_CHARS,
    SPARK_CHARS,
    SPARKLINE_WIDTH,
    TrendDirection,
    empty_sparkline,
    render,
    trend,
)


class TestEmptySparkline:
    """Tests for empty_sparkline function."""

    def test_unicode(self) -> None:
        """Unicode placeholder is a row of dots."""
        assert empty_sparkline() == "·" * SPARKLINE_WIDTH

    def test_ascii(self) -> None:
        """ASCII placeholder is a row of dashes."""
        assert empty_sparkline(use_ascii=True) == "-" * SPARKLINE_WIDTH


class TestRender:
    """Tests for render function."""

    def test_empty(self) -> None:
        """No values renders the placeholder."""
        assert render([]) == empty_sparkline()

    def test_full_range(self) -> None:
        """Minimum and maximum map to the lowest and highest characters."""
        line = render([0.1, 0.5, 0.9] * 3)
        assert len(line) == SPARKLINE_WIDTH
        assert line[-1] == SPARK_CHARS[-1]
        assert line[-3] == SPARK_CHARS[0]

    def test_padding(self) -> None:
        """Short series are left-padded to the full width."""
        line = render([0.2, 0.8])
        assert line == "·" * 6 + SPARK_CHARS[0] + SPARK_CHARS[-1]

    def test_ascii_padding(self) -> None:
        """ASCII mode pads with spaces."""
        assert render([0.2, 0.8], use_ascii=True) == " " * 6 + ASCII_SPARK_CHARS[0] + ASCII_SPARK_CHARS[-1]

    def test_flat_series(self) -> None:
        """A flat series is drawn at the height of its value."""
        assert render([0.5, 0.5, 0.5]) == "·" * 5 + SPARK_CHARS[3] * 3

    def test_newest_values_only(self) -> None:
        """Only the newest width values are drawn."""
        values = [1.0] * 4 + [0.0] * 8
        assert render(values) == SPARK_CHARS[0] * SPARKLINE_WIDTH

    def test_custom_width(self) -> None:
        """Width controls the output length."""
        assert len(render([0.1, 0.2, 0.3], width=3)) == 3


class TestTrend:
    """Tests for trend function."""

    @pytest.mark.parametrize(
        ("values", "expected"),
        [
            ([], TrendDirection.STABLE),
            ([0.5], TrendDirection.STABLE),
            ([0.5, 0.6], TrendDirection.UP),
            ([0.6, 0.5], TrendDirection.DOWN),
            ([0.5, 0.51], TrendDirection.STABLE),
            ([0.9, 0.1, 0.11, 0.12], TrendDirection.STABLE),
            ([0.1, 0.5, 0.5, 0.6], TrendDirection.UP),
        ],
    )
    def test_direction(self, values: list[float], expected: TrendDirection) -> None:
        """Direction compares the ends of the newest three values."""
        assert trend(values) == expected
