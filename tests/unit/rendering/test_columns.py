"""Unit tests for column parsing and mount sorting."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from dsk.core.history import HistoryData, UsageSnapshot
from dsk.models.mount import Mount
from dsk.rendering.columns import (
    DEFAULT_COLUMNS,
    DEFAULT_INODE_COLUMNS,
    Column,
    parse_columns,
    parse_sort,
    sort_mounts,
)

MakeMount = Callable[..., Mount]


def _history(series: dict[str, list[float]]) -> HistoryData:
    start = datetime(2025, 1, 1, tzinfo=UTC)
    return HistoryData(
        mounts={
            mountpoint: [UsageSnapshot(timestamp=start + timedelta(days=i), usage=u) for i, u in enumerate(values)]
            for mountpoint, values in series.items()
        }
    )


class TestParseColumns:
    """Tests for parse_columns function."""

    def test_order_preserved(self) -> None:
        """Columns keep the order given."""
        assert parse_columns("usage,mountpoint,trend") == [Column.USAGE, Column.MOUNTPOINT, Column.TREND]

    def test_case_and_whitespace(self) -> None:
        """Names are trimmed and case-insensitive."""
        assert parse_columns(" Size , AVAIL") == [Column.SIZE, Column.AVAIL]

    def test_unknown_names_ignored(self) -> None:
        """Unknown names are skipped."""
        assert parse_columns("size,bogus,used") == [Column.SIZE, Column.USED]

    def test_list_input(self) -> None:
        """Config lists are accepted."""
        assert parse_columns(["mountpoint", "inodes,inodes_usage"]) == [
            Column.MOUNTPOINT,
            Column.INODES,
            Column.INODES_USAGE,
        ]

    @pytest.mark.parametrize("spec", [None, "", "bogus", []])
    def test_defaults(self, spec: str | list[str] | None) -> None:
        """Nothing valid falls back to the defaults."""
        assert parse_columns(spec) == list(DEFAULT_COLUMNS)

    def test_inode_defaults(self) -> None:
        """Inode mode switches the default columns."""
        assert parse_columns(None, inodes=True) == list(DEFAULT_INODE_COLUMNS)


class TestParseSort:
    """Tests for parse_sort function."""

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("size", Column.SIZE),
            ("USAGE", Column.USAGE),
            ("trend", Column.TREND),
            (None, Column.MOUNTPOINT),
            ("nonsense", Column.MOUNTPOINT),
        ],
    )
    def test_parse(self, spec: str | None, expected: Column) -> None:
        """Known keys parse; anything else sorts by mountpoint."""
        assert parse_sort(spec) == expected


class TestSortMounts:
    """Tests for sort_mounts function."""

    @pytest.fixture
    def mounts(self, make_mount: MakeMount) -> list[Mount]:
        """Three mounts with distinct sizes and usage."""
        gib = 1 << 30
        return [
            make_mount(mountpoint="/srv", total=300 * gib, used=30 * gib, free=270 * gib),
            make_mount(mountpoint="/", total=100 * gib, used=90 * gib, free=10 * gib),
            make_mount(mountpoint="/home", total=200 * gib, used=100 * gib, free=100 * gib),
        ]

    def test_by_mountpoint(self, mounts: list[Mount]) -> None:
        """Default sort is by mountpoint."""
        assert [m.mountpoint for m in sort_mounts(mounts, Column.MOUNTPOINT)] == ["/", "/home", "/srv"]

    def test_by_size(self, mounts: list[Mount]) -> None:
        """Sizes sort ascending."""
        assert [m.mountpoint for m in sort_mounts(mounts, Column.SIZE)] == ["/", "/home", "/srv"]

    def test_by_usage(self, mounts: list[Mount]) -> None:
        """Usage sorts ascending."""
        assert [m.mountpoint for m in sort_mounts(mounts, Column.USAGE)] == ["/srv", "/home", "/"]

    def test_by_trend(self, mounts: list[Mount]) -> None:
        """Growing mounts come first, then stable, then shrinking."""
        history = _history({"/srv": [0.1, 0.2, 0.3], "/": [0.9, 0.9, 0.9], "/home": [0.7, 0.6, 0.5]})
        assert [m.mountpoint for m in sort_mounts(mounts, Column.TREND, history)] == ["/srv", "/", "/home"]

    def test_trend_ties_by_usage(self, mounts: list[Mount]) -> None:
        """Mounts with the same trend are ordered by descending usage."""
        history = HistoryData()
        assert [m.mountpoint for m in sort_mounts(mounts, Column.TREND, history)] == ["/", "/home", "/srv"]

    def test_trend_without_history(self, mounts: list[Mount]) -> None:
        """Without history, trend sort uses the mountpoint."""
        assert [m.mountpoint for m in sort_mounts(mounts, Column.TREND)] == ["/", "/home", "/srv"]

    def test_stable(self, make_mount: MakeMount) -> None:
        """Equal keys keep their input order."""
        mounts = [make_mount(device="/dev/b", mountpoint="/b"), make_mount(device="/dev/a", mountpoint="/a")]
        assert [m.mountpoint for m in sort_mounts(mounts, Column.SIZE)] == ["/b", "/a"]
