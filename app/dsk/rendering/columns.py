"""Output columns and mount sorting."""

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Any

from dsk.core.history import HistoryData
from dsk.models.mount import Mount
from dsk.rendering.sparkline import TrendDirection, trend


class Column(str, Enum):
    """Output column identifiers, also used as sort keys."""

    MOUNTPOINT = "mountpoint"
    SIZE = "size"
    USED = "used"
    AVAIL = "avail"
    USAGE = "usage"
    INODES = "inodes"
    INODES_USED = "inodes_used"
    INODES_AVAIL = "inodes_avail"
    INODES_USAGE = "inodes_usage"
    TYPE = "type"
    FILESYSTEM = "filesystem"
    TREND = "trend"


COLUMN_HEADERS: dict[Column, str] = {
    Column.MOUNTPOINT: "Mounted on",
    Column.SIZE: "Size",
    Column.USED: "Used",
    Column.AVAIL: "Avail",
    Column.USAGE: "Use%",
    Column.INODES: "Inodes",
    Column.INODES_USED: "IUsed",
    Column.INODES_AVAIL: "IAvail",
    Column.INODES_USAGE: "IUse%",
    Column.TYPE: "Type",
    Column.FILESYSTEM: "Filesystem",
    Column.TREND: "Trend",
}

DEFAULT_COLUMNS: tuple[Column, ...] = (
    Column.MOUNTPOINT,
    Column.SIZE,
    Column.USED,
    Column.AVAIL,
    Column.USAGE,
    Column.TYPE,
    Column.FILESYSTEM,
)

DEFAULT_INODE_COLUMNS: tuple[Column, ...] = (
    Column.MOUNTPOINT,
    Column.INODES,
    Column.INODES_USED,
    Column.INODES_AVAIL,
    Column.INODES_USAGE,
    Column.TYPE,
    Column.FILESYSTEM,
)

# Right-aligned in tables
NUMERIC_COLUMNS: frozenset[Column] = frozenset(
    {
        Column.SIZE,
        Column.USED,
        Column.AVAIL,
        Column.INODES,
        Column.INODES_USED,
        Column.INODES_AVAIL,
    }
)

_SORT_KEYS: dict[Column, Callable[[Mount], Any]] = {
    Column.MOUNTPOINT: lambda m: m.mountpoint,
    Column.SIZE: lambda m: m.total,
    Column.USED: lambda m: m.used,
    Column.AVAIL: lambda m: m.free,
    Column.USAGE: lambda m: m.usage,
    Column.INODES: lambda m: m.inodes,
    Column.INODES_USED: lambda m: m.inodes_used,
    Column.INODES_AVAIL: lambda m: m.inodes_free,
    Column.INODES_USAGE: lambda m: m.inode_usage,
    Column.TYPE: lambda m: m.fs_type,
    Column.FILESYSTEM: lambda m: m.device,
}

_TREND_RANK: dict[TrendDirection, int] = {
    TrendDirection.UP: 2,
    TrendDirection.STABLE: 1,
    TrendDirection.DOWN: 0,
}


def parse_columns(spec: str | Iterable[str] | None, inodes: bool = False) -> list[Column]:
    """Parse a column list such as ``"mountpoint,size,usage"``.

    Unknown names are ignored. If nothing valid remains, the default
    columns are returned (inode columns when ``inodes`` is set).

    Args:
        spec: Comma-separated names, a list of names (config), or None.
        inodes: Whether inode columns are the default.

    Returns:
        Columns in the order given.
    """
    names: list[str] = []
    if isinstance(spec, str):
        names = spec.split(",")
    elif spec is not None:
        for item in spec:
            names.extend(item.split(","))

    columns: list[Column] = []
    for name in names:
        try:
            columns.append(Column(name.strip().lower()))
        except ValueError:
            continue

    if columns:
        return columns
    return list(DEFAULT_INODE_COLUMNS if inodes else DEFAULT_COLUMNS)


def parse_sort(spec: str | None) -> Column:
    """Parse a sort key, falling back to the mountpoint for unknown names."""
    if not spec:
        return Column.MOUNTPOINT
    try:
        return Column(spec.strip().lower())
    except ValueError:
        return Column.MOUNTPOINT


def sort_mounts(
    mounts: Sequence[Mount],
    sort_by: Column,
    history: HistoryData | None = None,
) -> list[Mount]:
    """Sort mounts ascending by a column.

    Sorting by trend puts filling mounts first, then stable, then
    freeing ones, each group ordered by descending usage. Without
    history, trend sorting falls back to the mountpoint.
    """
    if sort_by is Column.TREND:
        if history is None:
            return sorted(mounts, key=_SORT_KEYS[Column.MOUNTPOINT])
        return sorted(
            mounts,
            key=lambda m: (-_TREND_RANK[trend(history.get_history(m.mountpoint))], -m.usage),
        )
    return sorted(mounts, key=_SORT_KEYS[sort_by])
