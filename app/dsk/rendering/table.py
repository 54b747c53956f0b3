"""Rich table rendering for mounts.

Mounts are shown as one table per device type. Usage is drawn as a
small bar colored by usage thresholds; available space is colored by
byte thresholds.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from dsk.core.history import HistoryData
from dsk.discovery.classify import effective_device_type
from dsk.models.mount import DeviceType, Mount
from dsk.rendering.columns import (
    COLUMN_HEADERS,
    DEFAULT_COLUMNS,
    NUMERIC_COLUMNS,
    Column,
    sort_mounts,
)
from dsk.rendering.sparkline import TrendDirection, empty_sparkline, render, trend
from dsk.utils.formatting import format_size, parse_size

BAR_WIDTH = 8

DEVICE_TYPE_ORDER: tuple[DeviceType, ...] = (
    DeviceType.LOCAL,
    DeviceType.NETWORK,
    DeviceType.FUSE,
    DeviceType.SPECIAL,
    DeviceType.LOOP,
    DeviceType.BIND,
)

_TREND_STYLES: dict[TrendDirection, str] = {
    TrendDirection.UP: "trend_up",
    TrendDirection.DOWN: "trend_down",
    TrendDirection.STABLE: "muted",
}


@dataclass(frozen=True, slots=True)
class UsageThresholds:
    """Usage ratios at which bars turn to the warning and danger colors."""

    warning: float = 0.5
    danger: float = 0.9


@dataclass(frozen=True, slots=True)
class AvailThresholds:
    """Free byte counts below which avail turns to the warning and danger colors."""

    warning: int = 10 << 30
    danger: int = 1 << 30


@dataclass(frozen=True, slots=True)
class TableOptions:
    """Settings for table rendering.

    Attributes:
        columns: Columns to show, in order.
        sort_by: Column to sort each table by.
        use_ascii: Draw borders, bars and sparklines with ASCII only.
        width: Fixed table width, or None to fit the terminal.
        avail_thresholds: Coloring thresholds for the avail column.
        usage_thresholds: Coloring thresholds for usage bars.
        history: Usage history for the trend column.
    """

    columns: tuple[Column, ...] = DEFAULT_COLUMNS
    sort_by: Column = Column.MOUNTPOINT
    use_ascii: bool = False
    width: int | None = None
    avail_thresholds: AvailThresholds = AvailThresholds()
    usage_thresholds: UsageThresholds = UsageThresholds()
    history: HistoryData | None = None


def _split_pair(value: str, what: str) -> tuple[str, str]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2 or not all(parts):
        msg = f"Invalid {what} threshold {value!r}: expected two comma-separated values"
        raise ValueError(msg)
    return parts[0], parts[1]


def parse_usage_thresholds(value: str) -> UsageThresholds:
    """Parse ``"WARNING,DANGER"`` usage ratios such as ``"0.5,0.9"``.

    Raises:
        ValueError: If the value is malformed or a ratio is outside 0..1.
    """
    first, second = _split_pair(value, "usage")
    try:
        warning, danger = float(first), float(second)
    except ValueError:
        msg = f"Invalid usage threshold {value!r}: values must be numbers"
        raise ValueError(msg) from None
    if not (0.0 <= warning <= 1.0 and 0.0 <= danger <= 1.0):
        msg = f"Invalid usage threshold {value!r}: values must be between 0 and 1"
        raise ValueError(msg)
    return UsageThresholds(warning=warning, danger=danger)


def parse_avail_thresholds(value: str) -> AvailThresholds:
    """Parse ``"WARNING,DANGER"`` sizes such as ``"10G,1G"``.

    Raises:
        ValueError: If the value is malformed or a size cannot be parsed.
    """
    first, second = _split_pair(value, "avail")
    return AvailThresholds(warning=parse_size(first), danger=parse_size(second))


def usage_style(usage: float, thresholds: UsageThresholds) -> str:
    if usage >= thresholds.danger:
        return "usage_high"
    if usage >= thresholds.warning:
        return "usage_medium"
    return "usage_low"


def avail_style(free: int, thresholds: AvailThresholds) -> str:
    if free < thresholds.danger:
        return "usage_high"
    if free < thresholds.warning:
        return "usage_medium"
    return "usage_low"


def usage_bar(usage: float, thresholds: UsageThresholds, use_ascii: bool = False) -> Text:
    """Build a usage bar like ``[████░░░░] 50.0%``.

    Args:
        usage: Usage ratio between 0.0 and 1.0.
        thresholds: Coloring thresholds.
        use_ascii: Use ``#`` and ``-`` instead of block characters.

    Returns:
        Styled Rich Text.
    """
    filled_char, empty_char = ("#", "-") if use_ascii else ("█", "░")
    filled = min(max(round(usage * BAR_WIDTH), 0), BAR_WIDTH)
    style = usage_style(usage, thresholds)

    return Text.assemble(
        "[",
        (filled_char * filled, style),
        (empty_char * (BAR_WIDTH - filled), "bar_empty"),
        "] ",
        (f"{usage * 100:.1f}%", style),
    )


def trend_cell(mount: Mount, history: HistoryData | None, use_ascii: bool = False) -> Text:
    """Sparkline of a mount's recent usage, colored by trend direction."""
    points = history.get_history(mount.mountpoint) if history is not None else []
    if not points:
        return Text(empty_sparkline(use_ascii=use_ascii), style="muted")
    return Text(render(points, use_ascii=use_ascii), style=_TREND_STYLES[trend(points)])


def _cell(mount: Mount, column: Column, options: TableOptions) -> Text | str:
    match column:
        case Column.MOUNTPOINT:
            return f"[mountpoint]{escape(mount.mountpoint)}[/]"
        case Column.SIZE:
            return format_size(mount.total)
        case Column.USED:
            return format_size(mount.used)
        case Column.AVAIL:
            style = avail_style(mount.free, options.avail_thresholds)
            return f"[{style}]{format_size(mount.free)}[/]"
        case Column.USAGE:
            return usage_bar(mount.usage, options.usage_thresholds, options.use_ascii)
        case Column.INODES:
            return f"{mount.inodes:,}"
        case Column.INODES_USED:
            return f"{mount.inodes_used:,}"
        case Column.INODES_AVAIL:
            return f"{mount.inodes_free:,}"
        case Column.INODES_USAGE:
            return usage_bar(mount.inode_usage, options.usage_thresholds, options.use_ascii)
        case Column.TYPE:
            return f"[muted]{escape(mount.fs_type)}[/]"
        case Column.FILESYSTEM:
            return f"[muted]{escape(mount.device)}[/]"
        case Column.TREND:
            return trend_cell(mount, options.history, options.use_ascii)


def group_by_device_type(mounts: Sequence[Mount]) -> list[tuple[DeviceType, list[Mount]]]:
    """Group mounts by effective device type in display order, skipping empty groups."""
    groups: dict[DeviceType, list[Mount]] = {device_type: [] for device_type in DEVICE_TYPE_ORDER}
    for mount in mounts:
        groups[effective_device_type(mount)].append(mount)
    return [(device_type, members) for device_type, members in groups.items() if members]


def create_mount_table(device_type: DeviceType, mounts: Sequence[Mount], options: TableOptions) -> Table:
    """Create a table for the mounts of one device type.

    Args:
        device_type: Group shown in the title.
        mounts: Mounts already sorted for display.
        options: Rendering settings.

    Returns:
        Rich Table titled like ``"3 local devices"``.
    """
    noun = "device" if len(mounts) == 1 else "devices"
    table = Table(
        title=f"{len(mounts)} {device_type.value} {noun}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
        box=box.ASCII if options.use_ascii else box.ROUNDED,
        width=options.width,
    )
    for column in options.columns:
        justify = "right" if column in NUMERIC_COLUMNS else "left"
        table.add_column(COLUMN_HEADERS[column], justify=justify, no_wrap=column is Column.MOUNTPOINT)

    for mount in mounts:
        table.add_row(*(_cell(mount, column, options) for column in options.columns))

    return table


def build_tables(mounts: Sequence[Mount], options: TableOptions) -> list[Table]:
    """Create one sorted table per non-empty device type group."""
    return [
        create_mount_table(device_type, sort_mounts(members, options.sort_by, options.history), options)
        for device_type, members in group_by_device_type(mounts)
    ]


def print_tables(mounts: Sequence[Mount], options: TableOptions, console: Console) -> None:
    """Print the mount tables to a console."""
    for table in build_tables(mounts, options):
        console.print(table)
