"""Plain-text exports: JSON, CSV, Markdown and HTML.

These formats carry no terminal color and are meant for piping into
other tools or saving as a report.
"""

import csv
import html
import io
import json
from collections.abc import Sequence
from datetime import datetime

from dsk.core.history import HistoryData
from dsk.models.mount import Mount
from dsk.rendering.columns import COLUMN_HEADERS, Column
from dsk.rendering.sparkline import render, trend
from dsk.rendering.table import (
    AvailThresholds,
    UsageThresholds,
    avail_style,
    group_by_device_type,
    usage_style,
)
from dsk.utils.formatting import format_size

_MARKDOWN_ALIGN: dict[Column, str] = {
    Column.SIZE: "--:",
    Column.USED: "--:",
    Column.AVAIL: "--:",
    Column.INODES: "--:",
    Column.INODES_USED: "--:",
    Column.INODES_AVAIL: "--:",
    Column.USAGE: ":-:",
    Column.INODES_USAGE: ":-:",
}


def to_json(mounts: Sequence[Mount]) -> str:
    """Serialize mounts as an indented JSON array of mount records."""
    return json.dumps([mount.to_dict() for mount in mounts], indent=2)


def _trend_value(mount: Mount, history: HistoryData | None) -> str:
    points = history.get_history(mount.mountpoint) if history is not None else []
    if not points:
        return "-"
    return trend(points).value


def _raw_value(mount: Mount, column: Column, history: HistoryData | None) -> str:
    match column:
        case Column.MOUNTPOINT:
            return mount.mountpoint
        case Column.SIZE:
            return str(mount.total)
        case Column.USED:
            return str(mount.used)
        case Column.AVAIL:
            return str(mount.free)
        case Column.USAGE:
            return f"{mount.usage * 100:.1f}"
        case Column.INODES:
            return str(mount.inodes)
        case Column.INODES_USED:
            return str(mount.inodes_used)
        case Column.INODES_AVAIL:
            return str(mount.inodes_free)
        case Column.INODES_USAGE:
            return f"{mount.inode_usage * 100:.1f}"
        case Column.TYPE:
            return mount.fs_type
        case Column.FILESYSTEM:
            return mount.device
        case Column.TREND:
            return _trend_value(mount, history)


def to_csv(
    mounts: Sequence[Mount],
    columns: Sequence[Column],
    history: HistoryData | None = None,
) -> str:
    """Serialize mounts as CSV with raw byte counts.

    The header row holds the column names. Usage columns are percentages
    with one decimal; values containing commas, quotes or newlines are
    quoted.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([column.value for column in columns])
    for mount in mounts:
        writer.writerow([_raw_value(mount, column, history) for column in columns])
    return buffer.getvalue()


def _markdown_value(mount: Mount, column: Column, history: HistoryData | None) -> str:
    match column:
        case Column.SIZE:
            return format_size(mount.total)
        case Column.USED:
            return format_size(mount.used)
        case Column.AVAIL:
            return format_size(mount.free)
        case Column.USAGE:
            return f"{mount.usage * 100:.1f}%"
        case Column.INODES | Column.INODES_USED | Column.INODES_AVAIL:
            return f"{int(_raw_value(mount, column, history)):,}"
        case Column.INODES_USAGE:
            return f"{mount.inode_usage * 100:.1f}%"
        case _:
            return _raw_value(mount, column, history).replace("|", "\\|")


def to_markdown(
    mounts: Sequence[Mount],
    columns: Sequence[Column],
    history: HistoryData | None = None,
) -> str:
    """Serialize mounts as a Markdown pipe table with human-readable sizes."""
    lines = [
        "| " + " | ".join(COLUMN_HEADERS[column] for column in columns) + " |",
        "| " + " | ".join(_MARKDOWN_ALIGN.get(column, "---") for column in columns) + " |",
    ]
    for mount in mounts:
        lines.append("| " + " | ".join(_markdown_value(mount, column, history) for column in columns) + " |")
    return "\n".join(lines) + "\n"


_HTML_STYLE = """\
:root {
  --bg: #1a1b26;
  --fg: #c0caf5;
  --accent: #7aa2f7;
  --green: #9ece6a;
  --yellow: #e0af68;
  --red: #f7768e;
  --gray: #565f89;
  --border: #3b4261;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
  font-family: 'SF Mono', 'Cascadia Code', 'Consolas', monospace;
  background: var(--bg);
  color: var(--fg);
  padding: 2rem;
  line-height: 1.6;
}
.container { max-width: 1200px; margin: 0 auto; }
h1 { color: var(--accent); margin-bottom: 0.5rem; }
h2 { color: var(--gray); margin: 2rem 0 1rem; font-size: 1rem; font-weight: normal; }
.timestamp { color: var(--gray); font-size: 0.85rem; margin-bottom: 1rem; }
table { width: 100%; border-collapse: collapse; background: #24283b; }
th, td { padding: 0.75rem 1rem; border-bottom: 1px solid var(--border); }
th { background: #1f2335; text-transform: uppercase; font-size: 0.75rem; }
tr:last-child td { border-bottom: none; }
.left { text-align: left; }
.right { text-align: right; }
.center { text-align: center; }
.mountpoint { color: var(--accent); }
.usage-low { color: var(--green); }
.usage-medium { color: var(--yellow); }
.usage-high { color: var(--red); }
.muted { color: var(--gray); }
"""

_HTML_ALIGN: dict[Column, str] = {
    Column.SIZE: "right",
    Column.USED: "right",
    Column.AVAIL: "right",
    Column.INODES: "right",
    Column.INODES_USED: "right",
    Column.INODES_AVAIL: "right",
    Column.USAGE: "center",
    Column.INODES_USAGE: "center",
}


def _css_class(style: str) -> str:
    return style.replace("_", "-")


def _html_cell(
    mount: Mount,
    column: Column,
    history: HistoryData | None,
    usage_thresholds: UsageThresholds,
    avail_thresholds: AvailThresholds,
) -> tuple[str, str]:
    """Return the display text and CSS class of one cell."""
    match column:
        case Column.MOUNTPOINT:
            return mount.mountpoint, "mountpoint"
        case Column.AVAIL:
            return format_size(mount.free), _css_class(avail_style(mount.free, avail_thresholds))
        case Column.USAGE:
            return f"{mount.usage * 100:.1f}%", _css_class(usage_style(mount.usage, usage_thresholds))
        case Column.INODES_USAGE:
            return f"{mount.inode_usage * 100:.1f}%", _css_class(usage_style(mount.inode_usage, usage_thresholds))
        case Column.TYPE | Column.FILESYSTEM:
            return _raw_value(mount, column, history), "muted"
        case Column.TREND:
            points = history.get_history(mount.mountpoint) if history is not None else []
            if not points:
                return "-", "muted"
            return render(points), "trend"
        case _:
            return _markdown_value(mount, column, history), ""


def to_html(
    mounts: Sequence[Mount],
    columns: Sequence[Column],
    history: HistoryData | None = None,
    usage_thresholds: UsageThresholds | None = None,
    avail_thresholds: AvailThresholds | None = None,
    now: datetime | None = None,
) -> str:
    """Render mounts as a standalone HTML report.

    The page has one table per device type, in the same order as the
    terminal tables, under a heading like ``3 local devices``. Sizes are
    human-readable; usage and available space carry threshold classes.
    Every value is HTML-escaped.

    Args:
        mounts: Mounts to render, in display order.
        columns: Columns to show.
        history: Usage history for the trend column.
        usage_thresholds: Thresholds for the usage classes. Defaults to 0.5 and 0.9.
        avail_thresholds: Thresholds for the available space classes. Defaults to 10G and 1G.
        now: Timestamp printed under the title. Defaults to the current time.

    Returns:
        The complete HTML document.
    """
    usage_thresholds = usage_thresholds or UsageThresholds()
    avail_thresholds = avail_thresholds or AvailThresholds()
    generated = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="UTF-8">',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
        "  <title>Disk Usage - dsk</title>",
        "  <style>",
        _HTML_STYLE,
        "  </style>",
        "</head>",
        "<body>",
        '  <div class="container">',
        "    <h1>Disk Usage</h1>",
        f'    <p class="timestamp">Generated: {generated}</p>',
    ]

    for device_type, members in group_by_device_type(mounts):
        noun = "device" if len(members) == 1 else "devices"
        lines.append(f"    <h2>{len(members)} {device_type.value} {noun}</h2>")
        lines.append("    <table>")
        lines.append("      <thead><tr>")
        for column in columns:
            align = _HTML_ALIGN.get(column, "left")
            lines.append(f'        <th class="{align}">{html.escape(COLUMN_HEADERS[column])}</th>')
        lines.append("      </tr></thead>")
        lines.append("      <tbody>")
        for mount in members:
            lines.append("        <tr>")
            for column in columns:
                value, css = _html_cell(mount, column, history, usage_thresholds, avail_thresholds)
                classes = f"{_HTML_ALIGN.get(column, 'left')} {css}".rstrip()
                lines.append(f'          <td class="{classes}">{html.escape(value)}</td>')
            lines.append("        </tr>")
        lines.append("      </tbody>")
        lines.append("    </table>")

    lines.extend(["  </div>", "</body>", "</html>"])
    return "\n".join(lines) + "\n"
