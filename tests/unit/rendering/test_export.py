"""Unit tests for JSON, CSV, Markdown and HTML export."""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from dsk.core.history import HistoryData, UsageSnapshot
from dsk.models.mount import DeviceType, Mount
from dsk.rendering.columns import Column
from dsk.rendering.export import to_csv, to_html, to_json, to_markdown
from dsk.rendering.table import UsageThresholds

MakeMount = Callable[..., Mount]


class TestToJson:
    """Tests for to_json function."""

    def test_records(self, make_mount: MakeMount) -> None:
        """Each mount becomes an object with the documented keys."""
        data = json.loads(to_json([make_mount()]))

        assert len(data) == 1
        assert data[0]["mount_point"] == "/"
        assert data[0]["device_type"] == "local"
        assert data[0]["type"] == "ext2/ext3"
        assert data[0]["total"] == 100 << 30

    def test_empty(self) -> None:
        """No mounts is an empty array."""
        assert json.loads(to_json([])) == []


class TestToCsv:
    """Tests for to_csv function."""

    def test_raw_values(self, make_mount: MakeMount) -> None:
        """Sizes are raw bytes and usage a one-decimal percentage."""
        output = to_csv([make_mount()], [Column.MOUNTPOINT, Column.SIZE, Column.USAGE, Column.TYPE])

        assert output == f"mountpoint,size,usage,type\n/,{100 << 30},50.0,ext4\n"

    def test_quoting(self, make_mount: MakeMount) -> None:
        """Values with commas are quoted."""
        output = to_csv([make_mount(mountpoint="/mnt/a,b")], [Column.MOUNTPOINT])
        assert output == 'mountpoint\n"/mnt/a,b"\n'

    def test_trend(self, make_mount: MakeMount) -> None:
        """Trend is the direction name, or - without history."""
        start = datetime(2025, 1, 1, tzinfo=UTC)
        history = HistoryData(
            mounts={"/": [UsageSnapshot(start + timedelta(days=i), u) for i, u in enumerate([0.1, 0.5])]}
        )
        mounts = [make_mount(), make_mount(device="/dev/sdb1", mountpoint="/srv")]

        output = to_csv(mounts, [Column.MOUNTPOINT, Column.TREND], history)

        assert output == "mountpoint,trend\n/,up\n/srv,-\n"


class TestToMarkdown:
    """Tests for to_markdown function."""

    def test_table(self, make_mount: MakeMount) -> None:
        """Headers, alignment row and human-readable values."""
        output = to_markdown([make_mount()], [Column.MOUNTPOINT, Column.SIZE, Column.USAGE, Column.INODES])

        assert output.splitlines() == [
            "| Mounted on | Size | Use% | Inodes |",
            "| --- | --: | :-: | --: |",
            "| / | 100.0G | 50.0% | 6,553,600 |",
        ]
        assert output.endswith("\n")

    def test_pipes_escaped(self, make_mount: MakeMount) -> None:
        """Pipes in text values are escaped."""
        output = to_markdown([make_mount(device="a|b")], [Column.FILESYSTEM])
        assert "| a\\|b |" in output


class TestToHtml:
    """Tests for to_html function."""

    def test_document(self, make_mount: MakeMount) -> None:
        """The report is a full page with a title and timestamp."""
        output = to_html([make_mount()], [Column.MOUNTPOINT], now=datetime(2025, 1, 2, 3, 4, 5))

        assert output.startswith("<!DOCTYPE html>\n")
        assert "<h1>Disk Usage</h1>" in output
        assert '<p class="timestamp">Generated: 2025-01-02 03:04:05</p>' in output
        assert output.endswith("</html>\n")

    def test_grouped_by_device_type(self, make_mount: MakeMount) -> None:
        """One headed table per device type, local before network."""
        mounts = [
            make_mount(device="nas:/export", device_type=DeviceType.NETWORK, mountpoint="/mnt/nas"),
            make_mount(),
            make_mount(device="/dev/sdb1", mountpoint="/home"),
        ]

        output = to_html(mounts, [Column.MOUNTPOINT, Column.SIZE])

        assert output.count("<table>") == 2
        assert output.index("<h2>2 local devices</h2>") < output.index("<h2>1 network device</h2>")
        assert '<th class="right">Size</th>' in output
        assert '<td class="right">100.0G</td>' in output

    def test_values_escaped(self, make_mount: MakeMount) -> None:
        """Markup in mount data is escaped."""
        mount = make_mount(mountpoint="/mnt/<a&b>", device='"dev"')

        output = to_html([mount], [Column.MOUNTPOINT, Column.FILESYSTEM])

        assert '<td class="left mountpoint">/mnt/&lt;a&amp;b&gt;</td>' in output
        assert '<td class="left muted">&quot;dev&quot;</td>' in output
        assert "<a&b>" not in output

    def test_threshold_classes(self, make_mount: MakeMount) -> None:
        """Usage and available space carry threshold classes."""
        mount = make_mount(used=95 << 30, free=5 << 30)

        output = to_html([mount], [Column.AVAIL, Column.USAGE])

        assert '<td class="right usage-medium">5.0G</td>' in output
        assert '<td class="center usage-high">95.0%</td>' in output

    def test_custom_usage_thresholds(self, make_mount: MakeMount) -> None:
        """Usage classes follow the given thresholds."""
        thresholds = UsageThresholds(warning=0.6, danger=0.8)

        output = to_html([make_mount()], [Column.USAGE], usage_thresholds=thresholds)

        assert '<td class="center usage-low">50.0%</td>' in output

    def test_trend(self, make_mount: MakeMount) -> None:
        """Mounts with history get a sparkline, others a muted dash."""
        start = datetime(2025, 1, 1, tzinfo=UTC)
        history = HistoryData(
            mounts={"/": [UsageSnapshot(start + timedelta(days=i), u) for i, u in enumerate([0.1, 0.5])]}
        )
        mounts = [make_mount(), make_mount(device="/dev/sdb1", mountpoint="/srv")]

        output = to_html(mounts, [Column.TREND], history)

        assert '<td class="left trend">' in output
        assert '<td class="left muted">-</td>' in output

    def test_empty(self) -> None:
        """Without mounts the page has no tables."""
        output = to_html([], [Column.MOUNTPOINT])

        assert "<table>" not in output
        assert "<h2>" not in output
