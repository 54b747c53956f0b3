"""Unit tests for Linux mount discovery.

Tests for mountinfo parsing, octal unescaping and the LinuxDiscoverer.
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from dsk.discovery.classify import EXT_SUPER_MAGIC, PROC_SUPER_MAGIC
from dsk.discovery.linux import (
    FsStats,
    LinuxDiscoverer,
    parse_mountinfo_line,
    resolve_mapper_device,
    split_mountinfo_fields,
    statfs,
    unescape_octal,
)
from dsk.models.mount import DeviceType


class TestSplitMountinfoFields:
    """Tests for split_mountinfo_fields function."""

    def test_splits_on_spaces_and_tabs(self) -> None:
        """Runs of spaces and tabs separate fields."""
        assert split_mountinfo_fields("a  b\tc") == ["a", "b", "c"]

    def test_escaped_space_stays_in_field(self) -> None:
        """An escaped space is decoded and does not split the field."""
        assert split_mountinfo_fields("36 35 /mnt/a\\040b rw") == ["36", "35", "/mnt/a b", "rw"]

    def test_escaped_tab_and_newline(self) -> None:
        """Escaped tab and newline are decoded in place."""
        assert split_mountinfo_fields("x\\011y z\\012") == ["x\ty", "z\n"]

    def test_other_escapes_preserved(self) -> None:
        """Escapes of non-separator characters are kept verbatim."""
        assert split_mountinfo_fields("/mnt/a\\134b /x\\101") == ["/mnt/a\\134b", "/x\\101"]

    def test_incomplete_escape_is_literal(self) -> None:
        """A backslash without three octal digits is an ordinary character."""
        assert split_mountinfo_fields("/mnt/a\\09 b") == ["/mnt/a\\09", "b"]


class TestUnescapeOctal:
    """Tests for unescape_octal function."""

    def test_decodes_escaped_space(self) -> None:
        """The classic escaped-space mountpoint decodes."""
        assert unescape_octal("/mnt/a\\040b") == "/mnt/a b"

    def test_decodes_backslash_once(self) -> None:
        """An escaped backslash decodes to a single backslash."""
        assert unescape_octal("/mnt/a\\134b") == "/mnt/a\\b"

    def test_fast_path(self) -> None:
        """Values without backslashes are returned unchanged."""
        value = "/home/user"
        assert unescape_octal(value) is value

    def test_invalid_escape_kept(self) -> None:
        """Backslashes not followed by three octal digits are kept."""
        assert unescape_octal("a\\9bc") == "a\\9bc"

    def test_split_then_unescape_backslash(self) -> None:
        """Split plus unescape decodes an escaped backslash exactly once."""
        fields = split_mountinfo_fields("/mnt/a\\134040b")
        assert unescape_octal(fields[0]) == "/mnt/a\\040b"


class TestParseMountinfoLine:
    """Tests for parse_mountinfo_line function."""

    def test_zero_and_three_optional_fields_same_count(self) -> None:
        """The optional-field block collapses to one logical field."""
        bare = parse_mountinfo_line("36 35 98:0 /mnt1 /mnt2 rw,noatime - ext3 /dev/root rw,errors=continue")
        tagged = parse_mountinfo_line(
            "36 35 98:0 /mnt1 /mnt2 rw,noatime master:1 shared:2 propagate_from:3 - ext3 /dev/root rw"
        )
        assert len(bare) == len(tagged) == 11
        assert bare[8] == tagged[8] == "ext3"
        assert bare[9] == tagged[9] == "/dev/root"
        assert tagged[6] == "master:1 shared:2 propagate_from:3"
        assert bare[6] == ""

    def test_positions(self) -> None:
        """Mountpoint and options keep their positions."""
        fields = parse_mountinfo_line("22 1 8:1 / /boot rw,relatime shared:1 - vfat /dev/sda1 rw")
        assert fields[4] == "/boot"
        assert fields[5] == "rw,relatime"
        assert fields[7] == "-"

    def test_without_super_options(self) -> None:
        """A line without super options yields the minimum of ten fields."""
        assert len(parse_mountinfo_line("22 1 8:1 / / rw - ext4 /dev/sda1")) == 10

    def test_without_separator(self) -> None:
        """A line with no separator is truncated so it fails validation."""
        assert len(parse_mountinfo_line("22 1 8:1 / / rw shared:1 ext4 /dev/sda1 rw")) == 6


class TestResolveMapperDevice:
    """Tests for resolve_mapper_device function."""

    def test_rewrites_vg_lv(self) -> None:
        """VG-LV names become /dev/VG/LV."""
        assert resolve_mapper_device("/dev/mapper/vg0-home") == "/dev/vg0/home"

    def test_splits_at_last_dash(self) -> None:
        """Names with extra dashes split at the last one, which may be wrong."""
        assert resolve_mapper_device("/dev/mapper/my-vg-root") == "/dev/my-vg/root"

    def test_leaves_other_devices(self) -> None:
        """Non-mapper and dashless mapper names are unchanged."""
        assert resolve_mapper_device("/dev/sda1") == "/dev/sda1"
        assert resolve_mapper_device("/dev/mapper/cryptroot") == "/dev/mapper/cryptroot"


class TestLinuxDiscoverer:
    """Tests for LinuxDiscoverer class."""

    @staticmethod
    def _fake_statfs(path: str) -> FsStats:
        if path == "/proc":
            return FsStats(fs_type=PROC_SUPER_MAGIC, block_size=4096)
        if path == "/mnt/my disk":
            raise OSError(13, "Permission denied", path)
        return FsStats(
            fs_type=EXT_SUPER_MAGIC,
            block_size=4096,
            blocks=1000,
            blocks_free=400,
            blocks_available=300,
            files=100,
            files_free=40,
        )

    @pytest.fixture
    def mountinfo(self, tmp_path: Path, mountinfo_text: str) -> Path:
        """Write sample mountinfo to a file."""
        path = tmp_path / "mountinfo"
        path.write_text(mountinfo_text)
        return path

    def test_platform(self) -> None:
        """Discoverer handles linux."""
        assert LinuxDiscoverer().platform == "linux"

    def test_discover_mounts(self, mountinfo: Path) -> None:
        """Every valid line becomes a mount; blanks and comments are skipped."""
        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            result = LinuxDiscoverer(mountinfo).discover()

        assert [m.mountpoint for m in result.mounts] == ["/", "/proc", "/mnt/my disk", "/home"]

    def test_root_mount_fields(self, mountinfo: Path) -> None:
        """Sizes are computed from statfs blocks."""
        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            root = LinuxDiscoverer(mountinfo).discover().mounts[0]

        assert root.device == "/dev/sda1"
        assert root.device_type == DeviceType.LOCAL
        assert root.fs_type == "ext4"
        assert root.raw_type == "ext2/ext3"
        assert root.opts == "rw,relatime"
        assert root.total == 1000 * 4096
        assert root.free == 300 * 4096
        assert root.used == 600 * 4096
        assert root.inodes == 100
        assert root.inodes_free == 40
        assert root.inodes_used == 60
        assert root.blocks == 1000
        assert root.block_size == 4096

    def test_special_mount(self, mountinfo: Path) -> None:
        """Pseudo filesystems are classified by their magic."""
        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            proc = LinuxDiscoverer(mountinfo).discover().mounts[1]

        assert proc.device_type == DeviceType.SPECIAL
        assert proc.raw_type == "proc"
        assert proc.blocks == 0

    def test_statfs_failure_zeroes_stats(self, mountinfo: Path) -> None:
        """A failed statfs keeps the mount with zero stats and warns."""
        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            result = LinuxDiscoverer(mountinfo).discover()

        disk = result.mounts[2]
        assert disk.device == "/dev/sdb1"
        assert disk.fs_type == "xfs"
        assert (disk.total, disk.free, disk.used, disk.inodes, disk.blocks) == (0, 0, 0, 0, 0)
        assert "/mnt/my disk: Unable to get filesystem stats (Permission denied)" in result.warnings

    def test_mapper_device_rewritten(self, mountinfo: Path) -> None:
        """Device-mapper sources are rewritten."""
        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            home = LinuxDiscoverer(mountinfo).discover().mounts[3]

        assert home.device == "/dev/vg0/home"

    def test_invalid_line_warns(self, mountinfo: Path) -> None:
        """Malformed lines are skipped with a warning."""
        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            result = LinuxDiscoverer(mountinfo).discover()

        assert "Invalid mountinfo line: broken line" in result.warnings
        assert len(result.warnings) == 2

    def test_extra_field_line_warns(self, tmp_path: Path) -> None:
        """A line with a token after the super options is skipped with a warning."""
        line = "47 22 8:2 / /data rw,relatime - ext4 /dev/sda2 rw extra"
        path = tmp_path / "mountinfo"
        path.write_text("22 1 8:1 / / rw,relatime shared:1 - ext4 /dev/sda1 rw\n" + line + "\n")

        with patch("dsk.discovery.linux.statfs", side_effect=self._fake_statfs):
            result = LinuxDiscoverer(path).discover()

        assert [m.mountpoint for m in result.mounts] == ["/"]
        assert result.warnings == [f"Invalid mountinfo line: {line}"]

    def test_missing_mountinfo(self, tmp_path: Path) -> None:
        """An unreadable mount table gives no mounts and one warning."""
        result = LinuxDiscoverer(tmp_path / "missing").discover()

        assert result.mounts == []
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Error reading")


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="statfs(2) via glibc")
class TestStatfs:
    """Tests for the real statfs call."""

    def test_root(self) -> None:
        """statfs on / returns plausible block data."""
        stats = statfs("/")
        assert stats.block_size > 0
        assert stats.blocks > 0

    def test_missing_path(self, tmp_path: Path) -> None:
        """statfs on a missing path raises OSError."""
        with pytest.raises(OSError):
            statfs(str(tmp_path / "does-not-exist"))
