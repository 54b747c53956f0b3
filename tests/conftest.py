"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from dsk.models.mount import DeviceType, Mount


@pytest.fixture(autouse=True)
def isolated_xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config and state directories at a temporary location."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    return tmp_path


@pytest.fixture
def make_mount() -> Callable[..., Mount]:
    """Factory for Mount records with realistic defaults.

    Defaults describe a 100 GiB ext4 root filesystem at 50% usage.
    """

    def _make(**overrides: Any) -> Mount:
        fields: dict[str, Any] = {
            "device": "/dev/sda1",
            "device_type": DeviceType.LOCAL,
            "mountpoint": "/",
            "fs_type": "ext4",
            "raw_type": "ext2/ext3",
            "opts": "rw,relatime",
            "total": 100 << 30,
            "free": 50 << 30,
            "used": 50 << 30,
            "inodes": 6_553_600,
            "inodes_free": 6_000_000,
            "inodes_used": 553_600,
            "blocks": 26_214_400,
            "block_size": 4096,
        }
        fields.update(overrides)
        return Mount(**fields)

    return _make


@pytest.fixture
def mountinfo_text() -> str:
    """Sample /proc/self/mountinfo content."""
    return (
        "22 1 8:1 / / rw,relatime shared:1 - ext4 /dev/sda1 rw,errors=remount-ro\n"
        "23 22 0:21 / /proc rw,nosuid,nodev,noexec,relatime shared:12 - proc proc rw\n"
        "45 22 8:17 / /mnt/my\\040disk rw,relatime shared:30 master:2 propagate_from:3 - xfs /dev/sdb1 rw\n"
        "\n"
        "# comment line\n"
        "46 22 253:0 / /home rw,relatime - ext4 /dev/mapper/vg0-home rw\n"
        "broken line\n"
    )
