"""Mount models for filesystem discovery.

This module defines the canonical record produced by every platform
backend and consumed by the filter engine and the renderers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DeviceType(str, Enum):
    """Six-way classification of a mount's origin.

    LOCAL, NETWORK, FUSE and SPECIAL are assigned during discovery.
    LOOP and BIND are derived later from the device path and mount
    options.
    """

    LOCAL = "local"
    NETWORK = "network"
    FUSE = "fuse"
    SPECIAL = "special"
    LOOP = "loop"
    BIND = "bind"


def _ratio(used: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return max(0.0, min(1.0, used / total))


@dataclass(frozen=True, slots=True)
class Mount:
    """Snapshot of one mounted filesystem.

    Attributes:
        device: Source device or share identifier (e.g. '/dev/sda1').
        device_type: Classification assigned by the platform backend.
        mountpoint: Absolute path where the filesystem is attached.
        fs_type: Filesystem type name as reported by the mount table.
        raw_type: Platform-native type label (e.g. name derived from the
            statfs magic number on Linux).
        opts: Mount option tokens, comma-joined.
        total: Total size in bytes (blocks * block_size).
        free: Bytes available to unprivileged users.
        used: Bytes in use.
        inodes: Total inode count (0 where the platform has no inodes).
        inodes_free: Free inode count.
        inodes_used: Used inode count.
        blocks: Total number of blocks.
        block_size: Size of one block in bytes.
    """

    device: str
    device_type: DeviceType
    mountpoint: str
    fs_type: str = field(default="")
    raw_type: str = field(default="")
    opts: str = field(default="")
    total: int = field(default=0)
    free: int = field(default=0)
    used: int = field(default=0)
    inodes: int = field(default=0)
    inodes_free: int = field(default=0)
    inodes_used: int = field(default=0)
    blocks: int = field(default=0)
    block_size: int = field(default=0)

    @property
    def usage(self) -> float:
        """Fraction of space in use, clamped to [0.0, 1.0]."""
        return _ratio(self.used, self.total)

    @property
    def inode_usage(self) -> float:
        """Fraction of inodes in use, clamped to [0.0, 1.0]."""
        return _ratio(self.inodes_used, self.inodes)

    @property
    def option_tokens(self) -> tuple[str, ...]:
        """Return mount options split into individual tokens."""
        return tuple(token for token in self.opts.split(",") if token)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Key names are part of the output contract and must not change.
        """
        return {
            "device": self.device,
            "device_type": self.device_type.value,
            "mount_point": self.mountpoint,
            "fs_type": self.fs_type,
            "type": self.raw_type,
            "opts": self.opts,
            "total": self.total,
            "free": self.free,
            "used": self.used,
            "inodes": self.inodes,
            "inodes_free": self.inodes_free,
            "inodes_used": self.inodes_used,
            "blocks": self.blocks,
            "block_size": self.block_size,
        }
