"""macOS mount discovery.

Enumerates mounted filesystems with getfsstat(2). The first call with a
NULL buffer returns the number of mounts; the second fills an array of
fixed-layout ``struct statfs`` records.
"""

import ctypes
import ctypes.util
import logging
import os
from collections.abc import Callable
from typing import Any

from dsk.discovery.base import DiscoveryResult, MountDiscoverer
from dsk.discovery.classify import darwin_device_type
from dsk.models.mount import Mount

logger = logging.getLogger(__name__)

MFSTYPENAMELEN = 16
MAXPATHLEN = 1024

MNT_WAIT = 1
MNT_NOWAIT = 2

# Mount flags (sys/mount.h)
MNT_RDONLY = 0x00000001
MNT_SYNCHRONOUS = 0x00000002
MNT_NOEXEC = 0x00000004
MNT_NOSUID = 0x00000008
MNT_NODEV = 0x00000010
MNT_UNION = 0x00000020
MNT_ASYNC = 0x00000040
MNT_DONTBROWSE = 0x00100000
MNT_AUTOMOUNTED = 0x00400000
MNT_JOURNALED = 0x00800000
MNT_MULTILABEL = 0x04000000
MNT_NOATIME = 0x10000000

# Order matters: it is the order options appear in Mount.opts
_FLAG_NAMES: tuple[tuple[int, str], ...] = (
    (MNT_SYNCHRONOUS, "sync"),
    (MNT_NOEXEC, "noexec"),
    (MNT_NOSUID, "nosuid"),
    (MNT_UNION, "union"),
    (MNT_ASYNC, "async"),
    (MNT_DONTBROWSE, "nobrowse"),
    (MNT_AUTOMOUNTED, "automounted"),
    (MNT_JOURNALED, "journaled"),
    (MNT_MULTILABEL, "multilabel"),
    (MNT_NOATIME, "noatime"),
    (MNT_NODEV, "nodev"),
)

GetfsstatFunc = Callable[[Any, int, int], int]


class DarwinStatfs(ctypes.Structure):
    """``struct statfs`` with 64-bit inode layout."""

    _fields_ = [
        ("f_bsize", ctypes.c_uint32),
        ("f_iosize", ctypes.c_int32),
        ("f_blocks", ctypes.c_uint64),
        ("f_bfree", ctypes.c_uint64),
        ("f_bavail", ctypes.c_uint64),
        ("f_files", ctypes.c_uint64),
        ("f_ffree", ctypes.c_uint64),
        ("f_fsid", ctypes.c_int32 * 2),
        ("f_owner", ctypes.c_uint32),
        ("f_type", ctypes.c_uint32),
        ("f_flags", ctypes.c_uint32),
        ("f_fssubtype", ctypes.c_uint32),
        ("f_fstypename", ctypes.c_ubyte * MFSTYPENAMELEN),
        ("f_mntonname", ctypes.c_ubyte * MAXPATHLEN),
        ("f_mntfromname", ctypes.c_ubyte * MAXPATHLEN),
        ("f_flags_ext", ctypes.c_uint32),
        ("f_reserved", ctypes.c_uint32 * 7),
    ]


def decode_cstring(buffer: bytes) -> str:
    """Decode a fixed-size NUL-terminated byte buffer.

    Args:
        buffer: Raw bytes, possibly padded with NULs.

    Returns:
        UTF-8 text up to the first NUL byte (empty if none precedes it).
    """
    end = buffer.find(b"\0")
    if end == -1:
        end = len(buffer)
    if end == 0:
        return ""
    return buffer[:end].decode("utf-8", errors="replace")


def build_mount_options(flags: int) -> str:
    """Render a mount flags word as comma-joined option names.

    Always starts with ``ro`` or ``rw``, followed by every other flag set.
    """
    opts = ["ro" if flags & MNT_RDONLY else "rw"]
    opts.extend(name for bit, name in _FLAG_NAMES if flags & bit)
    return ",".join(opts)


def mount_from_statfs(stat: DarwinStatfs) -> Mount | None:
    """Convert one getfsstat record into a Mount.

    Args:
        stat: A filled statfs record.

    Returns:
        Mount, or None if the record has no device name.
    """
    device = decode_cstring(bytes(stat.f_mntfromname))
    if not device:
        return None

    fs_type = decode_cstring(bytes(stat.f_fstypename))
    block_size = stat.f_bsize

    return Mount(
        device=device,
        device_type=darwin_device_type(fs_type),
        mountpoint=decode_cstring(bytes(stat.f_mntonname)),
        fs_type=fs_type,
        raw_type=fs_type,
        opts=build_mount_options(stat.f_flags),
        total=stat.f_blocks * block_size,
        free=stat.f_bavail * block_size,
        used=max(0, stat.f_blocks - stat.f_bfree) * block_size,
        inodes=stat.f_files,
        inodes_free=stat.f_ffree,
        inodes_used=max(0, stat.f_files - stat.f_ffree),
        blocks=stat.f_blocks,
        block_size=block_size,
    )


def _load_getfsstat() -> GetfsstatFunc:
    """Resolve getfsstat from libSystem, preferring the 64-bit inode variant."""
    libc = ctypes.CDLL(ctypes.util.find_library("c") or "libSystem.B.dylib", use_errno=True)
    for symbol in ("getfsstat$INODE64", "getfsstat"):
        try:
            func = getattr(libc, symbol)
        except AttributeError:
            continue
        func.restype = ctypes.c_int
        return func
    msg = "getfsstat is not available in libc"
    raise OSError(msg)


def _last_error() -> str:
    errno = ctypes.get_errno()
    return os.strerror(errno) if errno else "unknown error"


class DarwinDiscoverer(MountDiscoverer):
    """Discoverer backed by getfsstat(2).

    Args:
        getfsstat: Callable with the getfsstat signature. Defaults to the
            libSystem function, resolved on first use.
    """

    def __init__(self, getfsstat: GetfsstatFunc | None = None) -> None:
        self._getfsstat = getfsstat

    @property
    def platform(self) -> str:
        """Return 'darwin' as the handled platform."""
        return "darwin"

    def discover(self) -> DiscoveryResult:
        """Snapshot all mounted filesystems.

        Returns:
            DiscoveryResult; on getfsstat failure the mount list is empty
            and the failure is the only warning.
        """
        result = DiscoveryResult()

        try:
            getfsstat = self._getfsstat or _load_getfsstat()
        except OSError as e:
            result.warnings.append(f"getfsstat unavailable: {e}")
            return result

        count = getfsstat(None, 0, MNT_WAIT)
        if count <= 0:
            result.warnings.append(f"getfsstat failed: {_last_error()}")
            return result

        records = (DarwinStatfs * count)()
        count = getfsstat(records, ctypes.sizeof(records), MNT_WAIT)
        if count <= 0:
            result.warnings.append(f"getfsstat failed: {_last_error()}")
            return result

        # The table can shrink between the two calls
        for stat in records[: min(count, len(records))]:
            mount = mount_from_statfs(stat)
            if mount is None:
                logger.debug("Skipping getfsstat record without a device name")
                continue
            result.mounts.append(mount)

        return result
