"""Linux mount discovery.

Reads the process mount table from /proc/self/mountinfo and queries
statfs(2) on every mount point for block, inode and filesystem-type data.

A mountinfo line looks like::

    36 35 98:0 /mnt1 /mnt2 rw,noatime master:1 - ext3 /dev/root rw,errors=continue
    (0)(1)(2)   (3)   (4)      (5)      (6..)  (-) (8)    (9)          (10)

Fields 6.. are a variable number of optional tagged fields terminated by a
lone ``-``. Paths may contain octal escapes such as ``\\040`` for a space.
"""

import ctypes
import ctypes.util
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from dsk.discovery.base import DiscoveryResult, MountDiscoverer
from dsk.discovery.classify import linux_device_type, linux_fs_name
from dsk.models.mount import Mount

logger = logging.getLogger(__name__)

MOUNTINFO_PATH = Path("/proc/self/mountinfo")

# Logical field positions once the optional-field block is collapsed into one
_MOUNT_POINT = 4
_MOUNT_OPTS = 5
_OPTIONAL_FIELDS = 6
_FS_TYPE = 8
_MOUNT_SOURCE = 9

_MIN_FIELDS = 10
_MAX_FIELDS = 11

_FIELD_SEPARATORS: frozenset[str] = frozenset(" \t")

# Escapes decoded while splitting; everything else is left for unescape_octal()
_SPLIT_DECODED: frozenset[str] = frozenset(" \t\n")

_OCTAL_DIGITS: frozenset[str] = frozenset("01234567")

# /dev/mapper/VG-LV -> /dev/VG/LV (ambiguous when either name contains a dash)
_MAPPER_PATTERN = re.compile(r"^/dev/mapper/(.*)-(.*)$")


@dataclass(frozen=True, slots=True)
class FsStats:
    """Subset of ``struct statfs`` used to build a mount record.

    All fields default to zero, which is also what a mount gets when
    the statfs call fails.
    """

    fs_type: int = 0
    block_size: int = 0
    blocks: int = 0
    blocks_free: int = 0
    blocks_available: int = 0
    files: int = 0
    files_free: int = 0


class _Statfs(ctypes.Structure):
    _fields_ = [
        ("f_type", ctypes.c_long),
        ("f_bsize", ctypes.c_long),
        ("f_blocks", ctypes.c_ulong),
        ("f_bfree", ctypes.c_ulong),
        ("f_bavail", ctypes.c_ulong),
        ("f_files", ctypes.c_ulong),
        ("f_ffree", ctypes.c_ulong),
        ("f_fsid", ctypes.c_int * 2),
        ("f_namelen", ctypes.c_long),
        ("f_frsize", ctypes.c_long),
        ("f_flags", ctypes.c_long),
        ("f_spare", ctypes.c_long * 4),
    ]


_libc: ctypes.CDLL | None = None


def _get_libc() -> ctypes.CDLL:
    global _libc
    if _libc is None:
        libc = ctypes.CDLL(ctypes.util.find_library("c") or "libc.so.6", use_errno=True)
        libc.statfs.argtypes = [ctypes.c_char_p, ctypes.POINTER(_Statfs)]
        libc.statfs.restype = ctypes.c_int
        _libc = libc
    return _libc


def statfs(path: str) -> FsStats:
    """Query filesystem statistics for a path via statfs(2).

    ``os.statvfs`` does not expose ``f_type``, so the call goes through
    libc directly.

    Args:
        path: Any path on the filesystem of interest.

    Returns:
        FsStats for the filesystem containing ``path``.

    Raises:
        OSError: If the call fails (permission denied, stale handle, ...).
    """
    buf = _Statfs()
    if _get_libc().statfs(os.fsencode(path), ctypes.byref(buf)) != 0:
        errno = ctypes.get_errno()
        raise OSError(errno, os.strerror(errno), path)
    return FsStats(
        fs_type=buf.f_type,
        block_size=buf.f_bsize,
        blocks=buf.f_blocks,
        blocks_free=buf.f_bfree,
        blocks_available=buf.f_bavail,
        files=buf.f_files,
        files_free=buf.f_ffree,
    )


def _is_octal_escape(text: str, index: int) -> bool:
    """Check for a backslash followed by exactly three octal digits."""
    if index + 4 > len(text) or text[index] != "\\":
        return False
    return all(ch in _OCTAL_DIGITS for ch in text[index + 1 : index + 4])


def split_mountinfo_fields(line: str) -> list[str]:
    """Split a mountinfo line into raw fields.

    Fields are separated by runs of spaces or tabs. Escaped whitespace
    (``\\040``, ``\\011``, ``\\012``) is decoded immediately so it stays
    inside its field; any other octal escape is kept verbatim.

    Args:
        line: One line of mountinfo, without the trailing newline.

    Returns:
        List of non-empty fields.
    """
    fields: list[str] = []
    current: list[str] = []
    i = 0

    while i < len(line):
        char = line[i]

        if char in _FIELD_SEPARATORS:
            if current:
                fields.append("".join(current))
                current = []
            i += 1
            continue

        if _is_octal_escape(line, i):
            decoded = chr(int(line[i + 1 : i + 4], 8))
            current.append(decoded if decoded in _SPLIT_DECODED else line[i : i + 4])
            i += 4
            continue

        current.append(char)
        i += 1

    if current:
        fields.append("".join(current))

    return fields


def unescape_octal(value: str) -> str:
    """Decode every ``\\NNN`` octal escape in a field value.

    Args:
        value: A field produced by split_mountinfo_fields().

    Returns:
        The decoded string; values without backslashes are returned as-is.
    """
    if "\\" not in value:
        return value

    out: list[str] = []
    i = 0
    while i < len(value):
        if _is_octal_escape(value, i):
            out.append(chr(int(value[i + 1 : i + 4], 8)))
            i += 4
        else:
            out.append(value[i])
            i += 1
    return "".join(out)


def parse_mountinfo_line(line: str) -> list[str]:
    """Resolve a mountinfo line into positional logical fields.

    The optional-field block starting at index 6 is collapsed into a
    single space-joined field (empty when there are none), the ``-``
    separator occupies index 7, and the filesystem type, mount source
    and super options follow at 8, 9 and 10.

    Args:
        line: One line of mountinfo.

    Returns:
        Logical fields. A well-formed line yields 11; a line without a
        separator is truncated before the optional block so that it
        fails the field-count check.
    """
    fields: list[str] = []
    optional: list[str] = []
    saw_separator = False

    for token in split_mountinfo_fields(line):
        if len(fields) < _OPTIONAL_FIELDS:
            fields.append(token)
        elif saw_separator:
            fields.append(token)
        elif token == "-":
            fields.append(" ".join(optional))
            fields.append(token)
            saw_separator = True
        else:
            optional.append(token)

    if not saw_separator:
        return fields[:_OPTIONAL_FIELDS]
    return fields


def resolve_mapper_device(device: str) -> str:
    """Rewrite ``/dev/mapper/VG-LV`` to ``/dev/VG/LV``.

    The split happens at the last dash, so names that themselves contain
    dashes are rewritten incorrectly. Device names that do not match are
    returned unchanged.
    """
    found = _MAPPER_PATTERN.match(device)
    if found is None:
        return device
    return f"/dev/{found.group(1)}/{found.group(2)}"


class LinuxDiscoverer(MountDiscoverer):
    """Discoverer backed by /proc/self/mountinfo and statfs(2).

    Args:
        mountinfo_path: Mount table to read. Defaults to the current
            process's view in /proc.
    """

    def __init__(self, mountinfo_path: Path = MOUNTINFO_PATH) -> None:
        self._mountinfo_path = mountinfo_path

    @property
    def platform(self) -> str:
        """Return 'linux' as the handled platform."""
        return "linux"

    def discover(self) -> DiscoveryResult:
        """Parse the mount table and stat every mount point.

        Malformed lines and failed statfs calls are reported as warnings;
        an unreadable mount table yields whatever was read before the
        error plus a warning.

        Returns:
            DiscoveryResult with one mount per valid mountinfo line.
        """
        result = DiscoveryResult()

        try:
            with self._mountinfo_path.open(encoding="utf-8", errors="surrogateescape") as f:
                for raw_line in f:
                    line = raw_line.rstrip("\n")
                    if not line.strip() or line.startswith("#"):
                        continue
                    mount = self._mount_from_line(line, result.warnings)
                    if mount is not None:
                        result.mounts.append(mount)
        except OSError as e:
            result.warnings.append(f"Error reading {self._mountinfo_path}: {e}")

        return result

    def _mount_from_line(self, line: str, warnings: list[str]) -> Mount | None:
        """Build a Mount from one mountinfo line.

        Args:
            line: Mountinfo line without trailing newline.
            warnings: Accumulator for soft failures.

        Returns:
            Mount, or None if the line is malformed.
        """
        fields = parse_mountinfo_line(line)
        if not _MIN_FIELDS <= len(fields) <= _MAX_FIELDS:
            logger.debug("Skipping malformed mountinfo line (fields=%d): %r", len(fields), line)
            warnings.append(f"Invalid mountinfo line: {line}")
            return None

        mountpoint = unescape_octal(fields[_MOUNT_POINT])
        fs_type = unescape_octal(fields[_FS_TYPE])
        device = unescape_octal(fields[_MOUNT_SOURCE])

        try:
            stats = statfs(mountpoint)
        except OSError as e:
            logger.debug("statfs failed for %s: %s", mountpoint, e)
            warnings.append(f"{mountpoint}: Unable to get filesystem stats ({e.strerror or e})")
            stats = FsStats()

        block_size = stats.block_size
        return Mount(
            device=resolve_mapper_device(device),
            device_type=linux_device_type(stats.fs_type),
            mountpoint=mountpoint,
            fs_type=fs_type,
            raw_type=linux_fs_name(stats.fs_type),
            opts=fields[_MOUNT_OPTS],
            total=stats.blocks * block_size,
            free=stats.blocks_available * block_size,
            used=max(0, stats.blocks - stats.blocks_free) * block_size,
            inodes=stats.files,
            inodes_free=stats.files_free,
            inodes_used=max(0, stats.files - stats.files_free),
            blocks=stats.blocks,
            block_size=block_size,
        )
