"""Windows mount discovery.

Builds the mount list in three passes:

1. Local volumes enumerated by GUID, one mount per resolved path name.
2. Connected network drives, typed as network and named by their UNC path.
3. Any remaining drive letters from the logical-drives bitmask.

All Win32 calls go through Win32Api so the passes can be exercised with
a fake on other platforms.
"""

import ctypes
import dataclasses
import logging
import string

from dsk.discovery.base import DiscoveryResult, MountDiscoverer
from dsk.discovery.classify import windows_device_type
from dsk.models.mount import DeviceType, Mount

logger = logging.getLogger(__name__)

MAX_PATH = 260

NO_ERROR = 0
ERROR_NO_MORE_FILES = 18
ERROR_MORE_DATA = 234
ERROR_NO_MORE_ITEMS = 259
ERROR_NO_NETWORK = 1222

RESOURCE_CONNECTED = 0x00000001
RESOURCETYPE_DISK = 0x00000001
RESOURCEUSAGE_CONNECTABLE = 0x00000001

_ENUM_BUFFER_SIZE = 16384
_ENUM_ALL_ENTRIES = 0xFFFFFFFF

_DWORD = ctypes.c_uint32
_LPDWORD = ctypes.POINTER(ctypes.c_uint32)
_PULARGE = ctypes.POINTER(ctypes.c_uint64)


class _NetResource(ctypes.Structure):
    _fields_ = [
        ("dwScope", _DWORD),
        ("dwType", _DWORD),
        ("dwDisplayType", _DWORD),
        ("dwUsage", _DWORD),
        ("lpLocalName", ctypes.c_wchar_p),
        ("lpRemoteName", ctypes.c_wchar_p),
        ("lpComment", ctypes.c_wchar_p),
        ("lpProvider", ctypes.c_wchar_p),
    ]


def split_multi_sz(value: str) -> list[str]:
    """Split a double-NUL-terminated string list into its entries."""
    return [entry for entry in value.split("\0") if entry]


def _win_error(code: int | None = None) -> OSError:
    if code is None:
        code = ctypes.get_last_error()  # type: ignore[attr-defined]
    return ctypes.WinError(code)  # type: ignore[attr-defined]


class Win32Api:
    """Thin wrapper over the kernel32 and mpr calls used for discovery.

    Every query either returns plain Python values or raises OSError
    carrying the Win32 error code. Libraries are loaded on first use.
    """

    def __init__(self) -> None:
        self._kernel32: ctypes.CDLL | None = None
        self._mpr: ctypes.CDLL | None = None

    @property
    def kernel32(self) -> ctypes.CDLL:
        if self._kernel32 is None:
            k = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]
            k.FindFirstVolumeW.argtypes = [ctypes.c_wchar_p, _DWORD]
            k.FindFirstVolumeW.restype = ctypes.c_void_p
            k.FindNextVolumeW.argtypes = [ctypes.c_void_p, ctypes.c_wchar_p, _DWORD]
            k.FindNextVolumeW.restype = ctypes.c_int
            k.FindVolumeClose.argtypes = [ctypes.c_void_p]
            k.FindVolumeClose.restype = ctypes.c_int
            k.GetVolumePathNamesForVolumeNameW.argtypes = [
                ctypes.c_wchar_p,
                ctypes.c_wchar_p,
                _DWORD,
                _LPDWORD,
            ]
            k.GetVolumePathNamesForVolumeNameW.restype = ctypes.c_int
            k.GetVolumeInformationW.argtypes = [
                ctypes.c_wchar_p,
                ctypes.c_wchar_p,
                _DWORD,
                _LPDWORD,
                _LPDWORD,
                _LPDWORD,
                ctypes.c_wchar_p,
                _DWORD,
            ]
            k.GetVolumeInformationW.restype = ctypes.c_int
            k.GetDiskFreeSpaceExW.argtypes = [ctypes.c_wchar_p, _PULARGE, _PULARGE, _PULARGE]
            k.GetDiskFreeSpaceExW.restype = ctypes.c_int
            k.GetDiskFreeSpaceW.argtypes = [ctypes.c_wchar_p, _LPDWORD, _LPDWORD, _LPDWORD, _LPDWORD]
            k.GetDiskFreeSpaceW.restype = ctypes.c_int
            k.GetDriveTypeW.argtypes = [ctypes.c_wchar_p]
            k.GetDriveTypeW.restype = _DWORD
            k.GetLogicalDrives.argtypes = []
            k.GetLogicalDrives.restype = _DWORD
            self._kernel32 = k
        return self._kernel32

    @property
    def mpr(self) -> ctypes.CDLL:
        if self._mpr is None:
            m = ctypes.WinDLL("mpr", use_last_error=True)  # type: ignore[attr-defined]
            m.WNetOpenEnumW.argtypes = [_DWORD, _DWORD, _DWORD, ctypes.c_void_p, ctypes.POINTER(ctypes.c_void_p)]
            m.WNetOpenEnumW.restype = _DWORD
            m.WNetEnumResourceW.argtypes = [ctypes.c_void_p, _LPDWORD, ctypes.c_void_p, _LPDWORD]
            m.WNetEnumResourceW.restype = _DWORD
            m.WNetCloseEnum.argtypes = [ctypes.c_void_p]
            m.WNetCloseEnum.restype = _DWORD
            self._mpr = m
        return self._mpr

    def volume_names(self) -> list[str]:
        """Return the GUID path of every volume on the system."""
        k = self.kernel32
        buf = ctypes.create_unicode_buffer(MAX_PATH + 1)
        handle = k.FindFirstVolumeW(buf, len(buf))
        if handle is None or handle == ctypes.c_void_p(-1).value:
            raise _win_error()

        names: list[str] = []
        try:
            while True:
                names.append(buf.value)
                if not k.FindNextVolumeW(handle, buf, len(buf)):
                    error = ctypes.get_last_error()  # type: ignore[attr-defined]
                    if error != ERROR_NO_MORE_FILES:
                        raise _win_error(error)
                    break
        finally:
            k.FindVolumeClose(handle)
        return names

    def volume_path_names(self, volume: str) -> list[str]:
        """Return every mount path of a volume, growing the buffer once if needed."""
        k = self.kernel32
        needed = _DWORD(0)
        buf = ctypes.create_unicode_buffer(MAX_PATH + 1)
        if not k.GetVolumePathNamesForVolumeNameW(volume, buf, len(buf), ctypes.byref(needed)):
            error = ctypes.get_last_error()  # type: ignore[attr-defined]
            if error != ERROR_MORE_DATA:
                raise _win_error(error)
            buf = ctypes.create_unicode_buffer(needed.value)
            if not k.GetVolumePathNamesForVolumeNameW(volume, buf, len(buf), ctypes.byref(needed)):
                raise _win_error()
        return split_multi_sz(buf[:])

    def volume_information(self, root: str) -> tuple[str, str]:
        """Return ``(label, filesystem name)`` for a volume root."""
        label = ctypes.create_unicode_buffer(MAX_PATH + 1)
        fs_name = ctypes.create_unicode_buffer(MAX_PATH + 1)
        if not self.kernel32.GetVolumeInformationW(
            root, label, len(label), None, None, None, fs_name, len(fs_name)
        ):
            raise _win_error()
        return label.value, fs_name.value

    def disk_free_space(self, root: str) -> tuple[int, int]:
        """Return ``(total bytes, total free bytes)`` for a volume root."""
        available = ctypes.c_uint64(0)
        total = ctypes.c_uint64(0)
        free = ctypes.c_uint64(0)
        if not self.kernel32.GetDiskFreeSpaceExW(
            root, ctypes.byref(available), ctypes.byref(total), ctypes.byref(free)
        ):
            raise _win_error()
        return total.value, free.value

    def disk_geometry(self, root: str) -> tuple[int, int]:
        """Return ``(cluster size in bytes, total clusters)`` for a volume root."""
        sectors_per_cluster = _DWORD(0)
        bytes_per_sector = _DWORD(0)
        free_clusters = _DWORD(0)
        total_clusters = _DWORD(0)
        if not self.kernel32.GetDiskFreeSpaceW(
            root,
            ctypes.byref(sectors_per_cluster),
            ctypes.byref(bytes_per_sector),
            ctypes.byref(free_clusters),
            ctypes.byref(total_clusters),
        ):
            raise _win_error()
        return sectors_per_cluster.value * bytes_per_sector.value, total_clusters.value

    def drive_type(self, root: str) -> int:
        return self.kernel32.GetDriveTypeW(root)

    def logical_drives(self) -> int:
        """Return the bitmask of available drive letters (bit 0 is A:)."""
        bits = self.kernel32.GetLogicalDrives()
        if bits == 0:
            raise _win_error()
        return bits

    def network_connections(self) -> list[tuple[str, str]]:
        """Return ``(local name, remote name)`` for every connected disk resource.

        Returns an empty list when no network provider is installed.
        """
        mpr = self.mpr
        handle = ctypes.c_void_p()
        result = mpr.WNetOpenEnumW(
            RESOURCE_CONNECTED, RESOURCETYPE_DISK, RESOURCEUSAGE_CONNECTABLE, None, ctypes.byref(handle)
        )
        if result == ERROR_NO_NETWORK:
            return []
        if result != NO_ERROR:
            raise _win_error(result)

        connections: list[tuple[str, str]] = []
        size = _ENUM_BUFFER_SIZE
        retried = False
        try:
            while True:
                buf = ctypes.create_string_buffer(size)
                count = _DWORD(_ENUM_ALL_ENTRIES)
                buf_size = _DWORD(size)
                result = mpr.WNetEnumResourceW(handle, ctypes.byref(count), buf, ctypes.byref(buf_size))
                if result == ERROR_NO_MORE_ITEMS:
                    break
                if result == ERROR_MORE_DATA and not retried:
                    size = buf_size.value
                    retried = True
                    continue
                if result != NO_ERROR:
                    raise _win_error(result)

                resources = ctypes.cast(buf, ctypes.POINTER(_NetResource))
                for i in range(count.value):
                    resource = resources[i]
                    connections.append((resource.lpLocalName or "", resource.lpRemoteName or ""))
        finally:
            mpr.WNetCloseEnum(handle)
        return connections


class WindowsDiscoverer(MountDiscoverer):
    """Discoverer backed by the Win32 volume and network APIs.

    Args:
        api: Win32 call surface. Defaults to the real kernel32/mpr wrapper.
    """

    def __init__(self, api: Win32Api | None = None) -> None:
        self._api = api if api is not None else Win32Api()

    @property
    def platform(self) -> str:
        """Return 'win32' as the handled platform."""
        return "win32"

    def discover(self) -> DiscoveryResult:
        """Enumerate volumes, network drives and leftover drive letters.

        Each pass tolerates failures on individual volumes. Inode fields
        are always zero on Windows.

        Returns:
            DiscoveryResult with mounts in pass order.
        """
        result = DiscoveryResult()
        self._discover_volumes(result)
        self._discover_network_drives(result)
        self._discover_drive_letters(result)
        return result

    def _discover_volumes(self, result: DiscoveryResult) -> None:
        try:
            volumes = self._api.volume_names()
        except OSError as e:
            result.warnings.append(f"Unable to enumerate volumes ({e})")
            return

        for volume in volumes:
            try:
                paths = self._api.volume_path_names(volume)
            except OSError as e:
                result.warnings.append(f"{volume}: Unable to resolve mount paths ({e})")
                continue

            if not paths:
                logger.debug("Skipping unmounted volume %s", volume)
                continue

            for path in paths:
                result.mounts.append(self._mount_from_path(path, volume, result.warnings))

    def _discover_network_drives(self, result: DiscoveryResult) -> None:
        try:
            connections = self._api.network_connections()
        except OSError as e:
            result.warnings.append(f"Unable to enumerate network drives ({e})")
            return

        seen = _seen_mountpoints(result.mounts)
        for local_name, remote_name in connections:
            if not local_name:
                continue
            mountpoint = local_name if local_name.endswith("\\") else local_name + "\\"
            if mountpoint.casefold() in seen:
                continue

            device = remote_name or local_name
            mount = self._mount_from_path(mountpoint, device, result.warnings)
            result.mounts.append(
                dataclasses.replace(mount, device=device, device_type=DeviceType.NETWORK)
            )
            seen.add(mountpoint.casefold())

    def _discover_drive_letters(self, result: DiscoveryResult) -> None:
        try:
            bits = self._api.logical_drives()
        except OSError as e:
            result.warnings.append(f"Unable to list logical drives ({e})")
            return

        seen = _seen_mountpoints(result.mounts)
        for index, letter in enumerate(string.ascii_uppercase):
            if not bits & (1 << index):
                continue
            root = f"{letter}:\\"
            if root.casefold() in seen:
                continue
            result.mounts.append(self._mount_from_path(root, root, result.warnings))
            seen.add(root.casefold())

    def _mount_from_path(self, mountpoint: str, fallback_device: str, warnings: list[str]) -> Mount:
        """Query one volume root and build its Mount.

        Args:
            mountpoint: Volume root path, ending in a backslash.
            fallback_device: Device name used when the volume has no label.
            warnings: Accumulator for failed queries.

        Returns:
            Mount; fields whose query failed are left empty or zero.
        """
        label = fs_type = ""
        try:
            label, fs_type = self._api.volume_information(mountpoint)
        except OSError as e:
            warnings.append(f"{mountpoint}: Unable to get volume information ({e})")

        total = free = 0
        try:
            total, free = self._api.disk_free_space(mountpoint)
        except OSError as e:
            warnings.append(f"{mountpoint}: Unable to get disk space ({e})")

        block_size = blocks = 0
        try:
            block_size, blocks = self._api.disk_geometry(mountpoint)
        except OSError as e:
            warnings.append(f"{mountpoint}: Unable to get cluster geometry ({e})")

        return Mount(
            device=label or fallback_device,
            device_type=windows_device_type(self._api.drive_type(mountpoint)),
            mountpoint=mountpoint,
            fs_type=fs_type,
            raw_type=fs_type,
            opts="",
            total=total,
            free=free,
            used=max(0, total - free),
            blocks=blocks,
            block_size=block_size,
        )


def _seen_mountpoints(mounts: list[Mount]) -> set[str]:
    return {mount.mountpoint.casefold() for mount in mounts}
