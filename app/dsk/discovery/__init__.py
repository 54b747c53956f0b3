"""Mount discovery backends for different operating systems.

This module exports the discoverer classes and the factory that picks
the one matching the running platform.
"""

import sys

from dsk.discovery.base import DiscoveryResult, MountDiscoverer, PlatformUnsupportedError
from dsk.discovery.darwin import DarwinDiscoverer
from dsk.discovery.linux import LinuxDiscoverer
from dsk.discovery.windows import WindowsDiscoverer


def get_discoverer(platform: str | None = None) -> MountDiscoverer:
    """Return the discovery backend for a platform.

    Args:
        platform: A ``sys.platform`` value. Defaults to the running one.

    Returns:
        A discoverer instance for that platform.

    Raises:
        PlatformUnsupportedError: If there is no backend for the platform.
    """
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return LinuxDiscoverer()
    if platform == "darwin":
        return DarwinDiscoverer()
    if platform == "win32":
        return WindowsDiscoverer()
    msg = f"Unsupported platform: {platform}"
    raise PlatformUnsupportedError(msg)


__all__ = [
    "DarwinDiscoverer",
    "DiscoveryResult",
    "LinuxDiscoverer",
    "MountDiscoverer",
    "PlatformUnsupportedError",
    "WindowsDiscoverer",
    "get_discoverer",
]
