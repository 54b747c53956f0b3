"""Abstract base class for mount discovery backends.

This module defines the MountDiscoverer interface that each platform
backend (Linux, macOS, Windows) implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from dsk.models.mount import Mount


class PlatformUnsupportedError(RuntimeError):
    """Raised when no discovery backend exists for the running OS."""


@dataclass(slots=True)
class DiscoveryResult:
    """Mounts found by a discovery pass plus any soft failures.

    Attributes:
        mounts: Normalized mounts in enumeration order.
        warnings: Human-readable messages for skipped lines, failed
            statistics queries and failed volume lookups.
    """

    mounts: list[Mount] = field(default_factory=lambda: [])
    warnings: list[str] = field(default_factory=lambda: [])


class MountDiscoverer(ABC):
    """Abstract base class for all mount discovery backends.

    A discoverer takes one synchronous snapshot of the mounted
    filesystems. Failures on individual mounts never abort the snapshot;
    they are reported in ``DiscoveryResult.warnings`` instead.

    Example:
        >>> discoverer = get_discoverer()
        >>> result = discoverer.discover()
        >>> for mount in result.mounts:
        ...     print(f"{mount.mountpoint}: {mount.usage:.0%}")
    """

    @property
    @abstractmethod
    def platform(self) -> str:
        """Return the ``sys.platform`` value this backend handles."""

    @abstractmethod
    def discover(self) -> DiscoveryResult:
        """Enumerate all mounts on the system.

        Returns:
            DiscoveryResult with the mounts and accumulated warnings.
        """
