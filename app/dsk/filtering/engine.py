"""Mount filter engine.

Two entry points:

- filter_by_paths() narrows the mount list to the mounts that hold the
  paths given on the command line.
- apply() decides, attribute by attribute, which mounts are shown.
"""

import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from dsk.discovery.classify import (
    effective_device_type,
    is_bind_mount,
    is_hidden_by_default,
    is_loop_device,
)
from dsk.filtering.options import FilterOptions
from dsk.models.mount import DeviceType, Mount
from dsk.utils.wildcard import match_any

logger = logging.getLogger(__name__)


def resolve_path(path: str) -> str:
    """Return the absolute, symlink-resolved form of a path.

    Falls back to the unresolved absolute path when resolution fails
    (missing path, permission problem, symlink loop).
    """
    absolute = os.path.abspath(path)
    try:
        return str(Path(absolute).resolve(strict=True))
    except (OSError, RuntimeError) as e:
        logger.debug("Could not resolve %s: %s", absolute, e)
        return absolute


def find_mounts_for_path(mounts: Sequence[Mount], path: str) -> list[Mount]:
    """Find the mounts a resolved path belongs to.

    Args:
        mounts: Candidate mounts.
        path: Absolute, resolved path or device name.

    Returns:
        The single mount whose device equals ``path`` if there is one;
        otherwise every mount whose mountpoint is a string prefix of
        ``path`` with the greatest mountpoint length.
    """
    for mount in mounts:
        if mount.device == path:
            return [mount]

    best: list[Mount] = []
    for mount in mounts:
        if not path.startswith(mount.mountpoint):
            continue
        if not best or len(mount.mountpoint) > len(best[0].mountpoint):
            best = [mount]
        elif len(mount.mountpoint) == len(best[0].mountpoint):
            best.append(mount)
    return best


def filter_by_paths(mounts: Sequence[Mount], paths: Iterable[str]) -> list[Mount]:
    """Narrow mounts to those containing the given paths.

    Args:
        mounts: Discovered mounts.
        paths: Device names or filesystem paths, as typed by the user.

    Returns:
        Matching mounts, de-duplicated by mountpoint in first-seen order.
    """
    result: list[Mount] = []
    seen: set[str] = set()

    for path in paths:
        for mount in find_mounts_for_path(mounts, resolve_path(path)):
            if mount.mountpoint in seen:
                continue
            seen.add(mount.mountpoint)
            result.append(mount)

    return result


def _device_rule_excludes(token: str, options: FilterOptions) -> bool:
    """Precedence shared by bind and loop mounts.

    Kept when the token is in ``only_devices``, or when ``only_devices``
    is empty and the token is not hidden. ``include_all`` plays no part.
    """
    if token in options.only_devices:
        return False
    return bool(options.only_devices) or token in options.hidden_devices


def should_include(mount: Mount, options: FilterOptions) -> bool:
    """Decide whether a single mount passes all filters.

    Checks run in a fixed order and the first failing one excludes the
    mount: filesystem type, mountpoint patterns, default-hidden
    pseudo-mounts, bind mounts, loop devices, zero-sized mounts and
    finally the generic device type.
    """
    fs_type = mount.fs_type.lower()
    if options.only_filesystems:
        if fs_type not in options.only_filesystems:
            return False
    elif fs_type in options.hidden_filesystems:
        return False

    if options.only_mountpoints:
        if not match_any(mount.mountpoint, options.only_mountpoints):
            return False
    elif match_any(mount.mountpoint, options.hidden_mountpoints):
        return False

    if not options.include_all and is_hidden_by_default(mount):
        return False

    if is_bind_mount(mount) and _device_rule_excludes(DeviceType.BIND.value, options):
        return False

    if is_loop_device(mount) and _device_rule_excludes(DeviceType.LOOP.value, options):
        return False

    if not options.include_all and (mount.blocks == 0 or mount.block_size == 0):
        return False

    device_type = effective_device_type(mount).value
    if options.only_devices:
        return device_type in options.only_devices
    return device_type not in options.hidden_devices


def apply(mounts: Iterable[Mount], options: FilterOptions) -> list[Mount]:
    """Return the mounts that pass every filter, in input order.

    Example:
        >>> shown = apply(result.mounts, FilterOptions(only_filesystems=frozenset({"ext4"})))
    """
    return [mount for mount in mounts if should_include(mount, options)]
