"""Filter options for mount display.

FilterOptions is built once per invocation from already-parsed
arguments. The parsing helpers are pure functions that turn raw
comma-separated user input into the lowercase token sets it holds.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from dsk.models.mount import DeviceType

# Plural tokens accepted for backwards compatibility
_DEVICE_TYPE_ALIASES: dict[str, str] = {
    "loops": DeviceType.LOOP.value,
    "binds": DeviceType.BIND.value,
}


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """Immutable inclusion/exclusion settings for the filter engine.

    All sets hold lowercase tokens. Mountpoint sets may contain ``*`` and
    ``?`` wildcards.

    Attributes:
        include_all: Show pseudo, zero-sized and hidden-by-default mounts.
        hidden_devices: Device types to exclude.
        only_devices: Device types to keep exclusively.
        hidden_filesystems: Filesystem types to exclude.
        only_filesystems: Filesystem types to keep exclusively.
        hidden_mountpoints: Mountpoint patterns to exclude.
        only_mountpoints: Mountpoint patterns to keep exclusively.
    """

    include_all: bool = False
    hidden_devices: frozenset[str] = field(default_factory=frozenset)
    only_devices: frozenset[str] = field(default_factory=frozenset)
    hidden_filesystems: frozenset[str] = field(default_factory=frozenset)
    only_filesystems: frozenset[str] = field(default_factory=frozenset)
    hidden_mountpoints: frozenset[str] = field(default_factory=frozenset)
    only_mountpoints: frozenset[str] = field(default_factory=frozenset)


def parse_comma_separated(values: str | Iterable[str] | None) -> frozenset[str]:
    """Parse comma-separated values into a set of lowercase tokens.

    Args:
        values: A string like ``"ext4, XFS"``, an iterable of such
            strings (config lists), or None.

    Returns:
        Trimmed, lowercased, non-empty tokens.

    Example:
        >>> sorted(parse_comma_separated(" Ext4,,xfs "))
        ['ext4', 'xfs']
    """
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]

    tokens: set[str] = set()
    for value in values:
        for token in value.split(","):
            token = token.strip().lower()
            if token:
                tokens.add(token)
    return frozenset(tokens)


def parse_device_types(values: str | Iterable[str] | None) -> frozenset[str]:
    """Parse device-type tokens, mapping ``loops``/``binds`` to ``loop``/``bind``.

    Raises:
        ValueError: If a token is not a known device type.
    """
    known = {device_type.value for device_type in DeviceType}
    result: set[str] = set()
    for token in parse_comma_separated(values):
        token = _DEVICE_TYPE_ALIASES.get(token, token)
        if token not in known:
            msg = f"Unknown device type '{token}'. Valid types: {', '.join(sorted(known))}"
            raise ValueError(msg)
        result.add(token)
    return frozenset(result)
