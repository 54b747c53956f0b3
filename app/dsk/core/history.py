"""Usage history for the trend column.

Each table run appends one usage snapshot per displayed mount to a JSON
file, so later runs can draw a sparkline and a trend arrow. The file
looks like::

    {"mounts": {"/": [{"t": "2025-01-01T12:00:00+00:00", "u": 0.42}, ...]}}

History is best-effort: read and write failures are logged and never
abort the command.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from dsk.core.paths import get_history_path

logger = logging.getLogger(__name__)

MAX_DATA_POINTS = 30
MAX_AGE_DAYS = 90


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    """Usage of one mount at one point in time.

    Attributes:
        timestamp: When the snapshot was taken (timezone-aware, UTC).
        usage: Usage ratio between 0.0 and 1.0.
    """

    timestamp: datetime
    usage: float

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the compact on-disk form."""
        return {"t": self.timestamp.isoformat(), "u": self.usage}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UsageSnapshot:
        """Deserialize from the on-disk form.

        Naive timestamps are taken to be UTC.

        Raises:
            KeyError: If a field is missing.
            ValueError: If the timestamp or usage is malformed.
        """
        timestamp = datetime.fromisoformat(data["t"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        return cls(timestamp=timestamp, usage=float(data["u"]))


@dataclass(slots=True)
class HistoryData:
    """Snapshots of every tracked mount, oldest first per mount."""

    mounts: dict[str, list[UsageSnapshot]] = field(default_factory=lambda: {})

    def get_history(self, mountpoint: str, max_points: int = 8) -> list[float]:
        """Return the newest usage values for a mount, oldest first.

        Args:
            mountpoint: Mount to look up.
            max_points: Maximum number of values to return.

        Returns:
            Up to ``max_points`` usage ratios in chronological order;
            empty if the mount has no history.
        """
        snapshots = sorted(self.mounts.get(mountpoint, []), key=lambda s: s.timestamp)
        if max_points <= 0:
            return []
        return [snapshot.usage for snapshot in snapshots[-max_points:]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "mounts": {
                mountpoint: [snapshot.to_dict() for snapshot in snapshots]
                for mountpoint, snapshots in self.mounts.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryData:
        """Deserialize history, skipping malformed snapshots.

        Raises:
            TypeError: If the top-level structure is not a mapping of lists.
        """
        mounts_data = data.get("mounts", {})
        if not isinstance(mounts_data, dict):
            msg = "'mounts' must be an object"
            raise TypeError(msg)

        mounts: dict[str, list[UsageSnapshot]] = {}
        for mountpoint, entries in mounts_data.items():
            if not isinstance(entries, list):
                msg = f"History for {mountpoint} must be a list"
                raise TypeError(msg)
            snapshots: list[UsageSnapshot] = []
            for entry in entries:
                try:
                    snapshots.append(UsageSnapshot.from_dict(entry))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping corrupt history entry for %s: %s", mountpoint, e)
            mounts[mountpoint] = snapshots
        return cls(mounts=mounts)


class HistoryManager:
    """Loads and saves usage history.

    Storage location: ~/.local/state/dsk/history.json

    Args:
        history_path: Optional override for the history file.
    """

    def __init__(self, history_path: Path | None = None) -> None:
        self._history_path = history_path if history_path is not None else get_history_path()

    @property
    def history_path(self) -> Path:
        """Path to the history file."""
        return self._history_path

    def load(self) -> HistoryData:
        """Read history from disk.

        Returns:
            HistoryData; empty if the file is missing or corrupt.
        """
        if not self._history_path.exists():
            return HistoryData()

        try:
            with self._history_path.open(encoding="utf-8") as f:
                data = json.load(f)
            return HistoryData.from_dict(data)
        except (OSError, json.JSONDecodeError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable history file %s: %s", self._history_path, e)
            return HistoryData()

    def save(
        self,
        current_usage: Iterable[tuple[str, float]],
        now: datetime | None = None,
    ) -> HistoryData:
        """Append a snapshot per mount and write the pruned history back.

        Snapshots older than MAX_AGE_DAYS are dropped, at most
        MAX_DATA_POINTS are kept per mount, and mounts with no recent
        snapshot are forgotten.

        Args:
            current_usage: ``(mountpoint, usage)`` pairs from this run.
            now: Snapshot time. Defaults to the current UTC time.

        Returns:
            The history as written (also returned if writing failed).
        """
        history = self.load()
        now = now or datetime.now(UTC)
        cutoff = now - timedelta(days=MAX_AGE_DAYS)

        for mountpoint, usage in current_usage:
            snapshots = history.mounts.setdefault(mountpoint, [])
            snapshots.append(UsageSnapshot(timestamp=now, usage=usage))

        for mountpoint in list(history.mounts):
            recent = sorted(
                (s for s in history.mounts[mountpoint] if s.timestamp > cutoff),
                key=lambda s: s.timestamp,
            )[-MAX_DATA_POINTS:]
            if recent:
                history.mounts[mountpoint] = recent
            else:
                del history.mounts[mountpoint]

        try:
            self._history_path.parent.mkdir(parents=True, exist_ok=True)
            with self._history_path.open(mode="w", encoding="utf-8") as f:
                json.dump(history.to_dict(), f, separators=(",", ":"))
        except OSError as e:
            logger.warning("Failed to write history file %s: %s", self._history_path, e)

        return history
