"""Per-asset position history."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pysitaware.geo import extrapolate
from pysitaware.models.position import AssetColor, AssetPosition


class DuplicatePolicy(StrEnum):
    """How :meth:`AssetTrack.add_position` recognises a repeated report."""

    NONE = "none"
    """Every report is accepted."""
    FIX = "fix"
    """Same timestamp and location as an existing entry."""
    CONTENT = "content"
    """Same timestamp, location, type and metadata as an existing entry."""


def _is_duplicate(policy: DuplicatePolicy, existing: AssetPosition, incoming: AssetPosition) -> bool:
    if policy == DuplicatePolicy.FIX:
        return existing.same_fix(incoming)
    if policy == DuplicatePolicy.CONTENT:
        return existing.same_content(incoming)
    return False


class AssetTrack:
    """Chronological, append-only history of one asset's position reports.

    Entries are kept in arrival order: a late report with an older
    timestamp still goes to the end.  Readers get copies taken under the
    track lock, so they never see a half-appended entry.
    """

    def __init__(
        self,
        asset_name: str,
        color: AssetColor,
        *,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIX,
    ) -> None:
        self._asset_name = asset_name
        self._color = color
        self._duplicate_policy = duplicate_policy
        self._history: list[AssetPosition] = []
        self._lock = threading.RLock()

    @property
    def asset_name(self) -> str:
        return self._asset_name

    @property
    def color(self) -> AssetColor:
        return self._color

    def set_color(self, color: AssetColor) -> None:
        self._color = color

    def add_position(self, position: AssetPosition) -> bool:
        """Append *position*; return ``False`` when the duplicate policy rejects it."""
        accepted, _previous = self.offer(position)
        return accepted

    def offer(self, position: AssetPosition) -> tuple[bool, AssetPosition | None]:
        """Append *position* and also return the latest entry as it was before the call."""
        with self._lock:
            previous = self._history[-1] if self._history else None
            if self._duplicate_policy != DuplicatePolicy.NONE:
                for existing in self._history:
                    if _is_duplicate(self._duplicate_policy, existing, position):
                        return False, previous
            self._history.append(position)
            return True, previous

    def get_latest(self) -> AssetPosition | None:
        with self._lock:
            return self._history[-1] if self._history else None

    def get_prediction(self, now: datetime | None = None) -> AssetPosition | None:
        """Linearly extrapolate the last two accepted fixes to *now*.

        Returns ``None`` with fewer than two fixes or when the newer fix is
        not strictly later than the older one.
        """
        with self._lock:
            if len(self._history) < 2:
                return None
            older, newer = self._history[-2], self._history[-1]
        elapsed = (newer.timestamp - older.timestamp).total_seconds()
        if elapsed <= 0:
            return None
        reference = now if now is not None else datetime.now(UTC)
        since = (reference - newer.timestamp).total_seconds()
        lat, lon = extrapolate(
            older.latitude,
            older.longitude,
            newer.latitude,
            newer.longitude,
            since / elapsed,
        )
        return AssetPosition(
            asset_name=newer.asset_name,
            latitude=lat,
            longitude=lon,
            timestamp=reference,
            type=newer.type,
            metadata="prediction",
        )

    def get_track(
        self,
        window_minutes: float,
        offset_minutes: float = 0.0,
        now: datetime | None = None,
    ) -> list[AssetPosition]:
        """Entries whose age lies in ``[offset, offset + window)`` minutes, in arrival order."""
        reference = now if now is not None else datetime.now(UTC)
        lower = timedelta(minutes=offset_minutes)
        upper = timedelta(minutes=offset_minutes + window_minutes)
        with self._lock:
            history = tuple(self._history)
        return [position for position in history if lower <= position.age(reference) < upper]

    def positions(self) -> list[AssetPosition]:
        with self._lock:
            return list(self._history)

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def __repr__(self) -> str:
        return f"AssetTrack({self._asset_name!r}, positions={len(self)})"
