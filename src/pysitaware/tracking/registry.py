"""Registry of asset tracks.

This is the only component that routes incoming position reports to tracks
and decides when a report deserves a notification.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from pysitaware._constants import RECENT_UPDATE_THRESHOLD_S
from pysitaware.config import SitAwareConfig
from pysitaware.models.position import AssetColor, AssetPosition
from pysitaware.tracking.events import Notification, NotificationKind, NotificationSink
from pysitaware.tracking.track import AssetTrack, DuplicatePolicy

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TrackRegistry:
    """Mapping of asset name to :class:`AssetTrack`.

    Tracks are created lazily on the first report for a name and live until
    the registry is discarded; staleness is handled at query time.
    """

    def __init__(
        self,
        *,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIX,
        recent_update_threshold: timedelta = timedelta(seconds=RECENT_UPDATE_THRESHOLD_S),
        audible_updates: bool = True,
        max_position_age: timedelta = timedelta(hours=12),
        color_seed: int | None = None,
        on_position_logged: Callable[[AssetPosition], None] | None = None,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._duplicate_policy = duplicate_policy
        self._recent_update_threshold = recent_update_threshold
        self._audible_updates = audible_updates
        self._max_position_age = max_position_age
        self._random = random.Random(color_seed)
        self._on_position_logged = on_position_logged
        self._tracks: dict[str, AssetTrack] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: SitAwareConfig,
        *,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_position_logged: Callable[[AssetPosition], None] | None = None,
    ) -> TrackRegistry:
        return cls(
            sink=sink,
            clock=clock,
            duplicate_policy=config.duplicate_policy,
            recent_update_threshold=config.recent_update_threshold,
            audible_updates=config.audible_updates,
            max_position_age=config.max_position_age,
            color_seed=config.color_seed,
            on_position_logged=on_position_logged,
        )

    def configure(self, config: SitAwareConfig) -> None:
        """Apply notification settings from *config* to subsequent reports."""
        self._recent_update_threshold = config.recent_update_threshold
        self._audible_updates = config.audible_updates
        self._max_position_age = config.max_position_age

    def _random_color(self) -> AssetColor:
        return AssetColor(self._random.randrange(255), self._random.randrange(255), self._random.randrange(255))

    def _track_for(self, asset_name: str) -> AssetTrack:
        with self._lock:
            track = self._tracks.get(asset_name)
            if track is None:
                track = AssetTrack(asset_name, self._random_color(), duplicate_policy=self._duplicate_policy)
                self._tracks[asset_name] = track
                _logger.debug("Created track for %s color=%s", asset_name, track.color.hex)
            return track

    def add_position(self, position: AssetPosition) -> bool:
        """Route *position* to its track; return whether it was accepted as new."""
        track = self._track_for(position.asset_name)
        accepted, previous = track.offer(position)
        if not accepted:
            return False

        now = self._clock()
        if previous is None or previous.age(now) > self._recent_update_threshold:
            self._post(
                Notification(
                    kind=NotificationKind.NEW_POSITION,
                    title="New Position",
                    message=f"Received position for {position.asset_name}",
                    asset_name=position.asset_name,
                    created_at=now,
                )
            )
            if self._audible_updates and position.age(now) < self._max_position_age:
                self._post(
                    Notification(
                        kind=NotificationKind.AUDIBLE_ALERT,
                        title=position.asset_name,
                        message=f"{position.asset_name} has been updated",
                        asset_name=position.asset_name,
                        created_at=now,
                    )
                )

        self._log_position(position)
        return True

    def add_positions(self, positions: Iterable[AssetPosition]) -> int:
        return sum(1 for position in positions if self.add_position(position))

    def _post(self, notification: Notification) -> None:
        if self._sink is None:
            return
        try:
            self._sink.post(notification)
        except Exception:
            _logger.warning("Notification sink failed for %s", notification.asset_name, exc_info=True)

    def _log_position(self, position: AssetPosition) -> None:
        _logger.debug(
            "Position %s lat=%s lon=%s type=%s ts=%s",
            position.asset_name,
            position.latitude,
            position.longitude,
            position.type,
            position.timestamp.isoformat(),
        )
        if self._on_position_logged is None:
            return
        try:
            self._on_position_logged(position)
        except Exception:
            _logger.debug("on_position_logged callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_track(self, asset_name: str) -> AssetTrack | None:
        with self._lock:
            return self._tracks.get(asset_name)

    def get_latest(self, asset_name: str) -> AssetPosition | None:
        track = self.get_track(asset_name)
        return track.get_latest() if track is not None else None

    def get_prediction(self, asset_name: str) -> AssetPosition | None:
        track = self.get_track(asset_name)
        return track.get_prediction(self._clock()) if track is not None else None

    def asset_names(self) -> list[str]:
        with self._lock:
            return list(self._tracks)

    def tracks(self) -> list[AssetTrack]:
        with self._lock:
            return list(self._tracks.values())

    def latest_positions(self) -> list[AssetPosition]:
        return [latest for track in self.tracks() if (latest := track.get_latest()) is not None]

    def positions_by_type(
        self,
        *,
        max_age: timedelta | None = None,
        hidden_types: Iterable[str] = (),
    ) -> dict[str, list[AssetPosition]]:
        """Latest position of every asset, grouped by position type in first-seen order."""
        hidden = frozenset(hidden_types)
        now = self._clock()
        grouped: dict[str, list[AssetPosition]] = {}
        for latest in self.latest_positions():
            if latest.type in hidden:
                continue
            if max_age is not None and latest.age(now) > max_age:
                continue
            grouped.setdefault(latest.type, []).append(latest)
        return grouped

    def set_color(self, asset_name: str, color: AssetColor) -> bool:
        track = self.get_track(asset_name)
        if track is None:
            return False
        track.set_color(color)
        return True

    def randomize_colors(self) -> None:
        for track in self.tracks():
            track.set_color(self._random_color())

    def __contains__(self, asset_name: object) -> bool:
        with self._lock:
            return asset_name in self._tracks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)
