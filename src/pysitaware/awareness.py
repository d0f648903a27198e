"""High-level situation-awareness coordinator."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pysitaware.config import SitAwareConfig
from pysitaware.grid.cells import CellAggregator
from pysitaware.models.position import AssetPosition
from pysitaware.models.rendezvous import RendezvousRow
from pysitaware.models.sample import CellKey, VectorSample
from pysitaware.planning.rendezvous import decision_support
from pysitaware.scheduler import PeriodicScheduler
from pysitaware.sources.base import LocationSource
from pysitaware.sources.factory import SourceFactory, build_sources
from pysitaware.tracking.events import NotificationSink
from pysitaware.tracking.registry import TrackRegistry

_logger = logging.getLogger(__name__)

SWEEP_CALLBACK_NAME = "vector-field-sweep"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SituationAwareness:
    """Owns the track registry and cell aggregator and keeps them fed.

    Usage::

        async with SituationAwareness(config, sink=sink) as aware:
            aware.add_position(position)
            table = aware.decision_support("lauv-xplore-1")

    Every enabled location source is consumed by its own task; a source
    that fails to start or dies mid-stream is logged and the others keep
    running.  The vector-field sweep runs on a :class:`PeriodicScheduler`
    that is shut down before the context exits.
    """

    def __init__(
        self,
        config: SitAwareConfig | None = None,
        *,
        sink: NotificationSink | None = None,
        sources: Sequence[LocationSource] | None = None,
        factories: Mapping[str, SourceFactory] | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_position_logged: Callable[[AssetPosition], None] | None = None,
    ) -> None:
        self._config = config or SitAwareConfig()
        self._clock = clock
        self._registry = TrackRegistry.from_config(
            self._config,
            sink=sink,
            clock=clock,
            on_position_logged=on_position_logged,
        )
        self._cells = CellAggregator(clock=clock)
        self._scheduler: PeriodicScheduler | None = None
        self._explicit_sources = list(sources) if sources is not None else None
        self._factories = factories
        self._sources: list[LocationSource] = []
        self._started: set[str] = set()
        self._pumps: dict[str, asyncio.Task[None]] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SituationAwareness:
        if self._explicit_sources is not None:
            self._sources = list(self._explicit_sources)
        else:
            self._sources = build_sources(self._config, self._factories)

        for source in self._sources:
            try:
                await source.on_start()
            except Exception:
                _logger.error("Location source %s failed to start", source.name, exc_info=True)
                continue
            self._started.add(source.name)

        self._scheduler = PeriodicScheduler()
        self._scheduler.register(SWEEP_CALLBACK_NAME, self._sweep, self._config.aggregation_interval_s)
        self.properties_changed()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        scheduler = self._scheduler
        self._scheduler = None
        if scheduler is not None:
            await scheduler.shutdown()

        for name in list(self._pumps):
            await self._stop_pump(name)

        for source in self._sources:
            if source.name not in self._started:
                continue
            try:
                await source.on_stop()
            except Exception:
                _logger.warning("Location source %s failed to stop", source.name, exc_info=True)
        self._started.clear()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> SitAwareConfig:
        return self._config

    @property
    def registry(self) -> TrackRegistry:
        return self._registry

    @property
    def cells(self) -> CellAggregator:
        return self._cells

    @property
    def sources(self) -> list[LocationSource]:
        return list(self._sources)

    def properties_changed(self, config: SitAwareConfig | None = None) -> None:
        """Apply *config* (or re-apply the current one) to the registry and sources.

        Sources named in ``enabled_location_sources`` are enabled and pumped;
        all others are disabled and their pump cancelled.
        """
        if config is not None:
            self._config = config
            self._registry.configure(config)

        for source in self._sources:
            wanted = source.name in self._config.enabled_location_sources
            source.set_enabled(wanted)
            if wanted and source.name in self._started and source.name not in self._pumps:
                self._start_pump(source)
            elif not wanted and source.name in self._pumps:
                task = self._pumps.pop(source.name)
                task.cancel()

    def _start_pump(self, source: LocationSource) -> None:
        task = asyncio.get_running_loop().create_task(self._pump(source), name=f"source:{source.name}")
        self._pumps[source.name] = task

    async def _stop_pump(self, name: str) -> None:
        task = self._pumps.pop(name, None)
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _pump(self, source: LocationSource) -> None:
        try:
            async for position in source.positions():
                if not source.enabled:
                    continue
                self._registry.add_position(position)
        except asyncio.CancelledError:
            raise
        except Exception:
            _logger.error("Location source %s stopped with an error", source.name, exc_info=True)
        finally:
            if self._pumps.get(source.name) is asyncio.current_task():
                self._pumps.pop(source.name, None)

    def _sweep(self) -> int:
        return self._cells.sweep(self._config.sample_max_age)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_position(self, position: AssetPosition) -> bool:
        return self._registry.add_position(position)

    def add_sample(self, sample: VectorSample) -> CellKey:
        return self._cells.add_sample(sample)

    # ------------------------------------------------------------------
    # Render-surface reads
    # ------------------------------------------------------------------

    def visible_track(self, asset_name: str) -> list[AssetPosition]:
        """Recent positions of *asset_name* a map layer should draw."""
        track = self._registry.get_track(asset_name)
        if track is None:
            return []
        now = self._clock()
        return [
            position
            for position in track.get_track(self._config.track_window_minutes, 0.0, now)
            if position.type not in self._config.hidden_position_types
            and position.age(now) < self._config.max_position_age
        ]

    def positions_by_type(self) -> dict[str, list[AssetPosition]]:
        return self._registry.positions_by_type(
            max_age=self._config.max_position_age,
            hidden_types=self._config.hidden_position_types,
        )

    def decision_support(self, mover_name: str, *, use_prediction: bool = False) -> list[RendezvousRow] | None:
        """Rendezvous table for *mover_name*, or ``None`` when its position is unknown."""
        return decision_support(
            self._registry,
            mover_name,
            self._config,
            use_prediction=use_prediction,
            now=self._clock(),
        )
