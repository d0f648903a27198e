from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest

from pysitaware.awareness import SWEEP_CALLBACK_NAME, SituationAwareness
from pysitaware.config import SitAwareConfig
from pysitaware.models.position import AssetPosition
from pysitaware.models.sample import VectorSample
from pysitaware.sources import LocationSource, ManualLocationSource
from pysitaware.tracking.events import CollectingNotificationSink, NotificationKind

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _pos(name: str, lon: float, type_: str = "SPOT Tag", minutes_ago: float = 1.0) -> AssetPosition:
    return AssetPosition(
        asset_name=name,
        latitude=0.0,
        longitude=lon,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        type=type_,
    )


class _FailingStart(LocationSource):
    async def on_start(self) -> None:
        raise ConnectionError("broker unreachable")

    async def positions(self) -> AsyncIterator[AssetPosition]:
        raise AssertionError("never consumed")
        yield  # pragma: no cover


class _Crashing(LocationSource):
    async def positions(self) -> AsyncIterator[AssetPosition]:
        yield _pos("tag-crash", 0.3)
        raise RuntimeError("feed parser bug")


class _Tracked(ManualLocationSource):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.stopped = False

    async def on_stop(self) -> None:
        self.stopped = True


async def _drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_enabled_sources_feed_the_registry() -> None:
    manual = _Tracked("Manual")
    idle = _Tracked("Idle")
    sink = CollectingNotificationSink()
    config = SitAwareConfig(enabled_location_sources=frozenset({"Manual"}), color_seed=1)

    async with SituationAwareness(config, sink=sink, sources=[manual, idle], clock=lambda: NOW) as aware:
        manual.submit(_pos("tag-1", 0.01))
        idle.submit(_pos("tag-idle", 0.02))
        await _drain()

        assert "tag-1" in aware.registry
        assert "tag-idle" not in aware.registry
        assert manual.enabled and not idle.enabled
        assert sink.of_kind(NotificationKind.NEW_POSITION)

    assert manual.stopped and idle.stopped


@pytest.mark.asyncio
async def test_failing_sources_do_not_affect_others() -> None:
    manual = ManualLocationSource("Manual")
    config = SitAwareConfig(enabled_location_sources=frozenset({"Manual", "Broken", "Crashing"}))
    sources: list[LocationSource] = [_FailingStart("Broken"), _Crashing("Crashing"), manual]

    async with SituationAwareness(config, sources=sources, clock=lambda: NOW) as aware:
        manual.submit(_pos("tag-1", 0.01))
        await _drain()

        assert "tag-crash" in aware.registry
        assert "tag-1" in aware.registry


@pytest.mark.asyncio
async def test_properties_changed_toggles_sources() -> None:
    manual = ManualLocationSource("Manual")

    async with SituationAwareness(SitAwareConfig(), sources=[manual], clock=lambda: NOW) as aware:
        manual.submit(_pos("tag-early", 0.01))
        await _drain()
        assert "tag-early" not in aware.registry

        aware.properties_changed(aware.config.replace(enabled_location_sources=frozenset({"Manual"})))
        await _drain()
        assert "tag-early" in aware.registry

        aware.properties_changed(aware.config.replace(enabled_location_sources=frozenset()))
        await _drain()
        manual.submit(_pos("tag-late", 0.02))
        await _drain()
        assert "tag-late" not in aware.registry


@pytest.mark.asyncio
async def test_decision_support_and_visible_track() -> None:
    config = SitAwareConfig(
        ship_speed_mps=5.0,
        safety_distance_m=100.0,
        hidden_position_types=frozenset({"Argos Tag"}),
    )

    async with SituationAwareness(config, sources=[], clock=lambda: NOW) as aware:
        aware.add_position(_pos("ship", 0.0, type_="Ship"))
        aware.add_position(_pos("tag-1", 0.01))
        aware.add_position(_pos("argos-1", 0.02, type_="Argos Tag"))
        aware.add_position(_pos("tag-1", 0.011, minutes_ago=40))

        rows = aware.decision_support("ship")
        assert rows is not None
        assert [r.target_name for r in rows] == ["tag-1", "argos-1"]
        assert aware.decision_support("nobody") is None

        assert [p.longitude for p in aware.visible_track("tag-1")] == [0.01]
        assert aware.visible_track("argos-1") == []
        assert aware.visible_track("nobody") == []
        assert set(aware.positions_by_type()) == {"Ship", "SPOT Tag"}


@pytest.mark.asyncio
async def test_sweep_is_registered_and_stops_on_exit() -> None:
    config = SitAwareConfig(aggregation_interval_s=0.01, sample_max_age_hours=1.0)
    base = VectorSample(
        latitude=10.0,
        longitude=20.0,
        speed_cm_s=0.0,
        heading_degrees=0.0,
        observed_at=NOW,
    )

    aware = SituationAwareness(config, sources=[], clock=lambda: NOW)
    async with aware:
        key = aware.add_sample(base)
        aware.add_sample(base.model_copy(update={"speed_cm_s": 10.0, "heading_degrees": 350.0}))
        aware.add_sample(base.model_copy(update={"speed_cm_s": 20.0, "heading_degrees": 10.0}))
        await asyncio.sleep(0.05)

        snapshot = aware.cells.snapshot(key)
        assert snapshot is not None
        assert snapshot.speed_cm_s == pytest.approx(15.0)
        assert snapshot.heading_degrees == pytest.approx(180.0)

    aware.add_sample(base.model_copy(update={"speed_cm_s": 100.0}))
    await asyncio.sleep(0.05)
    after = aware.cells.snapshot(key)
    assert after is not None
    assert after.speed_cm_s == pytest.approx(15.0)
    assert SWEEP_CALLBACK_NAME == "vector-field-sweep"
