from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pysitaware.config import SitAwareConfig
from pysitaware.geo import haversine_m
from pysitaware.models.position import AssetPosition
from pysitaware.planning.rendezvous import decision_support, evaluate_target, plan_rendezvous, select_tag_targets
from pysitaware.tracking.registry import TrackRegistry

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _pos(name: str, lat: float, lon: float, type_: str = "SPOT Tag", minutes_ago: float = 1.0) -> AssetPosition:
    return AssetPosition(
        asset_name=name,
        latitude=lat,
        longitude=lon,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        type=type_,
    )


MOVER = _pos("ship", 0.0, 0.0, type_="Ship")


def test_single_target_distance_and_eta() -> None:
    rows = plan_rendezvous(
        MOVER,
        [_pos("tag-1", 0.0, 0.01)],
        mover_speed=5.0,
        target_speed=1.25,
        safety_distance=100.0,
        now=NOW,
    )

    assert len(rows) == 1
    row = rows[0]
    assert row.feasible is True
    assert row.distance_m == pytest.approx(1112.0, abs=1.0)
    assert row.eta_seconds == pytest.approx((row.distance_m - 100.0) / 5.0)
    assert row.eta_seconds == pytest.approx(202.4, abs=0.3)
    assert row.target_eta_seconds == pytest.approx(row.distance_m / 1.25)


def test_target_inside_safety_distance_has_zero_eta() -> None:
    rows = plan_rendezvous(
        MOVER,
        [_pos("close", 0.0, 0.001)],
        mover_speed=5.0,
        target_speed=1.0,
        safety_distance=3000.0,
        now=NOW,
    )
    assert rows[0].eta_seconds == 0.0
    assert rows[0].feasible is True


def test_rows_ordered_by_eta_then_distance_then_name() -> None:
    targets = [
        _pos("far", 0.0, 0.05),
        _pos("zeta-inside", 0.0, 0.001),
        _pos("alpha-inside", 0.0, 0.001),
        _pos("mid", 0.0, 0.02),
        _pos("nearer-inside", 0.0, 0.0005),
    ]

    rows = plan_rendezvous(MOVER, targets, mover_speed=5.0, target_speed=1.0, safety_distance=500.0, now=NOW)

    assert [r.target_name for r in rows] == ["nearer-inside", "alpha-inside", "zeta-inside", "mid", "far"]
    etas = [r.eta_seconds for r in rows]
    assert etas == sorted(etas)


def test_filters_type_age_and_mover_itself() -> None:
    targets = [
        _pos("tag", 0.0, 0.01),
        _pos("argos", 0.0, 0.02, type_="Argos Tag"),
        _pos("boat", 0.0, 0.01, type_="Ship"),
        _pos("stale", 0.0, 0.01, minutes_ago=13 * 60),
        _pos("ship", 0.0, 0.0),
    ]

    rows = plan_rendezvous(
        MOVER,
        targets,
        mover_speed=10.0,
        target_speed=1.0,
        safety_distance=0.0,
        max_age=timedelta(hours=12),
        now=NOW,
    )

    assert [r.target_name for r in rows] == ["tag", "argos"]


def test_non_positive_speed_flags_rows_instead_of_failing() -> None:
    rows = plan_rendezvous(
        MOVER,
        [_pos("b", 0.0, 0.01), _pos("a", 0.0, 0.02)],
        mover_speed=0.0,
        target_speed=0.0,
        safety_distance=0.0,
        now=NOW,
    )

    assert [r.target_name for r in rows] == ["a", "b"]
    assert all(not r.feasible for r in rows)
    assert all(r.eta_seconds is None for r in rows)
    assert all(r.target_eta_seconds is None for r in rows)
    assert rows[0].distance_m is not None
    assert rows[0].reason == "mover speed must be positive"


def test_missing_mover_location_yields_infeasible_rows() -> None:
    rows = plan_rendezvous(None, [_pos("tag", 0.0, 0.01)], mover_speed=5.0, target_speed=1.0, safety_distance=0.0, now=NOW)

    assert len(rows) == 1
    assert rows[0].feasible is False
    assert rows[0].distance_m is None


def test_repeated_calls_are_idempotent() -> None:
    targets = [_pos("a", 0.0, 0.01), _pos("b", 0.01, 0.0)]
    kwargs = {"mover_speed": 5.0, "target_speed": 1.0, "safety_distance": 50.0, "now": NOW}

    assert plan_rendezvous(MOVER, targets, **kwargs) == plan_rendezvous(MOVER, targets, **kwargs)  # type: ignore[arg-type]


def test_decision_support_from_registry() -> None:
    registry = TrackRegistry(clock=lambda: NOW)
    registry.add_position(_pos("ship", 0.0, 0.0, type_="Ship"))
    registry.add_position(_pos("tag-1", 0.0, 0.01))
    registry.add_position(_pos("auv", 0.0, 0.001, type_="UUV"))
    config = SitAwareConfig(ship_speed_mps=5.0, safety_distance_m=100.0)

    rows = decision_support(registry, "ship", config, now=NOW)

    assert rows is not None
    assert [r.target_name for r in rows] == ["tag-1"]
    assert decision_support(registry, "unknown", config, now=NOW) is None


def test_haversine_quarter_meridian() -> None:
    assert haversine_m(0.0, 0.0, 90.0, 0.0) == pytest.approx(10_007_543.0, rel=1e-4)


def test_evaluate_target_without_mover_reports_reason() -> None:
    row = evaluate_target(
        None,
        _pos("tag-1", 0.0, 0.01),
        mover_speed=10.0,
        target_speed=1.25,
        safety_distance=0.0,
        now=NOW,
    )

    assert row.feasible is False
    assert row.reason == "mover location unknown"
    assert row.distance_m is None
    assert row.target_age_seconds == pytest.approx(60.0)


def test_evaluate_target_inside_safety_distance_has_zero_eta() -> None:
    row = evaluate_target(
        MOVER,
        _pos("tag-1", 0.0, 0.01),
        mover_speed=10.0,
        target_speed=1.25,
        safety_distance=3000.0,
        now=NOW,
    )

    assert row.feasible is True
    assert row.eta_seconds == 0.0
    assert row.target_eta_seconds == pytest.approx(row.distance_m / 1.25)


def test_select_tag_targets_keeps_only_tag_types() -> None:
    registry = TrackRegistry(clock=lambda: NOW, audible_updates=False)
    registry.add_position(_pos("spot-1", 0.0, 0.01))
    registry.add_position(_pos("argos-1", 0.0, 0.02, type_="Argos Tag"))
    registry.add_position(_pos("ship", 0.0, 0.0, type_="Ship"))

    names = sorted(p.asset_name for p in select_tag_targets(registry))

    assert names == ["argos-1", "spot-1"]
