"""Rendezvous feasibility (decision support) between a mover and tag targets.

Everything here is a pure function of its inputs: no state is kept between
calls, so identical inputs always produce identical tables.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from pysitaware._constants import TAG_TYPES
from pysitaware.config import SitAwareConfig
from pysitaware.geo import haversine_m
from pysitaware.models.position import AssetPosition
from pysitaware.models.rendezvous import RendezvousRow
from pysitaware.tracking.registry import TrackRegistry


def _finite_location(position: AssetPosition | None) -> bool:
    return position is not None and math.isfinite(position.latitude) and math.isfinite(position.longitude)


def _sort_key(row: RendezvousRow) -> tuple[int, float, float, str]:
    # Infeasible rows go last, keeping name order among themselves.
    if not row.feasible or row.eta_seconds is None:
        return (1, math.inf, math.inf, row.target_name)
    distance = row.distance_m if row.distance_m is not None else math.inf
    return (0, row.eta_seconds, distance, row.target_name)


def evaluate_target(
    mover: AssetPosition | None,
    target: AssetPosition,
    *,
    mover_speed: float,
    target_speed: float,
    safety_distance: float,
    now: datetime,
) -> RendezvousRow:
    """Compute one table row; problems are reported on the row, never raised."""
    age = target.age_seconds(now)
    if mover is None or not _finite_location(mover):
        return RendezvousRow(
            target_name=target.asset_name,
            target_type=target.type,
            target_age_seconds=age,
            reason="mover location unknown",
        )
    distance = haversine_m(mover.latitude, mover.longitude, target.latitude, target.longitude)
    target_eta = distance / target_speed if target_speed > 0 else None
    if mover_speed <= 0:
        return RendezvousRow(
            target_name=target.asset_name,
            target_type=target.type,
            distance_m=distance,
            target_eta_seconds=target_eta,
            target_age_seconds=age,
            reason="mover speed must be positive",
        )
    eta = max(0.0, distance - safety_distance) / mover_speed
    if not math.isfinite(eta):
        return RendezvousRow(
            target_name=target.asset_name,
            target_type=target.type,
            distance_m=distance,
            target_eta_seconds=target_eta,
            target_age_seconds=age,
            reason="time to reach is not finite",
        )
    return RendezvousRow(
        target_name=target.asset_name,
        target_type=target.type,
        distance_m=distance,
        eta_seconds=eta,
        target_eta_seconds=target_eta,
        target_age_seconds=age,
        feasible=True,
    )


def plan_rendezvous(
    mover: AssetPosition | None,
    targets: Iterable[AssetPosition],
    *,
    mover_speed: float,
    target_speed: float,
    safety_distance: float,
    max_age: timedelta | None = None,
    target_types: Iterable[str] | None = TAG_TYPES,
    now: datetime | None = None,
) -> list[RendezvousRow]:
    """Rank candidate targets by time for the mover to close within ``safety_distance``.

    Parameters
    ----------
    mover : AssetPosition or None
        Current (or predicted) mover position.  ``None`` yields a table of
        infeasible rows.
    targets : iterable of AssetPosition
        Candidate positions, typically the latest fix of each tag.
    mover_speed : float
        Mover speed in m/s.
    target_speed : float
        Speed of the platform to be sent to the target, m/s; only used for
        the ``target_eta_seconds`` column.
    safety_distance : float
        Closing distance in meters; approach time excludes the part of the
        distance already within this radius.
    max_age : timedelta, optional
        Targets this old or older are left out.
    target_types : iterable of str, optional
        Only these position types are candidates; ``None`` accepts all.
    now : datetime, optional
        Reference time for ages, wall clock by default.

    Returns
    -------
    list of RendezvousRow
        Feasible rows ascending by ETA, then distance, then name, followed by
        infeasible rows in name order.
    """
    reference = now if now is not None else datetime.now(UTC)
    allowed = frozenset(target_types) if target_types is not None else None
    rows: list[RendezvousRow] = []
    for target in targets:
        if allowed is not None and target.type not in allowed:
            continue
        if mover is not None and target.asset_name == mover.asset_name:
            continue
        if max_age is not None and target.age(reference) >= max_age:
            continue
        rows.append(
            evaluate_target(
                mover,
                target,
                mover_speed=mover_speed,
                target_speed=target_speed,
                safety_distance=safety_distance,
                now=reference,
            )
        )
    rows.sort(key=_sort_key)
    return rows


def select_tag_targets(
    registry: TrackRegistry,
    *,
    target_types: Iterable[str] = TAG_TYPES,
) -> list[AssetPosition]:
    """Latest fix of every asset whose latest position type is a tag type."""
    wanted = frozenset(target_types)
    grouped = registry.positions_by_type()
    targets: list[AssetPosition] = []
    for position_type, positions in grouped.items():
        if position_type in wanted:
            targets.extend(positions)
    return targets


def decision_support(
    registry: TrackRegistry,
    mover_name: str,
    config: SitAwareConfig,
    *,
    use_prediction: bool = False,
    now: datetime | None = None,
) -> list[RendezvousRow] | None:
    """Build the feasibility table for the asset *mover_name*.

    Returns ``None`` when the mover has no known position.
    """
    track = registry.get_track(mover_name)
    if track is None:
        return None
    reference = now if now is not None else datetime.now(UTC)
    mover = track.get_prediction(reference) if use_prediction else None
    if mover is None:
        mover = track.get_latest()
    if mover is None:
        return None
    return plan_rendezvous(
        mover,
        select_tag_targets(registry),
        mover_speed=config.ship_speed_mps,
        target_speed=config.target_speed_mps,
        safety_distance=config.safety_distance_m,
        max_age=config.max_position_age,
        now=reference,
    )
