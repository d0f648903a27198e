"""Runtime configuration for pysitaware."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from typing import Any

from pysitaware.exceptions import SitAwareConfigError
from pysitaware.tracking.track import DuplicatePolicy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_name_set(value: str | None) -> frozenset[str]:
    """Split a comma separated list of names, ignoring blanks."""
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


@dataclasses.dataclass(frozen=True)
class SitAwareConfig:
    """Situation-awareness configuration.

    Parameters
    ----------
    ship_speed_mps : float
        Speed of the pursuing platform in m/s.
    target_speed_mps : float
        Speed of the slow platform sent after a target (e.g. an AUV), m/s.
    safety_distance_m : float
        Minimum distance the ship may come to a target, in meters.
    max_position_age_hours : float
        Positions older than this are ignored by queries and planning.
    enabled_location_sources : frozenset of str
        Names of location sources that should be running.
    hidden_position_types : frozenset of str
        Position types render surfaces should not draw.
    audible_updates : bool
        Emit audible-alert notifications for fresh positions.
    recent_update_threshold_s : float
        A new fix only notifies when the previous latest is older than this.
    color_seed : int or None
        Seed for per-asset display colors.  ``None`` means nondeterministic.
    duplicate_policy : DuplicatePolicy
        How tracks detect repeated reports.
    track_window_minutes : float
        Window handed to render surfaces reading a track.
    aggregation_interval_s : float
        Period of the vector-field aggregation sweep.
    sample_max_age_hours : float
        Vector-field history older than this is purged by the sweep.
    """

    ship_speed_mps: float = 10.0
    target_speed_mps: float = 1.25
    safety_distance_m: float = 3000.0
    max_position_age_hours: float = 12.0
    enabled_location_sources: frozenset[str] = frozenset()
    hidden_position_types: frozenset[str] = frozenset()
    audible_updates: bool = True
    recent_update_threshold_s: float = 30.0
    color_seed: int | None = None
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIX
    track_window_minutes: float = 15.0
    aggregation_interval_s: float = 60.0
    sample_max_age_hours: float = 24.0

    def __post_init__(self) -> None:
        for name in ("safety_distance_m", "max_position_age_hours", "recent_update_threshold_s", "sample_max_age_hours"):
            if getattr(self, name) < 0:
                raise SitAwareConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.aggregation_interval_s <= 0:
            raise SitAwareConfigError(f"aggregation_interval_s must be > 0, got {self.aggregation_interval_s}")
        if self.track_window_minutes <= 0:
            raise SitAwareConfigError(f"track_window_minutes must be > 0, got {self.track_window_minutes}")
        # Accept plain strings/iterables for the set-valued options.
        for name in ("enabled_location_sources", "hidden_position_types"):
            value = getattr(self, name)
            if isinstance(value, str):
                object.__setattr__(self, name, parse_name_set(value))
            elif not isinstance(value, frozenset):
                object.__setattr__(self, name, frozenset(value))
        if not isinstance(self.duplicate_policy, DuplicatePolicy):
            try:
                object.__setattr__(self, "duplicate_policy", DuplicatePolicy(self.duplicate_policy))
            except ValueError as exc:
                raise SitAwareConfigError(f"unknown duplicate_policy {self.duplicate_policy!r}") from exc

    @property
    def max_position_age(self) -> timedelta:
        return timedelta(hours=self.max_position_age_hours)

    @property
    def sample_max_age(self) -> timedelta:
        return timedelta(hours=self.sample_max_age_hours)

    @property
    def recent_update_threshold(self) -> timedelta:
        return timedelta(seconds=self.recent_update_threshold_s)

    def replace(self, **changes: Any) -> SitAwareConfig:
        """Return a copy with *changes* applied (validated again)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, **overrides: Any) -> SitAwareConfig:
        """Create configuration from ``SITAWARE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_FLOAT_MAP = {
            "SITAWARE_SHIP_SPEED": "ship_speed_mps",
            "SITAWARE_TARGET_SPEED": "target_speed_mps",
            "SITAWARE_SAFETY_DISTANCE": "safety_distance_m",
            "SITAWARE_MAX_POSITION_AGE_HOURS": "max_position_age_hours",
            "SITAWARE_RECENT_UPDATE_THRESHOLD": "recent_update_threshold_s",
            "SITAWARE_TRACK_WINDOW_MINUTES": "track_window_minutes",
            "SITAWARE_AGGREGATION_INTERVAL": "aggregation_interval_s",
            "SITAWARE_SAMPLE_MAX_AGE_HOURS": "sample_max_age_hours",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise SitAwareConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        sources_env = env.get("SITAWARE_LOCATION_SOURCES")
        if sources_env is not None:
            config_kwargs["enabled_location_sources"] = parse_name_set(sources_env)

        hidden_env = env.get("SITAWARE_HIDDEN_TYPES")
        if hidden_env is not None:
            config_kwargs["hidden_position_types"] = parse_name_set(hidden_env)

        if "audible_updates" not in overrides:
            config_kwargs["audible_updates"] = _env_bool(env.get("SITAWARE_AUDIBLE_UPDATES"), True)

        seed_env = env.get("SITAWARE_COLOR_SEED")
        if seed_env is not None and "color_seed" not in overrides:
            try:
                config_kwargs["color_seed"] = int(seed_env)
            except ValueError as exc:
                raise SitAwareConfigError(f"SITAWARE_COLOR_SEED must be an integer, got {seed_env!r}") from exc

        policy_env = env.get("SITAWARE_DUPLICATE_POLICY")
        if policy_env is not None:
            config_kwargs["duplicate_policy"] = policy_env.strip().lower()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
