"""Asset position report model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, NamedTuple

from pydantic import AliasChoices, Field, field_validator

from pysitaware.models._base import SitAwareBaseModel, Timestamp


class AssetColor(NamedTuple):
    """Display color assigned to a track."""

    red: int
    green: int
    blue: int

    @property
    def hex(self) -> str:
        return f"#{self.red:02X}{self.green:02X}{self.blue:02X}"


class AssetPosition(SitAwareBaseModel):
    """A single timestamped position report for a named asset.

    Immutable once created.  :meth:`age` is evaluated against the clock at
    call time and never cached.

    Parameters
    ----------
    asset_name : str
        Asset identity (track key).
    latitude, longitude : float
        Position in decimal degrees.
    timestamp : datetime
        Fix time (UTC).
    type : str
        Position type, e.g. ``"SPOT Tag"``, ``"Argos Tag"`` or a vehicle type.
    metadata : str
        Free-form text attached by the source.
    """

    asset_name: str = Field(validation_alias=AliasChoices("asset_name", "assetName", "name", "asset"))
    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(ge=-180.0, le=360.0, validation_alias=AliasChoices("longitude", "lon", "lng"))
    timestamp: Timestamp = Field(validation_alias=AliasChoices("timestamp", "time", "updated_at", "updatedAt"))
    type: str = Field(default="Unknown", validation_alias=AliasChoices("type", "positionType", "assetType"))
    metadata: str = Field(default="", validation_alias=AliasChoices("metadata", "info", "description"))

    @field_validator("asset_name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("asset_name must be non-empty")
        return name

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> str:
        return value if isinstance(value, str) else str(value)

    @property
    def location(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    def age(self, now: datetime | None = None) -> timedelta:
        """Time elapsed since the fix, relative to *now* (wall clock by default)."""
        reference = now if now is not None else datetime.now(UTC)
        return reference - self.timestamp

    def age_seconds(self, now: datetime | None = None) -> float:
        return self.age(now).total_seconds()

    def same_fix(self, other: AssetPosition) -> bool:
        """Whether *other* reports the same timestamp and location."""
        return (
            self.timestamp == other.timestamp
            and self.latitude == other.latitude
            and self.longitude == other.longitude
        )

    def same_content(self, other: AssetPosition) -> bool:
        return self.same_fix(other) and self.type == other.type and self.metadata == other.metadata
