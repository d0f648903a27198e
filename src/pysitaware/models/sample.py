"""Vector-field sample (HF radar current cell) and its spatial key."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, Field, ValidationError, field_validator

from pysitaware.exceptions import InvalidSampleError
from pysitaware.models._base import SitAwareBaseModel, Timestamp


class CellKey:
    """Exact spatial identity of a grid cell.

    Built from the shortest round-trip decimal text of each coordinate, so two
    keys are equal only when both floats are bit-for-bit equal.  There is no
    tolerance: ``(10.0, 20.0)`` and ``(10.0, 20.000001)`` are distinct cells.
    """

    __slots__ = ("_lat", "_lon")

    def __init__(self, latitude: float, longitude: float) -> None:
        lat = float(latitude)
        lon = float(longitude)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidSampleError(f"non-finite cell coordinate ({latitude}, {longitude})")
        # -0.0 and 0.0 compare equal as floats; keep them as one cell.
        self._lat = repr(lat + 0.0)
        self._lon = repr(lon + 0.0)

    @property
    def latitude(self) -> float:
        return float(self._lat)

    @property
    def longitude(self) -> float:
        return float(self._lon)

    def __str__(self) -> str:
        return f"{self._lat}:{self._lon}"

    def __repr__(self) -> str:
        return f"CellKey({self._lat}, {self._lon})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellKey):
            return NotImplemented
        return self._lat == other._lat and self._lon == other._lon

    def __hash__(self) -> int:
        return hash((self._lat, self._lon))


class VectorSample(SitAwareBaseModel):
    """A single timestamped 2-D vector observation at a grid point.

    Parameters
    ----------
    latitude, longitude : float
        Grid point in decimal degrees.
    speed_cm_s : float
        Vector magnitude in cm/s.
    heading_degrees : float
        Direction in degrees, normalised into ``[0, 360)``.
    observed_at : datetime
        Acquisition time (UTC).
    resolution_km : float
        Grid resolution, ``-1`` when unknown.
    source_info : str
        Originating station / feed tag.
    """

    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(ge=-180.0, le=360.0, validation_alias=AliasChoices("longitude", "lon", "lng"))
    speed_cm_s: float = Field(validation_alias=AliasChoices("speed_cm_s", "speedCmS", "speed"))
    heading_degrees: float = Field(validation_alias=AliasChoices("heading_degrees", "headingDegrees", "headingDeg", "heading"))
    observed_at: Timestamp = Field(validation_alias=AliasChoices("observed_at", "observedAt", "timestamp", "dateUTC"))
    resolution_km: float = Field(default=-1.0, validation_alias=AliasChoices("resolution_km", "resolutionKm"))
    source_info: str = Field(default="", validation_alias=AliasChoices("source_info", "sourceInfo", "info"))

    @field_validator("heading_degrees")
    @classmethod
    def _wrap_heading(cls, value: float) -> float:
        return value % 360.0

    @field_validator("source_info", mode="before")
    @classmethod
    def _coerce_info(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def cell_key(self) -> CellKey:
        return CellKey(self.latitude, self.longitude)

    @property
    def speed_m_s(self) -> float:
        return self.speed_cm_s / 100.0


def parse_sample(raw: Mapping[str, Any]) -> VectorSample:
    """Validate a mapping into a :class:`VectorSample`.

    Raises :class:`InvalidSampleError` instead of pydantic's ``ValidationError``
    so ingestion paths can drop the sample on one exception type.
    """
    try:
        return VectorSample.model_validate(dict(raw))
    except ValidationError as exc:
        raise InvalidSampleError(f"invalid vector sample: {exc.error_count()} error(s)", raw=raw) from exc
