"""Geodesy helpers."""

from __future__ import annotations

import math

from pysitaware._constants import EARTH_RADIUS_M


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in decimal degrees."""
    phi1, lam1, phi2, lam2 = map(math.radians, (lat1, lon1, lat2, lon2))
    dphi = phi2 - phi1
    dlam = lam2 - lam1
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def extrapolate(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    factor: float,
) -> tuple[float, float]:
    """Offset point 2 by ``factor`` times the displacement from point 1 to point 2.

    The displacement is taken in degrees, which is adequate for the short
    spans between consecutive fixes.  Latitude is clamped to the poles and
    longitude wrapped into ``[-180, 180)``.
    """
    dlon = lon2 - lon1
    # Take the short way across the antimeridian.
    if dlon > 180.0:
        dlon -= 360.0
    elif dlon < -180.0:
        dlon += 360.0
    lat = max(-90.0, min(90.0, lat2 + (lat2 - lat1) * factor))
    lon = (lon2 + dlon * factor + 180.0) % 360.0 - 180.0
    return lat, lon
