from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt

"""
Great-circle distance helpers.

Spherical earth (R = 6371 km), haversine formula. Good enough for the regional
(tens of km) radius queries the map makes; no ellipsoidal correction.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees (note: lat first)."""

    lat: float
    lon: float


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in kilometers between two lat/lon points."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    a = sin(dlat / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlon / 2) ** 2
    a = min(1.0, a)  # rounding near antipodes
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(a), sqrt(1 - a))


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    return distance_km(a.lat, a.lon, b.lat, b.lon)
