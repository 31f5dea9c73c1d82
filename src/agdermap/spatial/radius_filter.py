"""
"Show only nearby features" radius filter.

Each feature is reduced to the centroid of its representative ring
(`agdermap.spatial.geometry`), and kept when the haversine distance from the reference
point to that centroid is `<= radius_km`.

Axis order matters here: reference points are `(lat, lon)` while GeoJSON centroids are
`(lon, lat)`. Both sides are unpacked by name before calling `distance_km`.

Failure policy:
- bad radius / reference point: raise (`InvalidRadius`, `InvalidReferencePoint`);
- bad or unsupported geometry on one feature: skip it, log a warning, report it in
  `RadiusFilterResult.skipped`. A batch never fails because of a few broken records.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Iterable, Mapping, Sequence

from agdermap.core.geo import GeoPoint, distance_km
from agdermap.spatial.centroid import AREA_EPSILON
from agdermap.spatial.errors import InvalidRadius, InvalidReferencePoint, SpatialError
from agdermap.spatial.geometry import feature_centroid

logger = logging.getLogger(__name__)

# Per-feature failures; anything else is a bug and propagates.
_FEATURE_ERRORS = (SpatialError, TypeError, IndexError, KeyError)


@dataclass(frozen=True)
class SkippedFeature:
    """A feature excluded from the result because its geometry could not be used."""

    index: int
    code: str
    message: str

    def as_dict(self) -> dict[str, Any]:
        return {"index": self.index, "code": self.code, "message": self.message}


@dataclass(frozen=True)
class RadiusFilterResult:
    features: list[Mapping[str, Any]]
    total: int
    skipped: list[SkippedFeature] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return len(self.features)


def validate_radius(radius_km: Any) -> float:
    """Return `radius_km` as a positive finite float or raise `InvalidRadius`."""
    if isinstance(radius_km, bool) or not isinstance(radius_km, Real):
        raise InvalidRadius(f"radius_km must be a number, got {radius_km!r}")
    r = float(radius_km)
    if not math.isfinite(r) or r <= 0:
        raise InvalidRadius(f"radius_km must be a positive finite number, got {radius_km!r}")
    return r


def as_reference_point(reference: Any) -> GeoPoint:
    """Accept a `GeoPoint` or a `(lat, lon)` pair; raise `InvalidReferencePoint` otherwise."""
    if reference is None:
        raise InvalidReferencePoint("Reference point is required")
    if isinstance(reference, GeoPoint):
        lat, lon = reference.lat, reference.lon
    elif isinstance(reference, Sequence) and not isinstance(reference, (str, bytes)) and len(reference) == 2:
        lat, lon = reference
    else:
        raise InvalidReferencePoint(f"Reference point must be (lat, lon), got {reference!r}")

    if any(isinstance(v, bool) or not isinstance(v, Real) for v in (lat, lon)):
        raise InvalidReferencePoint(f"Reference point is not numeric: {reference!r}")
    lat_f, lon_f = float(lat), float(lon)
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise InvalidReferencePoint(f"Reference point is not finite: {reference!r}")
    if not (-90 <= lat_f <= 90 and -180 <= lon_f <= 180):
        raise InvalidReferencePoint(f"Reference point out of range (lat, lon): {reference!r}")
    return GeoPoint(lat=lat_f, lon=lon_f)


def _distance_to_feature_km(feature: Any, ref: GeoPoint, *, area_epsilon: float) -> float:
    centroid_lon, centroid_lat = feature_centroid(feature, area_epsilon=area_epsilon)
    return distance_km(ref.lat, ref.lon, centroid_lat, centroid_lon)


def within_radius(
    feature: Any,
    reference: Any,
    radius_km: Any,
    *,
    area_epsilon: float = AREA_EPSILON,
) -> bool:
    """Return True if the feature's centroid lies within `radius_km` of `reference`.

    Geometry problems are logged and classified as False; parameter problems raise.
    """
    radius = validate_radius(radius_km)
    ref = as_reference_point(reference)
    try:
        return _distance_to_feature_km(feature, ref, area_epsilon=area_epsilon) <= radius
    except _FEATURE_ERRORS as exc:
        logger.warning("Feature excluded from radius filter: %s", exc)
        return False


def filter_by_radius(
    features: Iterable[Any],
    reference: Any,
    radius_km: Any,
    *,
    area_epsilon: float = AREA_EPSILON,
) -> RadiusFilterResult:
    """Return the features whose centroid lies within `radius_km` of `reference`.

    The input is never modified; matched features are the same objects, in input order.
    """
    radius = validate_radius(radius_km)
    ref = as_reference_point(reference)

    matched: list[Mapping[str, Any]] = []
    skipped: list[SkippedFeature] = []
    total = 0
    for index, feature in enumerate(features):
        total += 1
        try:
            d = _distance_to_feature_km(feature, ref, area_epsilon=area_epsilon)
        except _FEATURE_ERRORS as exc:
            code = exc.code if isinstance(exc, SpatialError) else "INVALID_GEOMETRY"
            skipped.append(SkippedFeature(index=index, code=code, message=str(exc)))
            continue
        if d <= radius:
            matched.append(feature)

    if skipped:
        logger.warning(
            "Radius filter skipped %s of %s features (first: #%s %s)",
            len(skipped),
            total,
            skipped[0].index,
            skipped[0].message,
        )
    logger.info(
        "Filtered %s of %s features within %.2f km of lat=%.5f lon=%.5f",
        len(matched),
        total,
        radius,
        ref.lat,
        ref.lon,
    )
    return RadiusFilterResult(features=matched, total=total, skipped=skipped)
