"""
Point-in-region queries ("is this map click inside Agder?").

Parsed geometries are turned into shapely shapes in `(lon, lat)` degree space and tested
with `covers`, so a point on a border (including a hole's border) counts as inside.
Polygons honour their holes; a MultiPolygon contains the point if any part does.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry

from agdermap.core.geo import GeoPoint
from agdermap.spatial.centroid import coerce_ring
from agdermap.spatial.errors import InvalidGeometry, SpatialError
from agdermap.spatial.geometry import (
    Geometry,
    MultiPolygonGeometry,
    PolygonGeometry,
    feature_geometry,
)

logger = logging.getLogger(__name__)


def _to_polygon(polygon: PolygonGeometry) -> Polygon:
    return Polygon(coerce_ring(polygon.outer_ring), [coerce_ring(h) for h in polygon.holes])


def to_shape(geometry: Geometry) -> BaseGeometry | None:
    """Return the shapely shape of an areal geometry, or None for points, lines, etc.

    Raises:
        InvalidGeometry: Rings shapely cannot build (fewer than three positions).
    """
    try:
        if isinstance(geometry, PolygonGeometry):
            return _to_polygon(geometry)
        if isinstance(geometry, MultiPolygonGeometry):
            return MultiPolygon([_to_polygon(part) for part in geometry.polygons])
    except (ValueError, GEOSException) as exc:
        if isinstance(exc, SpatialError):
            raise
        raise InvalidGeometry(f"Cannot build polygon: {exc}") from exc
    return None


def point_in_geometry(point: GeoPoint, geometry: Geometry) -> bool:
    """Return True if `point` lies inside or on the border of an areal geometry."""
    shape = to_shape(geometry)
    if shape is None:
        return False
    try:
        return bool(shape.covers(Point(point.lon, point.lat)))
    except GEOSException as exc:
        raise InvalidGeometry(f"Cannot test containment: {exc}") from exc


def find_containing_feature(features: Iterable[Any], point: GeoPoint) -> Mapping[str, Any] | None:
    """Return the first feature whose geometry contains `point`, skipping malformed ones."""
    for index, feature in enumerate(features):
        try:
            if point_in_geometry(point, feature_geometry(feature)):
                return feature
        except SpatialError as exc:
            logger.warning("Skipping feature #%s in containment query: %s", index, exc)
    return None
