"""
GeoJSON geometry parsing into a small tagged union.

Only areal geometries take part in radius filtering:
- `PolygonGeometry`: outer ring (`coordinates[0]`) plus holes;
- `MultiPolygonGeometry`: ordered parts; the first part's outer ring
  (`coordinates[0][0]`) represents the whole feature;
- `OtherGeometry`: everything else (Point, LineString, unknown types), which the
  filter classifies as "not matched".

Parsing is structural only; coordinate values are validated when a ring is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

from agdermap.spatial.centroid import AREA_EPSILON, Position, ring_centroid
from agdermap.spatial.errors import InvalidGeometry, UnsupportedGeometryType

Ring = Sequence[Sequence[float]]


@dataclass(frozen=True)
class PolygonGeometry:
    outer_ring: Ring
    holes: tuple[Ring, ...] = ()


@dataclass(frozen=True)
class MultiPolygonGeometry:
    polygons: tuple[PolygonGeometry, ...]


@dataclass(frozen=True)
class OtherGeometry:
    type: str


Geometry = Union[PolygonGeometry, MultiPolygonGeometry, OtherGeometry]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _parse_polygon(rings: Any, *, where: str) -> PolygonGeometry:
    if not _is_sequence(rings) or len(rings) == 0:
        raise InvalidGeometry(f"{where} has no rings")
    for i, ring in enumerate(rings):
        if not _is_sequence(ring) or (len(ring) > 0 and not _is_sequence(ring[0])):
            raise InvalidGeometry(f"{where} ring {i} is not a sequence of positions")
    return PolygonGeometry(outer_ring=rings[0], holes=tuple(rings[1:]))


def parse_geometry(geometry: Any) -> Geometry:
    """Parse a GeoJSON geometry mapping.

    Raises:
        InvalidGeometry: Missing geometry, type or coordinates, or wrong nesting.
    """
    if not isinstance(geometry, Mapping):
        raise InvalidGeometry("Feature has no geometry object")

    geom_type = geometry.get("type")
    if not isinstance(geom_type, str) or not geom_type:
        raise InvalidGeometry("Geometry is missing its 'type'")

    if geom_type not in {"Polygon", "MultiPolygon"}:
        return OtherGeometry(type=geom_type)

    coordinates = geometry.get("coordinates")
    if coordinates is None:
        raise InvalidGeometry(f"{geom_type} geometry is missing 'coordinates'")

    if geom_type == "Polygon":
        return _parse_polygon(coordinates, where="Polygon")

    if not _is_sequence(coordinates) or len(coordinates) == 0:
        raise InvalidGeometry("MultiPolygon has no parts")
    parts = tuple(_parse_polygon(part, where=f"MultiPolygon part {i}") for i, part in enumerate(coordinates))
    return MultiPolygonGeometry(polygons=parts)


def representative_ring(geometry: Geometry) -> Ring:
    """Return the ring whose centroid stands in for the whole geometry.

    Raises:
        UnsupportedGeometryType: For anything other than Polygon/MultiPolygon.
    """
    if isinstance(geometry, PolygonGeometry):
        return geometry.outer_ring
    if isinstance(geometry, MultiPolygonGeometry):
        # First part only; other parts and all holes are ignored.
        return geometry.polygons[0].outer_ring
    if isinstance(geometry, OtherGeometry):
        raise UnsupportedGeometryType(geometry.type)
    raise TypeError(f"Unknown geometry variant: {type(geometry).__name__}")


def feature_geometry(feature: Any) -> Geometry:
    if not isinstance(feature, Mapping):
        raise InvalidGeometry(f"Feature must be a mapping, got {type(feature).__name__}")
    return parse_geometry(feature.get("geometry"))


def feature_centroid(feature: Any, *, area_epsilon: float = AREA_EPSILON) -> Position:
    """Return the `(lon, lat)` centroid of a GeoJSON feature's representative ring."""
    return ring_centroid(representative_ring(feature_geometry(feature)), area_epsilon=area_epsilon)
