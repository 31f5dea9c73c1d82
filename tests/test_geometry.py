import pytest

from agdermap.spatial.errors import InvalidGeometry, UnsupportedGeometryType
from agdermap.spatial.geometry import (
    MultiPolygonGeometry,
    OtherGeometry,
    PolygonGeometry,
    feature_centroid,
    parse_geometry,
    representative_ring,
)

OUTER = [[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]]
HOLE = [[1, 1], [2, 1], [2, 2], [1, 2], [1, 1]]


def test_polygon_outer_ring_and_holes():
    geom = parse_geometry({"type": "Polygon", "coordinates": [OUTER, HOLE]})
    assert isinstance(geom, PolygonGeometry)
    assert geom.outer_ring == OUTER
    assert geom.holes == (HOLE,)
    assert representative_ring(geom) == OUTER


def test_multipolygon_representative_ring_is_first_parts_outer_ring():
    second = [[10, 10], [11, 10], [11, 11], [10, 10]]
    geom = parse_geometry({"type": "MultiPolygon", "coordinates": [[OUTER, HOLE], [second]]})
    assert isinstance(geom, MultiPolygonGeometry)
    assert len(geom.polygons) == 2
    assert representative_ring(geom) == OUTER


@pytest.mark.parametrize("geom_type", ["Point", "LineString", "GeometryCollection", "Circle"])
def test_other_types_parse_but_are_unsupported(geom_type):
    geom = parse_geometry({"type": geom_type, "coordinates": [0, 0]})
    assert geom == OtherGeometry(type=geom_type)
    with pytest.raises(UnsupportedGeometryType) as exc_info:
        representative_ring(geom)
    assert exc_info.value.geometry_type == geom_type


@pytest.mark.parametrize(
    "geometry",
    [
        None,
        [],
        {},
        {"type": ""},
        {"type": 7, "coordinates": []},
        {"type": "Polygon", "coordinates": None},
        {"type": "Polygon", "coordinates": []},
        {"type": "Polygon", "coordinates": "[[0,0]]"},
        {"type": "Polygon", "coordinates": [5]},
        {"type": "MultiPolygon", "coordinates": []},
        {"type": "MultiPolygon", "coordinates": [OUTER]},
    ],
)
def test_malformed_geometries_are_invalid(geometry):
    with pytest.raises(InvalidGeometry):
        parse_geometry(geometry)


def test_feature_centroid_returns_lon_lat():
    feature = {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [OUTER]}}
    assert feature_centroid(feature) == pytest.approx((2.0, 2.0))
