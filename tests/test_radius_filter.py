import copy
import logging
import math

import pytest

from agdermap.core.geo import GeoPoint, distance_km
from agdermap.spatial.centroid import ring_centroid
from agdermap.spatial.errors import InvalidRadius, InvalidReferencePoint
from agdermap.spatial.radius_filter import filter_by_radius, within_radius

KRISTIANSAND = GeoPoint(lat=58.16, lon=7.99)


def square_ring(lon: float, lat: float, half: float = 0.005) -> list[list[float]]:
    return [
        [lon - half, lat - half],
        [lon + half, lat - half],
        [lon + half, lat + half],
        [lon - half, lat + half],
        [lon - half, lat - half],
    ]


def polygon_feature(lon: float, lat: float, **props) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [square_ring(lon, lat)]},
        "properties": dict(props),
    }


def test_end_to_end_near_feature_included_far_feature_excluded():
    near = polygon_feature(8.0, 58.17, osm_id="near")
    far = polygon_feature(7.99, 58.34, osm_id="far")  # ~20 km north

    result = filter_by_radius([near, far], KRISTIANSAND, 5)

    assert result.features == [near]
    assert result.features[0] is near
    assert result.total == 2
    assert result.matched == 1
    assert result.skipped == []


def test_within_radius_single_feature_verdicts():
    assert within_radius(polygon_feature(8.0, 58.17), KRISTIANSAND, 5) is True
    assert within_radius(polygon_feature(7.99, 58.34), KRISTIANSAND, 5) is False


def test_radius_boundary_is_inclusive():
    feature = polygon_feature(8.05, 58.2)
    lon, lat = ring_centroid(feature["geometry"]["coordinates"][0])
    exact = distance_km(KRISTIANSAND.lat, KRISTIANSAND.lon, lat, lon)

    assert within_radius(feature, KRISTIANSAND, exact) is True
    assert within_radius(feature, KRISTIANSAND, exact * (1 - 1e-9)) is False


def test_reference_point_is_lat_lon_and_centroid_is_lon_lat():
    # Feature centred on (lon=7.99, lat=58.16) is the reference point itself.
    feature = polygon_feature(7.99, 58.16)
    assert within_radius(feature, (58.16, 7.99), 0.01) is True
    # Same numbers with the axes swapped are thousands of km away.
    assert within_radius(feature, (7.99, 58.16), 100) is False


def test_malformed_feature_is_skipped_not_fatal():
    valid = [polygon_feature(7.99 + i * 0.01, 58.16) for i in range(9)]
    broken = {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": []}, "properties": {}}
    features = valid[:4] + [broken] + valid[4:]

    result = filter_by_radius(features, KRISTIANSAND, 50)

    assert result.features == valid
    assert result.total == 10
    assert len(result.skipped) == 1
    assert result.skipped[0].index == 4
    assert result.skipped[0].code == "INVALID_GEOMETRY"


@pytest.mark.parametrize(
    "broken",
    [
        {"type": "Feature", "properties": {}},
        {"type": "Feature", "geometry": None},
        {"type": "Feature", "geometry": {"type": "Polygon"}},
        {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [[]]}},
        {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [[["a", "b"], [1, 2], [3, 4]]]}},
        {"type": "Feature", "geometry": {"type": "MultiPolygon", "coordinates": [[]]}},
        None,
        "not a feature",
    ],
)
def test_assorted_broken_records_are_skipped(broken):
    good = polygon_feature(8.0, 58.17)
    result = filter_by_radius([broken, good], KRISTIANSAND, 5)
    assert result.features == [good]
    assert [s.index for s in result.skipped] == [0]


def test_unsupported_geometry_is_excluded_and_logged(caplog):
    point = {"type": "Feature", "geometry": {"type": "Point", "coordinates": [7.99, 58.16]}}

    result = filter_by_radius([point], KRISTIANSAND, 5)
    assert result.features == []
    assert result.skipped[0].code == "UNSUPPORTED_GEOMETRY"

    with caplog.at_level(logging.WARNING, logger="agdermap.spatial.radius_filter"):
        assert within_radius(point, KRISTIANSAND, 5) is False
    assert any("Point" in r.getMessage() for r in caplog.records)


def test_multipolygon_uses_first_part_only():
    near_part = [square_ring(8.0, 58.17)]
    far_part = [square_ring(7.99, 58.34)]
    near_first = {"type": "Feature", "geometry": {"type": "MultiPolygon", "coordinates": [near_part, far_part]}}
    far_first = {"type": "Feature", "geometry": {"type": "MultiPolygon", "coordinates": [far_part, near_part]}}

    result = filter_by_radius([near_first, far_first], KRISTIANSAND, 5)
    assert result.features == [near_first]


def test_polygon_holes_do_not_move_the_centroid():
    feature = polygon_feature(8.0, 58.17)
    with_hole = copy.deepcopy(feature)
    with_hole["geometry"]["coordinates"].append(square_ring(8.003, 58.173, half=0.001))
    assert within_radius(with_hole, KRISTIANSAND, 1.3) == within_radius(feature, KRISTIANSAND, 1.3)


def test_filter_does_not_mutate_input():
    features = [polygon_feature(8.0, 58.17, osm_id=1), polygon_feature(7.99, 58.34, osm_id=2)]
    snapshot = copy.deepcopy(features)

    result = filter_by_radius(features, KRISTIANSAND, 5)

    assert features == snapshot
    assert result.features is not features


def test_accepts_generators():
    result = filter_by_radius((polygon_feature(8.0, 58.17) for _ in range(3)), KRISTIANSAND, 5)
    assert result.total == 3
    assert result.matched == 3


@pytest.mark.parametrize("radius", [0, -1, math.nan, math.inf, "5", None, True])
def test_invalid_radius_raises(radius):
    with pytest.raises(InvalidRadius):
        filter_by_radius([], KRISTIANSAND, radius)
    with pytest.raises(InvalidRadius):
        within_radius(polygon_feature(8.0, 58.17), KRISTIANSAND, radius)


@pytest.mark.parametrize(
    "reference",
    [None, (95.0, 7.99), ("a", "b"), (58.16,), "58.16,7.99", (True, 7.99), (58.16, False), ("58.16", "7.99")],
)
def test_invalid_reference_point_raises(reference):
    with pytest.raises(InvalidReferencePoint):
        filter_by_radius([polygon_feature(8.0, 58.17)], reference, 5)


def test_invalid_radius_is_a_value_error():
    with pytest.raises(ValueError):
        filter_by_radius([], KRISTIANSAND, -3)
