import copy
import math

import pytest

from agdermap.spatial.centroid import ring_centroid, signed_ring_area
from agdermap.spatial.errors import InvalidGeometry

UNIT_SQUARE = [(0, 0), (1, 0), (1, 1), (0, 1)]


def test_unit_square_centroid_is_its_center():
    assert ring_centroid(UNIT_SQUARE) == (0.5, 0.5)


def test_explicitly_closed_ring_gives_same_centroid():
    closed = [*UNIT_SQUARE, UNIT_SQUARE[0]]
    assert ring_centroid(closed) == pytest.approx((0.5, 0.5))


def test_l_shape_centroid_is_area_weighted_not_vertex_mean():
    ring = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
    # Vertex mean would be (1, 1); the area centroid is pulled toward the 2x1 block.
    assert ring_centroid(ring) == pytest.approx((5 / 6, 5 / 6))


def test_reversed_winding_gives_same_centroid():
    ring = [(7.99, 58.16), (8.02, 58.16), (8.03, 58.18), (7.98, 58.19)]
    assert signed_ring_area(ring) > 0
    assert signed_ring_area(list(reversed(ring))) < 0
    assert ring_centroid(list(reversed(ring))) == pytest.approx(ring_centroid(ring), abs=1e-7)


def test_coincident_points_fall_back_to_mean():
    cx, cy = ring_centroid([(5, 5), (5, 5), (5, 5)])
    assert (cx, cy) == (5, 5)
    assert not math.isnan(cx) and not math.isnan(cy)


def test_collinear_points_fall_back_to_mean():
    assert ring_centroid([(0, 0), (1, 1), (2, 2)]) == pytest.approx((1.0, 1.0))


def test_area_below_threshold_uses_mean_point():
    ring = [(0, 0), (1e-6, 0), (0, 1e-6)]
    assert abs(signed_ring_area(ring)) < 1e-10
    assert ring_centroid(ring) == pytest.approx((1e-6 / 3, 1e-6 / 3))


def test_custom_area_epsilon_can_force_fallback():
    ring = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
    assert ring_centroid(ring, area_epsilon=10.0) == pytest.approx((1.0, 1.0))


def test_single_point_ring_returns_that_point():
    assert ring_centroid([(3.5, 4.5)]) == (3.5, 4.5)


def test_empty_ring_is_invalid():
    with pytest.raises(InvalidGeometry):
        ring_centroid([])


@pytest.mark.parametrize(
    "ring",
    [
        None,
        "0,0 1,0 1,1",
        [(0, 0), (1, "x"), (1, 1)],
        [(0, 0), (1,), (1, 1)],
        [(0, 0), (float("nan"), 0), (1, 1)],
        [(0, 0), (True, 0), (1, 1)],
    ],
)
def test_malformed_rings_are_invalid(ring):
    with pytest.raises(InvalidGeometry):
        ring_centroid(ring)


def test_centroid_is_pure():
    ring = [[7.99, 58.16], [8.01, 58.16], [8.01, 58.18], [7.99, 58.18]]
    before = copy.deepcopy(ring)
    first = ring_centroid(ring)
    ring_centroid([(0, 0), (10, 0), (10, 10)])
    assert ring_centroid(ring) == first
    assert ring == before


def test_extra_position_values_are_ignored():
    ring = [(0, 0, 12.0), (1, 0, 13.0), (1, 1, 14.0), (0, 1, 15.0)]
    assert ring_centroid(ring) == (0.5, 0.5)
