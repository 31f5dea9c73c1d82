"""
Polygon centroid (signed-area / shoelace formula).

Rings are sequences of `(lon, lat)` positions in decimal degrees, treated as cyclic
(`j = (i + 1) % n`), so an explicit closing point is optional. The computation is planar
in degree space: fine for forest stands and municipal parts, not for continent-sized
polygons.

Rings whose absolute shoelace area falls below `AREA_EPSILON` (collinear or coincident
points, slivers) return the arithmetic mean of their points instead of dividing by ~0.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Sequence

from agdermap.spatial.errors import InvalidGeometry

AREA_EPSILON = 1e-10

Position = tuple[float, float]


def _coerce_position(value: Any, index: int) -> Position:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)) or len(value) < 2:
        raise InvalidGeometry(f"Ring position {index} is not a coordinate pair: {value!r}")
    x, y = value[0], value[1]
    for v in (x, y):
        if isinstance(v, bool) or not isinstance(v, Real):
            raise InvalidGeometry(f"Ring position {index} has a non-numeric value: {value!r}")
    x_f, y_f = float(x), float(y)
    if not (math.isfinite(x_f) and math.isfinite(y_f)):
        raise InvalidGeometry(f"Ring position {index} is not finite: {value!r}")
    return x_f, y_f


def coerce_ring(ring: Any) -> list[Position]:
    """Validate a ring and return it as a list of float `(x, y)` pairs."""
    if ring is None or isinstance(ring, (str, bytes)) or not isinstance(ring, Sequence):
        raise InvalidGeometry(f"Ring must be a sequence of positions, got {type(ring).__name__}")
    if len(ring) == 0:
        raise InvalidGeometry("Cannot compute the centroid of an empty ring")
    return [_coerce_position(p, i) for i, p in enumerate(ring)]


def _shoelace(points: list[Position]) -> tuple[float, float, float]:
    """Return (signed area, Cx sum, Cy sum) for a cyclic ring."""
    area2 = 0.0
    cx = 0.0
    cy = 0.0
    n = len(points)
    for i in range(n):
        xi, yi = points[i]
        xj, yj = points[(i + 1) % n]
        cross = xi * yj - xj * yi
        area2 += cross
        cx += (xi + xj) * cross
        cy += (yi + yj) * cross
    return 0.5 * area2, cx, cy


def signed_ring_area(ring: Sequence[Sequence[float]]) -> float:
    """Signed shoelace area in squared degrees (positive for counter-clockwise rings)."""
    area, _, _ = _shoelace(coerce_ring(ring))
    return area


def ring_centroid(ring: Sequence[Sequence[float]], *, area_epsilon: float = AREA_EPSILON) -> Position:
    """Return the `(lon, lat)` centroid of a polygon ring.

    Raises:
        InvalidGeometry: If the ring is empty or holds malformed positions.
    """
    points = coerce_ring(ring)
    area, cx, cy = _shoelace(points)

    if abs(area) < area_epsilon:
        n = len(points)
        return sum(p[0] for p in points) / n, sum(p[1] for p in points) / n

    # Signed area on purpose: winding direction cancels between numerator and denominator.
    return cx / (6 * area), cy / (6 * area)
