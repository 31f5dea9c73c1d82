"""
Spatial filtering errors.

Two families:
- per-feature data problems (`InvalidGeometry`, `UnsupportedGeometryType`): the radius
  filter catches these, skips the feature and reports it;
- caller-side parameter problems (`InvalidRadius`, `InvalidReferencePoint`): always raised.

All subclass `ValueError` so the API layer can map them to HTTP 400.
"""

from __future__ import annotations


class SpatialError(ValueError):
    """Base class for spatial filtering errors."""

    code = "SPATIAL_ERROR"


class InvalidGeometry(SpatialError):
    """Empty or malformed ring / geometry (missing arrays, non-numeric values)."""

    code = "INVALID_GEOMETRY"


class UnsupportedGeometryType(SpatialError):
    """Geometry variant the filter cannot compute a centroid for (Point, LineString, ...)."""

    code = "UNSUPPORTED_GEOMETRY"

    def __init__(self, geometry_type: str):
        super().__init__(f"Unsupported geometry type: {geometry_type!r}")
        self.geometry_type = geometry_type


class InvalidRadius(SpatialError):
    code = "INVALID_RADIUS"


class InvalidReferencePoint(SpatialError):
    code = "INVALID_REFERENCE_POINT"
