"""
Offline geometry quality report for static layers.

Answers "how much of this layer will the radius filter actually see?" without touching
the network. Used by:
- CLI debugging (`agdermap quality-report`)
- API status endpoint for the web UI (`/api/forest/quality`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from agdermap.spatial.centroid import AREA_EPSILON, signed_ring_area
from agdermap.spatial.errors import SpatialError
from agdermap.spatial.geometry import (
    MultiPolygonGeometry,
    OtherGeometry,
    feature_geometry,
    representative_ring,
)

SAMPLE_SIZE = 8


@dataclass(frozen=True)
class Issue:
    severity: str  # "info" | "warning" | "error"
    code: str
    message: str
    count: int = 1
    sample: list[int] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


def _geometry_type(feature: Any) -> str:
    if not isinstance(feature, Mapping):
        return "invalid"
    geometry = feature.get("geometry")
    if isinstance(geometry, Mapping) and isinstance(geometry.get("type"), str):
        return geometry["type"]
    return "missing"


def build_geometry_report(features: Iterable[Any], *, area_epsilon: float = AREA_EPSILON) -> dict[str, Any]:
    """Classify every feature the way the radius filter would, and summarize problems."""
    type_counts: dict[str, int] = {}
    invalid: list[int] = []
    unsupported: list[int] = []
    degenerate: list[int] = []
    multipart: list[int] = []
    total = 0

    for index, feature in enumerate(features):
        total += 1
        geom_type = _geometry_type(feature)
        type_counts[geom_type] = type_counts.get(geom_type, 0) + 1
        try:
            geometry = feature_geometry(feature)
            if isinstance(geometry, OtherGeometry):
                unsupported.append(index)
                continue
            if isinstance(geometry, MultiPolygonGeometry) and len(geometry.polygons) > 1:
                multipart.append(index)
            if abs(signed_ring_area(representative_ring(geometry))) < area_epsilon:
                degenerate.append(index)
        except SpatialError:
            invalid.append(index)

    issues: list[Issue] = []
    if invalid:
        issues.append(
            Issue(
                severity="error",
                code="INVALID_GEOMETRY",
                message="Features with missing or malformed geometry are excluded from radius filtering.",
                count=len(invalid),
                sample=invalid[:SAMPLE_SIZE],
            )
        )
    if unsupported:
        issues.append(
            Issue(
                severity="warning",
                code="UNSUPPORTED_GEOMETRY",
                message="Non-areal features (points, lines) never match the radius filter.",
                count=len(unsupported),
                sample=unsupported[:SAMPLE_SIZE],
            )
        )
    if degenerate:
        issues.append(
            Issue(
                severity="warning",
                code="DEGENERATE_RING",
                message="Rings with ~zero area use the mean of their points as centroid.",
                count=len(degenerate),
                sample=degenerate[:SAMPLE_SIZE],
            )
        )
    if multipart:
        issues.append(
            Issue(
                severity="info",
                code="MULTIPOLYGON_PARTS_IGNORED",
                message="Multi-part features are located by their first part only.",
                count=len(multipart),
                sample=multipart[:SAMPLE_SIZE],
            )
        )

    usable = total - len(invalid) - len(unsupported)
    return {
        "total_features": total,
        "filterable_features": usable,
        "geometry_types": dict(sorted(type_counts.items(), key=lambda kv: (-kv[1], kv[0]))),
        "issues": [i.as_dict() for i in issues],
    }
