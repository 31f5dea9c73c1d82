"""
Domain models (Pydantic).

These types are the contract between layers:
- API/CLI inputs (`NearbyQuery`)
- GeoJSON envelopes (`FeatureCollection`), with features kept as opaque dicts
- filter output (`NearbyResult`)

Features themselves are never modelled field by field: the spatial core only looks at
`geometry`, and the renderer reuses `properties` untouched.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agdermap.core.geo import GeoPoint as CoreGeoPoint


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees (latitude first)."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_core(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lon=self.lon)


class FeatureCollection(BaseModel):
    """A GeoJSON FeatureCollection; foreign members (crs, name, ...) are preserved."""

    model_config = ConfigDict(extra="allow")

    type: Literal["FeatureCollection"] = "FeatureCollection"
    # `Any`, not dict: one malformed entry must not reject the whole file.
    features: list[Any] = Field(default_factory=list)


class NearbyQuery(BaseModel):
    """Request payload for the "forest near me" filter."""

    origin: GeoPoint
    radius_km: float = Field(..., gt=0, allow_inf_nan=False)


class SkippedFeatureOut(BaseModel):
    index: int
    code: str
    message: str


class NearbyResult(BaseModel):
    query: NearbyQuery
    collection: FeatureCollection
    total: int
    matched: int
    skipped: list[SkippedFeatureOut] = Field(default_factory=list)
    view: dict[str, Any] = Field(default_factory=dict)


class ContainmentResult(BaseModel):
    point: GeoPoint
    inside: bool
    region: str | None = None
