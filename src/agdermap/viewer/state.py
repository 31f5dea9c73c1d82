"""
Viewer state for the map UI.

The browser used to keep the current view, the "filtered" flag, the user's position
and the temporary marker/circle layers in globals. Here that state is an explicit,
immutable value owned by the caller: every transition returns a new `ViewerState`,
and the API hands its `as_dict()` to the frontend to render.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from agdermap.config.settings import Settings
from agdermap.core.geo import GeoPoint

FOREST_LAYER = "forest"
OBSERVATIONS_LAYER = "observations"
REGIONS_LAYER = "regions"


@dataclass(frozen=True)
class MapView:
    center: GeoPoint
    zoom: int


@dataclass(frozen=True)
class Overlay:
    """A temporary layer drawn on top of the map (position marker, radius circle)."""

    kind: str  # "marker" | "circle"
    center: GeoPoint
    radius_m: float | None = None
    label: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "lat": self.center.lat,
            "lon": self.center.lon,
            "radius_m": self.radius_m,
            "label": self.label,
        }


@dataclass(frozen=True)
class ViewerState:
    view: MapView
    is_filtered: bool = False
    user_position: GeoPoint | None = None
    radius_km: float | None = None
    overlays: tuple[Overlay, ...] = ()
    visible_layers: frozenset[str] = field(default_factory=frozenset)

    def as_dict(self) -> dict[str, Any]:
        pos = self.user_position
        return {
            "center": {"lat": self.view.center.lat, "lon": self.view.center.lon},
            "zoom": self.view.zoom,
            "is_filtered": self.is_filtered,
            "user_position": {"lat": pos.lat, "lon": pos.lon} if pos else None,
            "radius_km": self.radius_km,
            "overlays": [o.as_dict() for o in self.overlays],
            "visible_layers": sorted(self.visible_layers),
        }


def _default_view(settings: Settings) -> MapView:
    c = settings.map.default_center
    return MapView(center=GeoPoint(lat=c.lat, lon=c.lon), zoom=settings.map.default_zoom)


def initial_state(settings: Settings) -> ViewerState:
    """Default view with the static layers and default-on hazard layers visible."""
    layers = {FOREST_LAYER, OBSERVATIONS_LAYER, REGIONS_LAYER}
    layers.update(h.type_name for h in settings.ingestion.hazards.layers if h.visible_by_default)
    return ViewerState(view=_default_view(settings), visible_layers=frozenset(layers))


def apply_radius_filter(
    state: ViewerState, settings: Settings, *, origin: GeoPoint, radius_km: float
) -> ViewerState:
    """Centre on the user, zoom in, and draw the position marker plus radius circle."""
    overlays = (
        Overlay(kind="marker", center=origin, label="Din posisjon"),
        Overlay(kind="circle", center=origin, radius_m=float(radius_km) * 1000),
    )
    return replace(
        state,
        view=MapView(center=origin, zoom=settings.map.filter_zoom),
        is_filtered=True,
        user_position=origin,
        radius_km=float(radius_km),
        overlays=overlays,
    )


def reset_filter(state: ViewerState, settings: Settings) -> ViewerState:
    """Drop temporary overlays and restore the default view; layer visibility is kept."""
    return replace(
        state,
        view=_default_view(settings),
        is_filtered=False,
        user_position=None,
        radius_km=None,
        overlays=(),
    )


def set_layer_visibility(state: ViewerState, layer: str, visible: bool) -> ViewerState:
    layers = set(state.visible_layers)
    if visible:
        layers.add(layer)
    else:
        layers.discard(layer)
    return replace(state, visible_layers=frozenset(layers))
