"""
API routes.

Endpoints:
- GET  `/api/settings`: public map/filter/layer settings for the web UI.
- GET  `/api/view`: initial viewer state (optionally with layers hidden).
- GET  `/api/forest`, `/api/forest/legend`, `/api/forest/quality`: static forest layer.
- POST `/api/forest/nearby`: radius filter around the user's position.
- GET  `/api/regions/contains`: is a point inside one of the Agder municipalities?
- GET  `/api/observations`: live species observations (Artskart).
- GET  `/api/hazards`: landslide hazard zones (WFS), per-layer status.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import httpx
from fastapi import APIRouter, HTTPException, Query

from agdermap.catalog.loader import load_feature_collection_cached
from agdermap.config.settings import get_settings
from agdermap.core.cache import FileCache
from agdermap.core.env import resolve_project_path
from agdermap.domain.models import (
    ContainmentResult,
    FeatureCollection,
    GeoPoint,
    NearbyQuery,
    NearbyResult,
    SkippedFeatureOut,
)
from agdermap.ingestion.artskart_client import ArtskartClient
from agdermap.ingestion.hazard_client import HazardClient
from agdermap.quality.report import build_geometry_report
from agdermap.spatial.containment import find_containing_feature
from agdermap.spatial.radius_filter import filter_by_radius
from agdermap.styling.forest import forest_legend
from agdermap.viewer.state import apply_radius_filter, initial_state, set_layer_visibility

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _cache() -> FileCache:
    settings = get_settings()
    return FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


@lru_cache
def _clients() -> tuple[ArtskartClient, HazardClient]:
    settings = get_settings()
    cache = _cache()
    return ArtskartClient(settings, cache), HazardClient(settings, cache)


def _load_layer(path: str, name: str) -> FeatureCollection:
    try:
        return load_feature_collection_cached(str(resolve_project_path(path)))
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=503,
            detail={"code": "LAYER_UNAVAILABLE", "message": f"{name} layer not found: {path}"},
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=503,
            detail={"code": "LAYER_INVALID", "message": f"{name} layer could not be parsed: {e}"},
        ) from e


def _forest_collection() -> FeatureCollection:
    return _load_layer(get_settings().layers.forest_path, "Forest")


def _regions_collection() -> FeatureCollection:
    return _load_layer(get_settings().layers.regions_path, "Regions")


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return UI defaults: map view, radius bounds and layer descriptions."""
    settings = get_settings()
    return {
        "app": {"name": settings.app.name},
        "map": settings.map.model_dump(mode="json"),
        "filter": settings.filter.model_dump(mode="json"),
        "hazards": [layer.model_dump(mode="json") for layer in settings.ingestion.hazards.layers],
    }


@router.get("/api/view")
def get_view(hide: list[str] = Query(default=[])) -> dict:
    """Return the unfiltered viewer state; `hide` turns named layers off."""
    state = initial_state(get_settings())
    for layer in hide:
        state = set_layer_visibility(state, layer, False)
    return state.as_dict()


@router.get("/api/forest", response_model=FeatureCollection)
def get_forest() -> FeatureCollection:
    return _forest_collection()


@router.get("/api/forest/legend")
def get_forest_legend() -> dict:
    return {"classes": forest_legend()}


@router.get("/api/forest/quality")
def get_forest_quality() -> dict:
    """Offline geometry diagnostics for the forest layer."""
    settings = get_settings()
    collection = _forest_collection()
    return build_geometry_report(
        collection.features, area_epsilon=settings.spatial.polygon_area_threshold
    )


@router.post("/api/forest/nearby", response_model=NearbyResult)
def post_forest_nearby(query: NearbyQuery) -> NearbyResult:
    """Return forest stands whose centroid lies within `radius_km` of `origin`."""
    settings = get_settings()
    bounds = settings.filter
    if not bounds.min_radius_km <= query.radius_km <= bounds.max_radius_km:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "RADIUS_OUT_OF_RANGE",
                "message": (
                    f"radius_km must be between {bounds.min_radius_km:g} and {bounds.max_radius_km:g}"
                ),
            },
        )

    collection = _forest_collection()
    origin = query.origin.to_core()
    try:
        result = filter_by_radius(
            collection.features,
            origin,
            query.radius_km,
            area_epsilon=settings.spatial.polygon_area_threshold,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e

    state = apply_radius_filter(initial_state(settings), settings, origin=origin, radius_km=query.radius_km)
    return NearbyResult(
        query=query,
        collection=FeatureCollection(features=result.features),
        total=result.total,
        matched=result.matched,
        skipped=[SkippedFeatureOut(**s.as_dict()) for s in result.skipped],
        view=state.as_dict(),
    )


@router.get("/api/regions/contains", response_model=ContainmentResult)
def get_region_contains(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
) -> ContainmentResult:
    """Check whether a clicked point lies inside any region polygon."""
    settings = get_settings()
    point = GeoPoint(lat=lat, lon=lon)
    feature = find_containing_feature(_regions_collection().features, point.to_core())
    region = None
    if feature is not None:
        props = feature.get("properties") or {}
        region = props.get(settings.layers.region_name_property) or "Område"
    return ContainmentResult(point=point, inside=feature is not None, region=region)


@router.get("/api/observations")
def get_observations() -> dict:
    """Return species observations as a GeoJSON FeatureCollection."""
    artskart, _ = _clients()
    try:
        batch = artskart.get_observations()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Artskart unavailable: %s", e)
        raise HTTPException(
            status_code=502,
            detail={"code": "UPSTREAM_ERROR", "message": f"Artskart API failed: {e}"},
        ) from e
    return {
        **batch.to_feature_collection(),
        "meta": {"source": batch.source_mode, "as_of_unix": batch.as_of_unix, "dropped": batch.dropped},
    }


@router.get("/api/hazards")
def get_hazards() -> dict:
    """Return all configured hazard layers; failed layers carry an `error`."""
    _, hazards = _clients()
    report = hazards.get_layers()
    return {
        "status": report.status_message,
        "any_loaded": report.any_loaded,
        "layers": [layer.as_dict() for layer in report.layers],
    }
