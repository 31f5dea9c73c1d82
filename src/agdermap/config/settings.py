# src/agdermap/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/agdermap/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `AGDERMAP_CONFIG_PATH`
- environment variables (`AGDERMAP_LOG_LEVEL`, `AGDERMAP_CACHE_DIR`)

Design rule:
- Map defaults, radius bounds and upstream endpoints live in YAML, not in the filter code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from agdermap.core.env import load_dotenv_if_present


def _load_yaml_mapping(path: str | Path | None = None, *, packaged: str | None = None) -> dict[str, Any]:
    """Parse a YAML document from disk (`path`) or from `agdermap.config` (`packaged`)."""
    if packaged is not None:
        source = f"agdermap.config/{packaged}"
        text = resources.files("agdermap.config").joinpath(packaged).read_text(encoding="utf-8")
    else:
        source = str(path)
        text = Path(path).read_text(encoding="utf-8")

    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{source}: YAML root must be a mapping, got {type(data).__name__}")
    return data


class AppSettings(BaseModel):
    name: str = "AgderMap"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/agdermap"
    default_ttl_seconds: int = 60 * 60 * 24


class MapCenter(BaseModel):
    lat: float = Field(58.16, ge=-90, le=90)
    lon: float = Field(7.99, ge=-180, le=180)


class MapSettings(BaseModel):
    default_center: MapCenter = Field(default_factory=MapCenter)
    default_zoom: int = 9
    filter_zoom: int = 11
    min_zoom: int = 8
    max_zoom: int = 18


class FilterSettings(BaseModel):
    default_radius_km: float = Field(5, gt=0)
    min_radius_km: float = Field(1, gt=0)
    max_radius_km: float = Field(50, gt=0)

    @model_validator(mode="after")
    def _validate_bounds(self) -> "FilterSettings":
        if self.min_radius_km > self.max_radius_km:
            raise ValueError("filter.min_radius_km must not exceed filter.max_radius_km")
        if not self.min_radius_km <= self.default_radius_km <= self.max_radius_km:
            raise ValueError("filter.default_radius_km must lie within the configured bounds")
        return self


class SpatialSettings(BaseModel):
    polygon_area_threshold: float = Field(1e-10, ge=0)


class LayerSettings(BaseModel):
    forest_path: str = "data/skog.geojson"
    regions_path: str = "data/agder.geojson"
    region_name_property: str = "kommunenavn"


class ArtskartSettings(BaseModel):
    base_url: str
    county_id: int = 10
    kingdom: str = "Fungi"
    page_size: int = Field(200, ge=1)
    cache_ttl_seconds: int = 60 * 60


class HazardLayerSettings(BaseModel):
    type_name: str
    label: str
    color: str
    visible_by_default: bool = False


class HazardSettings(BaseModel):
    wfs_url: str
    version: str = "2.0.0"
    output_format: str = "application/json"
    bbox: list[float] = Field(default_factory=lambda: [6.5, 57.5, 9.5, 59.5])
    crs: str = "urn:ogc:def:crs:EPSG::4326"
    cache_ttl_seconds: int = 60 * 60 * 24
    layers: list[HazardLayerSettings] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_bbox(self) -> "HazardSettings":
        if len(self.bbox) != 4:
            raise ValueError("ingestion.hazards.bbox must be [lon_min, lat_min, lon_max, lat_max]")
        return self


class IngestionSettings(BaseModel):
    artskart: ArtskartSettings
    hazards: HazardSettings


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    map: MapSettings = Field(default_factory=MapSettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)
    spatial: SpatialSettings = Field(default_factory=SpatialSettings)
    layers: LayerSettings = Field(default_factory=LayerSettings)
    ingestion: IngestionSettings


# env var -> (section, key); only these may be overridden from the environment.
_ENV_OVERRIDES = {
    "AGDERMAP_CACHE_DIR": ("cache", "dir"),
    "AGDERMAP_LOG_LEVEL": ("app", "log_level"),
}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(var)
        if value:
            data[section] = {**(data.get(section) or {}), key: value}
    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("AGDERMAP_CONFIG_PATH")
    raw = _load_yaml_mapping(config_path) if config_path else _load_yaml_mapping(packaged="defaults.yaml")
    return Settings.model_validate(_apply_env_overrides(raw))


@lru_cache
def get_logging_config() -> dict[str, Any]:
    return _load_yaml_mapping(packaged="logging.yaml")
