"""
Landslide hazard zones (Kartverket / NVE WFS, GeoJSON output).

Three return-period layers (100 / 1000 / 5000 years) are requested with one WFS 2.0.0
`GetFeature` call each, restricted to the Agder bounding box. Layers load independently:
one failing layer is reported with its error while the others are still returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from agdermap.config.settings import HazardLayerSettings, Settings
from agdermap.core.cache import FileCache
from agdermap.core.http import get_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HazardLayer:
    type_name: str
    label: str
    color: str
    visible_by_default: bool
    features: list[dict[str, Any]] = field(default_factory=list)
    source_mode: str | None = None
    error: str | None = None

    @property
    def loaded(self) -> bool:
        return self.error is None

    def as_dict(self) -> dict[str, Any]:
        return {
            "type_name": self.type_name,
            "label": self.label,
            "color": self.color,
            "visible_by_default": self.visible_by_default,
            "loaded": self.loaded,
            "source_mode": self.source_mode,
            "error": self.error,
            "collection": {"type": "FeatureCollection", "features": self.features},
        }


@dataclass(frozen=True)
class HazardLoadReport:
    layers: list[HazardLayer]

    @property
    def any_loaded(self) -> bool:
        return any(layer.loaded for layer in self.layers)

    @property
    def status_message(self) -> str:
        if not self.layers:
            return "Ingen skredfare-lag er konfigurert"
        if all(layer.loaded for layer in self.layers):
            return "Skredfare-data lastet"
        if self.any_loaded:
            failed = ", ".join(layer.label for layer in self.layers if not layer.loaded)
            return f"Skredfare-data delvis lastet (mangler: {failed})"
        return "Skredfare-data utilgjengelig"


class HazardClient:
    """Fetches hazard-zone layers from the WFS endpoint with per-layer caching."""

    def __init__(self, settings: Settings, cache: FileCache):
        self._settings = settings
        self._cache = cache

    def _bbox_param(self) -> str:
        cfg = self._settings.ingestion.hazards
        return ",".join(str(v) for v in cfg.bbox) + f",{cfg.crs}"

    def build_params(self, type_name: str) -> dict[str, str]:
        cfg = self._settings.ingestion.hazards
        return {
            "SERVICE": "WFS",
            "VERSION": cfg.version,
            "REQUEST": "GetFeature",
            "TYPENAME": type_name,
            "OUTPUTFORMAT": cfg.output_format,
            "BBOX": self._bbox_param(),
        }

    def _fetch_layer(self, layer_cfg: HazardLayerSettings) -> HazardLayer:
        cfg = self._settings.ingestion.hazards
        params = self.build_params(layer_cfg.type_name)
        cache_key = f"{cfg.wfs_url}:{sorted(params.items())}"

        def builder() -> Any:
            logger.info("Fetching %s from %s", layer_cfg.label, cfg.wfs_url)
            payload = get_json(
                cfg.wfs_url,
                params=params,
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
            if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
                raise ValueError(f"WFS response for {layer_cfg.type_name} is not a FeatureCollection")
            return payload

        cached = self._cache.get_or_set(
            "wfs",
            cache_key,
            builder,
            ttl_seconds=int(cfg.cache_ttl_seconds),
            stale_if_error=True,
            stale_predicate=lambda exc: isinstance(exc, (httpx.HTTPError, ValueError)),
        )
        return HazardLayer(
            type_name=layer_cfg.type_name,
            label=layer_cfg.label,
            color=layer_cfg.color,
            visible_by_default=layer_cfg.visible_by_default,
            features=list(cached.value.get("features") or []),
            source_mode=cached.mode,
        )

    def get_layers(self) -> HazardLoadReport:
        """Load every configured hazard layer; failures are captured per layer."""
        layers: list[HazardLayer] = []
        for layer_cfg in self._settings.ingestion.hazards.layers:
            try:
                layers.append(self._fetch_layer(layer_cfg))
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("Failed to load %s: %s", layer_cfg.label, exc)
                layers.append(
                    HazardLayer(
                        type_name=layer_cfg.type_name,
                        label=layer_cfg.label,
                        color=layer_cfg.color,
                        visible_by_default=layer_cfg.visible_by_default,
                        error=str(exc) or type(exc).__name__,
                    )
                )

        report = HazardLoadReport(layers=layers)
        if report.any_loaded:
            logger.info(report.status_message)
        else:
            logger.warning(report.status_message)
        return report
