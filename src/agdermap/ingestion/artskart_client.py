"""
Species observation client (Artskart public API, Artsdatabanken).

This module only fetches and parses observations into small typed records; the map
shows them as a point layer. The upstream response is inconsistent:
- the root is either a list or an object with `Observations` / `observations`;
- coordinates are strings and may use a decimal comma ("58,1467").
Records without usable coordinates are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from agdermap.config.settings import Settings
from agdermap.core.cache import FileCache
from agdermap.core.http import get_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Observation:
    """One species observation with a usable position."""

    lat: float
    lon: float
    scientific_name: str
    name: str
    collected_date: str
    locality: str = ""
    municipality: str = ""
    status: str | None = None
    habitat: str = ""
    institution: str = ""

    def to_feature(self) -> dict[str, Any]:
        """GeoJSON Point feature (`[lon, lat]`)."""
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.lon, self.lat]},
            "properties": {
                "scientific_name": self.scientific_name,
                "name": self.name,
                "collected_date": self.collected_date,
                "locality": self.locality,
                "municipality": self.municipality,
                "status": self.status,
                "habitat": self.habitat,
                "institution": self.institution,
            },
        }


@dataclass(frozen=True)
class ObservationBatch:
    observations: list[Observation]
    source_mode: str  # "cache" | "live" | "stale"
    as_of_unix: int | None
    dropped: int = 0

    def to_feature_collection(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": [o.to_feature() for o in self.observations]}


def parse_coordinate(value: Any) -> float | None:
    """Parse "58,1467" / "58.1467" / 58.1467; None if missing or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().replace(",", ".")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _text(value: Any, default: str = "") -> str:
    return str(value) if value not in (None, "") else default


def extract_records(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("Observations") or payload.get("observations") or []
    if not isinstance(payload, list):
        return []
    return [r for r in payload if isinstance(r, dict)]


def parse_observation(record: dict[str, Any]) -> Observation | None:
    lat = parse_coordinate(record.get("Latitude"))
    lon = parse_coordinate(record.get("Longitude"))
    if lat is None or lon is None or not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return Observation(
        lat=lat,
        lon=lon,
        scientific_name=_text(record.get("ScientificName"), "ukjent"),
        name=_text(record.get("Name"), "ukjent"),
        collected_date=_text(record.get("CollectedDate"), "ukjent"),
        locality=_text(record.get("Locality")),
        municipality=_text(record.get("Municipality")),
        status=record.get("Status") or None,
        habitat=_text(record.get("Habitat")),
        institution=_text(record.get("Institution")),
    )


class ArtskartClient:
    """Fetches and caches Artskart observations for the configured county and kingdom."""

    def __init__(self, settings: Settings, cache: FileCache):
        self._settings = settings
        self._cache = cache

    def _params(self) -> dict[str, Any]:
        cfg = self._settings.ingestion.artskart
        return {"countys[]": cfg.county_id, "kingdom": cfg.kingdom, "PageSize": cfg.page_size}

    def _fetch(self) -> Any:
        cfg = self._settings.ingestion.artskart
        logger.info("Fetching Artskart observations county=%s kingdom=%s", cfg.county_id, cfg.kingdom)
        return get_json(
            cfg.base_url,
            params=self._params(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

    def get_observations(self) -> ObservationBatch:
        """Return parsed observations (cached; stale copy served if the API is down).

        Raises:
            httpx.HTTPError: If the API fails and no cached copy exists.
        """
        cfg = self._settings.ingestion.artskart
        cache_key = f"artskart:{cfg.base_url}:{cfg.county_id}:{cfg.kingdom}:{cfg.page_size}"
        cached = self._cache.get_or_set(
            "artskart",
            cache_key,
            self._fetch,
            ttl_seconds=int(cfg.cache_ttl_seconds),
            stale_if_error=True,
            stale_predicate=lambda exc: isinstance(exc, (httpx.HTTPError, ValueError)),
        )

        records = extract_records(cached.value)
        observations = [o for o in (parse_observation(r) for r in records) if o is not None]
        dropped = len(records) - len(observations)
        if dropped:
            logger.info("Dropped %s Artskart records without usable coordinates", dropped)
        logger.info("Loaded %s observations (%s)", len(observations), cached.mode)
        return ObservationBatch(
            observations=observations,
            source_mode=cached.mode,
            as_of_unix=cached.as_of_unix,
            dropped=dropped,
        )
