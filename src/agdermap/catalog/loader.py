"""
Static layer loader.

The forest stands (`data/skog.geojson`, exported from OSM via QGIS) and the municipal
boundaries (`data/agder.geojson`) are local GeoJSON files loaded once at start-up. We
validate the FeatureCollection envelope with Pydantic but keep individual features as
plain dicts; the spatial filter decides per feature whether its geometry is usable.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import TypeAdapter

from agdermap.core.env import resolve_project_path
from agdermap.domain.models import FeatureCollection


_COLLECTION_ADAPTER = TypeAdapter(FeatureCollection)


def load_feature_collection(path: str | Path) -> FeatureCollection:
    """Load and validate a GeoJSON FeatureCollection file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return _COLLECTION_ADAPTER.validate_python(payload)


@lru_cache(maxsize=8)
def load_feature_collection_cached(path: str) -> FeatureCollection:
    """Same as `load_feature_collection`, memoized per resolved path string."""
    return load_feature_collection(path)
