"""
Forest stand classification for map styling and popups.

Colours and labels are keyed on the OSM `leaf_type` / `leaf_cycle` tags carried in the
forest layer's properties. The browser renders; we only decide the class.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class ForestClass:
    leaf_type: str
    label: str
    fill_color: str


BORDER_COLOR = "#1b4332"

_FOREST_CLASSES: dict[str, ForestClass] = {
    "needleleaved": ForestClass("needleleaved", "Barskog", "#2d6a4f"),
    "broadleaved": ForestClass("broadleaved", "Lauvskog", "#95d5b2"),
    "mixed": ForestClass("mixed", "Blandingsskog", "#52b788"),
}
_UNKNOWN = ForestClass("unknown", "Skog (ukjent type)", "#74c69d")

_LEAF_CYCLES = {"evergreen": "Eviggrønn", "deciduous": "Løvfellende"}


def classify_forest(properties: Mapping[str, Any] | None) -> ForestClass:
    leaf_type = (properties or {}).get("leaf_type")
    return _FOREST_CLASSES.get(str(leaf_type), _UNKNOWN) if leaf_type else _UNKNOWN


def forest_style(properties: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return fill colour, labels and OSM id for one forest feature's properties."""
    props = properties or {}
    cls = classify_forest(props)
    return {
        "fill_color": cls.fill_color,
        "border_color": BORDER_COLOR,
        "label": cls.label,
        "leaf_cycle": _LEAF_CYCLES.get(str(props.get("leaf_cycle")), "ukjent"),
        "osm_id": props.get("osm_id"),
    }


def forest_legend() -> list[dict[str, Any]]:
    return [asdict(c) for c in (*_FOREST_CLASSES.values(), _UNKNOWN)]
