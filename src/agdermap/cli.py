"""
AgderMap CLI entrypoint.

Quick local checks of the data layers and the radius filter without the web map.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from agdermap.catalog.loader import load_feature_collection
from agdermap.config.settings import Settings, get_settings
from agdermap.core.cache import FileCache
from agdermap.core.env import resolve_project_path
from agdermap.core.geo import GeoPoint
from agdermap.core.logging import configure_logging
from agdermap.ingestion.artskart_client import ArtskartClient
from agdermap.ingestion.hazard_client import HazardClient
from agdermap.quality.report import build_geometry_report
from agdermap.spatial.containment import find_containing_feature
from agdermap.spatial.radius_filter import filter_by_radius
from agdermap.styling.forest import forest_style


def build_cache(settings: Settings) -> FileCache:
    return FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


def _dump(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_nearby(args: argparse.Namespace) -> int:
    """Handle the `nearby` subcommand."""
    settings = get_settings()
    radius_km = float(args.radius_km) if args.radius_km is not None else settings.filter.default_radius_km
    collection = load_feature_collection(args.path or settings.layers.forest_path)

    result = filter_by_radius(
        collection.features,
        GeoPoint(lat=float(args.lat), lon=float(args.lon)),
        radius_km,
        area_epsilon=settings.spatial.polygon_area_threshold,
    )

    if args.json:
        _dump(
            {
                "type": "FeatureCollection",
                "features": result.features,
                "meta": {
                    "total": result.total,
                    "matched": result.matched,
                    "skipped": [s.as_dict() for s in result.skipped],
                },
            }
        )
        return 0

    print(f"{result.matched} of {result.total} features within {radius_km:g} km")
    for feature in result.features:
        style = forest_style(feature.get("properties"))
        print(f"  - {style['label']} ({style['leaf_cycle']}) osm_id={style['osm_id']}")
    for s in result.skipped:
        print(f"  ! skipped #{s.index}: {s.code} {s.message}")
    return 0


def _cmd_contains(args: argparse.Namespace) -> int:
    settings = get_settings()
    collection = load_feature_collection(args.path or settings.layers.regions_path)
    feature = find_containing_feature(collection.features, GeoPoint(lat=float(args.lat), lon=float(args.lon)))
    if feature is None:
        print(f"{args.lat:.5f}, {args.lon:.5f} is OUTSIDE all regions")
        return 1
    name = (feature.get("properties") or {}).get(settings.layers.region_name_property) or "Område"
    print(f"{args.lat:.5f}, {args.lon:.5f} is INSIDE {name}")
    return 0


def _cmd_observations(args: argparse.Namespace) -> int:
    settings = get_settings()
    batch = ArtskartClient(settings, build_cache(settings)).get_observations()
    if args.json:
        _dump(batch.to_feature_collection())
        return 0
    print(f"Loaded {len(batch.observations)} observations ({batch.source_mode}, dropped={batch.dropped})")
    for obs in batch.observations[: int(args.limit)]:
        flag = f"  [{obs.status}]" if obs.status else ""
        print(f"  - {obs.name} ({obs.scientific_name}) {obs.collected_date} {obs.locality}{flag}")
    return 0


def _cmd_hazards(_: argparse.Namespace) -> int:
    settings = get_settings()
    report = HazardClient(settings, build_cache(settings)).get_layers()
    print(report.status_message)
    for layer in report.layers:
        state = f"{len(layer.features)} features ({layer.source_mode})" if layer.loaded else f"FAILED: {layer.error}"
        print(f"  - {layer.label}: {state}")
    return 0 if report.any_loaded else 1


def _cmd_quality_report(args: argparse.Namespace) -> int:
    settings = get_settings()
    collection = load_feature_collection(args.path or settings.layers.forest_path)
    _dump(build_geometry_report(collection.features, area_epsilon=settings.spatial.polygon_area_threshold))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the AgderMap CLI."""
    parser = argparse.ArgumentParser(prog="agdermap")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearby", help="List forest stands whose centroid lies within a radius.")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lon", required=True, type=float)
    near.add_argument("--radius-km", type=float, default=None, help="Defaults to filter.default_radius_km.")
    near.add_argument("--path", type=str, default=None, help="GeoJSON file (defaults to the forest layer).")
    near.add_argument("--json", action="store_true", help="Output the filtered FeatureCollection")
    near.set_defaults(func=_cmd_nearby)

    cont = sub.add_parser("contains", help="Check whether a point lies inside a region polygon.")
    cont.add_argument("--lat", required=True, type=float)
    cont.add_argument("--lon", required=True, type=float)
    cont.add_argument("--path", type=str, default=None, help="GeoJSON file (defaults to the regions layer).")
    cont.set_defaults(func=_cmd_contains)

    obs = sub.add_parser("observations", help="Fetch species observations from Artskart.")
    obs.add_argument("--limit", type=int, default=20)
    obs.add_argument("--json", action="store_true")
    obs.set_defaults(func=_cmd_observations)

    haz = sub.add_parser("hazards", help="Fetch landslide hazard layers from the WFS.")
    haz.set_defaults(func=_cmd_hazards)

    q = sub.add_parser("quality-report", help="Offline geometry report for a GeoJSON layer.")
    q.add_argument("--path", type=str, default=None)
    q.set_defaults(func=_cmd_quality_report)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m agdermap.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
