"""
GeoJSON adapter.

Reads drawn areas from a GeoJSON FeatureCollection and writes classified
polygons back out with renderer-friendly style properties.

Notes:
- GeoJSON positions are ``[lng, lat]``; polytherm stores ``(lat, lng)``.
- Only the outer ring of a Polygon is used. A closing vertex equal to the
  first one is dropped (polygons are implicitly closed).
- Optional properties on input: ``name``/``title``, ``dataSource``,
  ``colorRules`` (list of ``{condition, color}``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from polytherm.core.normalization import normalize_coordinate
from polytherm.core.rules import parse_rules
from polytherm.model import DEFAULT_DATA_SOURCE, Coordinate, Polygon, PolygonCandidate


class GeoJSONFormatError(ValueError):
    """Raised when a GeoJSON document cannot be read as polygons."""


def _outer_ring(geometry: Dict[str, Any], index: int) -> List[Coordinate]:
    rings = geometry.get("coordinates")
    if not isinstance(rings, list) or not rings or not isinstance(rings[0], list):
        raise GeoJSONFormatError(f"Feature {index}: Polygon has no outer ring")

    coords: List[Coordinate] = []
    for pos in rings[0]:
        if not isinstance(pos, (list, tuple)) or len(pos) < 2:
            raise GeoJSONFormatError(f"Feature {index}: invalid position {pos!r}")
        lng, lat = float(pos[0]), float(pos[1])
        coords.append(normalize_coordinate(lat, lng))

    if len(coords) > 1 and coords[0] == coords[-1]:
        coords = coords[:-1]
    return coords


def _candidate_from_feature(feature: Dict[str, Any], index: int) -> PolygonCandidate:
    props = feature.get("properties") or {}
    rules = None
    if "colorRules" in props:
        try:
            rules = parse_rules(props.get("colorRules"))
        except ValueError as e:
            raise GeoJSONFormatError(f"Feature {index}: {e}") from e
    name = props.get("name") or props.get("title")
    return PolygonCandidate(
        coordinates=_outer_ring(feature["geometry"], index),
        data_source=str(props.get("dataSource") or DEFAULT_DATA_SOURCE),
        color_rules=rules,
        name=str(name) if name else None,
    )


def parse_polygons_geojson(data: Any) -> List[PolygonCandidate]:
    if not isinstance(data, dict):
        raise GeoJSONFormatError("GeoJSON document must be an object")

    if data.get("type") == "Feature":
        features = [data]
    elif data.get("type") == "FeatureCollection":
        features = data.get("features") or []
    else:
        raise GeoJSONFormatError(f"Unsupported GeoJSON type: {data.get('type')!r}")

    candidates: List[PolygonCandidate] = []
    for i, feature in enumerate(features):
        if not isinstance(feature, dict):
            continue
        geometry = feature.get("geometry") or {}
        # Folders, markers and lines are not classifiable areas.
        if geometry.get("type") != "Polygon":
            continue
        candidates.append(_candidate_from_feature(feature, i))
    return candidates


def read_polygons_geojson(path: str | Path) -> List[PolygonCandidate]:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise GeoJSONFormatError(f"Invalid JSON in {p.name}: {e}") from e
    return parse_polygons_geojson(data)


def polygon_to_feature(polygon: Polygon) -> Dict[str, Any]:
    ring = [[lng, lat] for lat, lng in polygon.coordinates]
    if ring:
        ring.append(list(ring[0]))
    value = polygon.current_value
    return {
        "type": "Feature",
        "id": polygon.id,
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": {
            "name": polygon.name,
            "dataSource": polygon.data_source,
            "colorRules": [r.to_dict() for r in polygon.color_rules],
            "fill": polygon.color,
            "stroke": polygon.color,
            "fill-opacity": 0.6,
            "value": round(value, 1) if value is not None else None,
        },
    }


def write_polygons_geojson(polygons: Sequence[Polygon], output_path: str | Path) -> Path:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fc = {
        "type": "FeatureCollection",
        "features": [polygon_to_feature(p) for p in polygons],
    }
    out.write_text(json.dumps(fc, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return out
