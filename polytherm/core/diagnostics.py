"""
Diagnostics helpers.

Surface problems the classification pipeline silently absorbs (rules that can
never match, colors a renderer will reject, degenerate shapes) so they can be
reported before a user wonders why an area stays gray.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from polytherm.core.conditions import is_valid_condition
from polytherm.core.rules import normalize_hex_color
from polytherm.core.state import MIN_POLYGON_POINTS, AppState
from polytherm.model import FALLBACK_COLOR, Polygon


def state_inventory(state: AppState) -> Dict[str, Any]:
    polygons = state.polygons
    return {
        "polygon_count": len(polygons),
        "rule_count": sum(len(p.color_rules) for p in polygons),
        "fallback_count": sum(1 for p in polygons if p.color == FALLBACK_COLOR),
        "cached_locations": len(state.colorizer.cache),
        "time_window": state.time_window.as_list(),
    }


def check_polygons(polygons: Sequence[Polygon]) -> Dict[str, List[Any]]:
    """
    Check polygons and return warnings.

    Returns a dict with:
    - too_few_points: list of (polygon_id, point_count)
    - out_of_range: list of (polygon_id, lat, lng)
    - no_rules: list of polygon_id
    - invalid_conditions: list of (polygon_id, rule_index, condition)
    - invalid_colors: list of (polygon_id, rule_index, color)
    """
    warnings: Dict[str, List[Any]] = {
        "too_few_points": [],
        "out_of_range": [],
        "no_rules": [],
        "invalid_conditions": [],
        "invalid_colors": [],
    }

    for p in polygons:
        if len(p.coordinates) < MIN_POLYGON_POINTS:
            warnings["too_few_points"].append((p.id, len(p.coordinates)))

        for lat, lng in p.coordinates:
            if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
                warnings["out_of_range"].append((p.id, lat, lng))

        if not p.color_rules:
            warnings["no_rules"].append(p.id)

        for i, rule in enumerate(p.color_rules):
            if not is_valid_condition(rule.condition):
                warnings["invalid_conditions"].append((p.id, i, rule.condition))
            if normalize_hex_color(rule.color) is None:
                warnings["invalid_colors"].append((p.id, i, rule.color))

    return warnings


def has_warnings(report: Dict[str, List[Any]]) -> bool:
    return any(report.values())
