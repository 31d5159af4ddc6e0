import asyncio

from polytherm.core.colorizer import PolygonColorizer
from polytherm.core.diagnostics import check_polygons, has_warnings, state_inventory
from polytherm.core.state import AppState
from polytherm.core.synthetic import SyntheticSeriesSource
from polytherm.model import ColorRule, Polygon, default_color_rules


def _poly(pid, coords, rules):
    return Polygon(id=pid, name=pid, coordinates=coords, color_rules=rules)


TRI = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]


def test_clean_polygons_have_no_warnings():
    report = check_polygons([_poly("a", TRI, default_color_rules())])
    assert not has_warnings(report)


def test_reports_each_problem():
    polygons = [
        _poly("short", TRI[:2], default_color_rules()),
        _poly("far", [(0.0, 0.0), (95.0, 0.0), (0.0, 200.0)], default_color_rules()),
        _poly("bare", TRI, []),
        _poly("broken", TRI, [ColorRule("banana", "#ff0000"), ColorRule("> 1", "red")]),
    ]
    report = check_polygons(polygons)
    assert report["too_few_points"] == [("short", 2)]
    assert report["out_of_range"] == [("far", 95.0, 0.0), ("far", 0.0, 200.0)]
    assert report["no_rules"] == ["bare"]
    assert report["invalid_conditions"] == [("broken", 0, "banana")]
    assert report["invalid_colors"] == [("broken", 1, "red")]
    assert has_warnings(report)


def test_state_inventory():
    state = AppState(PolygonColorizer(SyntheticSeriesSource(hours=24, seed=1)))

    async def _run():
        await state.add_polygon([[0, 0], [0, 1], [1, 0]], color_rules=default_color_rules())
        await state.add_polygon([[0, 0], [0, 1], [1, 0]])

    asyncio.run(_run())
    inv = state_inventory(state)
    assert inv["polygon_count"] == 2
    assert inv["rule_count"] == 3
    assert inv["fallback_count"] == 1
    assert inv["cached_locations"] == 1
