"""
Application state owned by the composition root.

``AppState`` holds the polygons, the active time window and the map viewport.
All mutations go through its methods; the ones that change what a polygon
should look like (new polygon, rule edits, time window changes) await the
recolorization before returning, so no timing-dependent scheduling is needed.

Overlapping batches
-------------------
A caller may start a new recolor while an earlier one is still awaiting a fetch
(the user drags the time slider again). Each batch gets a sequence number and
every polygon remembers the newest batch that covers it; a result is applied
only if it comes from that batch. Stale results are dropped, so the last
*started* batch wins rather than the last one to finish.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from polytherm.core import rules as rule_ops
from polytherm.core.colorizer import ColorizeResult, PolygonColorizer, apply_result
from polytherm.core.normalization import normalize_coordinates
from polytherm.model import (
    DEFAULT_CENTER,
    DEFAULT_DATA_SOURCE,
    DEFAULT_TIME_WINDOW,
    DEFAULT_ZOOM,
    NEW_POLYGON_COLOR,
    ColorRule,
    Coordinate,
    MapCenter,
    Polygon,
    PolygonCandidate,
    TimeWindow,
)


logger = logging.getLogger(__name__)

MIN_POLYGON_POINTS = 3


def _new_polygon_id() -> str:
    return f"polygon_{uuid.uuid4().hex[:12]}"


class AppState:
    def __init__(
        self,
        colorizer: PolygonColorizer,
        *,
        time_window: Optional[TimeWindow] = None,
        map_center: Optional[MapCenter] = None,
        zoom: int = DEFAULT_ZOOM,
        default_center: Coordinate = DEFAULT_CENTER,
        default_zoom: int = DEFAULT_ZOOM,
    ):
        self.colorizer = colorizer
        self.polygons: List[Polygon] = []
        self.time_window = time_window or TimeWindow(*DEFAULT_TIME_WINDOW)
        self.default_center = default_center
        self.default_zoom = default_zoom
        self.map_center = map_center or MapCenter(*default_center)
        self.zoom = zoom
        self.is_drawing = False

        self._batch_seq = 0
        self._polygon_batch: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self.colorizer.loading

    def get_polygon(self, polygon_id: str) -> Optional[Polygon]:
        for p in self.polygons:
            if p.id == polygon_id:
                return p
        return None

    def _require(self, polygon_id: str) -> Polygon:
        p = self.get_polygon(polygon_id)
        if p is None:
            raise KeyError(f"Unknown polygon: {polygon_id}")
        return p

    # ------------------------------------------------------------------
    # Polygons
    # ------------------------------------------------------------------

    async def add_polygon(
        self,
        coordinates: Sequence[Sequence[float]],
        data_source: str = DEFAULT_DATA_SOURCE,
        color_rules: Optional[Sequence[ColorRule]] = None,
        name: Optional[str] = None,
        *,
        recolor: bool = True,
    ) -> Polygon:
        """
        Accept a finished drawing.

        Raises ValueError for fewer than three points. ``color_rules=None`` means
        "no rules" (the polygon renders in the fallback gray); callers that want
        the default bands pass them explicitly.
        """
        coords = normalize_coordinates(coordinates)
        if len(coords) < MIN_POLYGON_POINTS:
            raise ValueError(
                f"A polygon needs at least {MIN_POLYGON_POINTS} points, got {len(coords)}"
            )

        polygon_id = _new_polygon_id()
        polygon = Polygon(
            id=polygon_id,
            name=name or f"Polygon {len(self.polygons) + 1}",
            coordinates=coords,
            data_source=data_source,
            color_rules=list(color_rules or []),
            color=NEW_POLYGON_COLOR,
            current_value=0.0,
        )
        self.polygons.append(polygon)
        logger.info("Added %s with %d points", polygon_id, len(coords))

        if recolor:
            await self.recolor([polygon_id])
        return polygon

    async def add_candidate(self, candidate: PolygonCandidate, *, recolor: bool = True) -> Polygon:
        """Accept an imported shape; same rules as ``add_polygon``."""
        return await self.add_polygon(
            candidate.coordinates,
            candidate.data_source,
            candidate.color_rules,
            candidate.name,
            recolor=recolor,
        )

    def delete_polygon(self, polygon_id: str) -> bool:
        before = len(self.polygons)
        self.polygons = [p for p in self.polygons if p.id != polygon_id]
        self._polygon_batch.pop(polygon_id, None)
        return len(self.polygons) != before

    def rename_polygon(self, polygon_id: str, name: str) -> None:
        self._require(polygon_id).name = name

    # ------------------------------------------------------------------
    # Rules (each edit recolors the polygon it touches)
    # ------------------------------------------------------------------

    async def set_rules(self, polygon_id: str, color_rules: Iterable[ColorRule]) -> None:
        self._require(polygon_id).color_rules = list(color_rules)
        await self.recolor([polygon_id])

    async def add_rule(self, polygon_id: str, rule: Optional[ColorRule] = None) -> None:
        p = self._require(polygon_id)
        await self.set_rules(polygon_id, rule_ops.add_rule(p.color_rules, rule))

    async def update_rule(
        self,
        polygon_id: str,
        index: int,
        *,
        condition: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        p = self._require(polygon_id)
        updated = rule_ops.update_rule(p.color_rules, index, condition=condition, color=color)
        await self.set_rules(polygon_id, updated)

    async def delete_rule(self, polygon_id: str, index: int) -> None:
        p = self._require(polygon_id)
        await self.set_rules(polygon_id, rule_ops.delete_rule(p.color_rules, index))

    # ------------------------------------------------------------------
    # Time window / viewport
    # ------------------------------------------------------------------

    async def set_time_window(self, start: int, end: int) -> None:
        self.time_window = TimeWindow(int(start), int(end))
        await self.recolor_all()

    def set_drawing(self, drawing: bool) -> None:
        self.is_drawing = bool(drawing)

    def set_map_center(self, lat: float, lng: float) -> None:
        self.map_center = MapCenter(lat, lng)

    def reset_map_center(self) -> None:
        self.map_center = MapCenter(*self.default_center)
        self.zoom = self.default_zoom

    def set_zoom(self, zoom: int) -> None:
        self.zoom = int(zoom)

    # ------------------------------------------------------------------
    # Recolorization
    # ------------------------------------------------------------------

    async def recolor_all(self) -> List[ColorizeResult]:
        return await self.recolor([p.id for p in self.polygons])

    async def recolor(self, polygon_ids: Iterable[str]) -> List[ColorizeResult]:
        wanted = set(polygon_ids)
        targets = [p for p in self.polygons if p.id in wanted]
        if not targets:
            return []

        self._batch_seq += 1
        seq = self._batch_seq
        for p in targets:
            self._polygon_batch[p.id] = seq

        def on_result(result: ColorizeResult) -> None:
            if self._polygon_batch.get(result.polygon_id) != seq:
                logger.debug(
                    "Discarding stale result for %s from batch %d", result.polygon_id, seq
                )
                return
            polygon = self.get_polygon(result.polygon_id)
            if polygon is not None:
                apply_result(polygon, result)

        return await self.colorizer.colorize_all(targets, self.time_window, on_result=on_result)

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """The persisted subset: polygons, map center, time range and zoom."""
        return {
            "polygons": [p.to_dict() for p in self.polygons],
            "mapCenter": self.map_center.to_dict(),
            "timeRange": self.time_window.as_list(),
            "zoom": self.zoom,
        }

    @classmethod
    def restore(
        cls,
        snapshot: Dict[str, Any],
        colorizer: PolygonColorizer,
        **kwargs: Any,
    ) -> "AppState":
        state = cls(colorizer, **kwargs)
        if not snapshot:
            return state

        state.polygons = [
            Polygon.from_dict(p) for p in (snapshot.get("polygons") or []) if isinstance(p, dict)
        ]
        center = snapshot.get("mapCenter")
        if isinstance(center, dict) and "lat" in center and "lng" in center:
            state.map_center = MapCenter(float(center["lat"]), float(center["lng"]))
        time_range = snapshot.get("timeRange")
        if isinstance(time_range, (list, tuple)) and len(time_range) == 2:
            state.time_window = TimeWindow(int(time_range[0]), int(time_range[1]))
        if snapshot.get("zoom") is not None:
            state.zoom = int(snapshot["zoom"])
        return state
