"""
Per-polygon classification pipeline.

For each polygon:

1. centroid of its vertices
2. hourly series for that centroid (cached, fetched on first use)
3. aggregate over the active time window
4. first matching color rule

Failures are contained per polygon. A polygon whose centroid cannot be computed
is skipped (its previous color stays); a polygon whose fetch or data blows up is
shown in the fallback gray with value 0. Either way the rest of the batch runs.

Every outcome is returned as a ``ColorizeResult`` so callers can tell *why* a
polygon went gray even though the rendered result is the same.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from polytherm.core.aggregate import aggregate
from polytherm.core.cache import LocationCache, SeriesFetcher
from polytherm.core.rules import resolve
from polytherm.core.trace import TraceWriter
from polytherm.model import FALLBACK_COLOR, Coordinate, Polygon, TimeWindow


logger = logging.getLogger(__name__)


class ColorizeStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureReason(str, Enum):
    INVALID_CENTROID = "invalid_centroid"
    FETCH_ERROR = "fetch_error"
    DATA_ERROR = "data_error"


@dataclass(frozen=True)
class ColorizeResult:
    polygon_id: str
    status: ColorizeStatus
    color: Optional[str] = None
    value: Optional[float] = None
    reason: Optional[FailureReason] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ColorizeStatus.OK

    @staticmethod
    def success(polygon_id: str, color: str, value: float) -> "ColorizeResult":
        return ColorizeResult(polygon_id, ColorizeStatus.OK, color=color, value=value)

    @staticmethod
    def failure(polygon_id: str, reason: FailureReason, detail: str = "") -> "ColorizeResult":
        return ColorizeResult(
            polygon_id,
            ColorizeStatus.FAILED,
            color=FALLBACK_COLOR,
            value=0.0,
            reason=reason,
            detail=detail,
        )

    @staticmethod
    def skipped(polygon_id: str, reason: FailureReason, detail: str = "") -> "ColorizeResult":
        return ColorizeResult(polygon_id, ColorizeStatus.SKIPPED, reason=reason, detail=detail)


ResultCallback = Callable[[ColorizeResult], None]


def centroid(coordinates: Sequence[Coordinate]) -> Tuple[float, float]:
    """
    Arithmetic mean of vertex latitudes and longitudes.

    Returns ``(nan, nan)`` for an empty coordinate list.
    """
    if not coordinates:
        return math.nan, math.nan
    n = len(coordinates)
    lat = sum(c[0] for c in coordinates) / n
    lng = sum(c[1] for c in coordinates) / n
    return lat, lng


def apply_result(polygon: Polygon, result: ColorizeResult) -> bool:
    """
    Write a result's color/value onto ``polygon``.

    Skipped results leave the polygon untouched. Returns True if it changed.
    """
    if result.status is ColorizeStatus.SKIPPED:
        return False
    polygon.color = result.color or FALLBACK_COLOR
    polygon.current_value = result.value if result.value is not None else 0.0
    return True


class PolygonColorizer:
    """
    Classify polygons against their rules for a time window.

    Batches run polygons one after another so that two polygons sharing a
    rounded centroid never trigger two fetches.
    """

    def __init__(
        self,
        fetch: SeriesFetcher,
        cache: Optional[LocationCache] = None,
        *,
        trace: Optional[TraceWriter] = None,
    ):
        self.fetch = fetch
        self.cache = cache if cache is not None else LocationCache()
        self.trace = trace
        self._active_batches = 0

    @property
    def loading(self) -> bool:
        """True while at least one batch is in progress."""
        return self._active_batches > 0

    async def colorize(self, polygon: Polygon, window: TimeWindow) -> ColorizeResult:
        try:
            lat, lng = centroid(polygon.coordinates)
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError, IndexError) as e:
            logger.warning("Malformed coordinates for polygon %s; skipping: %s", polygon.id, e)
            result = ColorizeResult.skipped(polygon.id, FailureReason.INVALID_CENTROID, str(e))
            self._emit(result, window)
            return result

        if math.isnan(lat) or math.isnan(lng):
            logger.warning("Invalid coordinates for polygon %s; skipping", polygon.id)
            result = ColorizeResult.skipped(
                polygon.id, FailureReason.INVALID_CENTROID, "centroid is not a number"
            )
            self._emit(result, window)
            return result

        try:
            series = await self.cache.get_or_fetch(lat, lng, self.fetch)
        except Exception as e:
            logger.error("Failed to fetch series for polygon %s: %s", polygon.id, e)
            result = ColorizeResult.failure(polygon.id, FailureReason.FETCH_ERROR, str(e))
            self._emit(result, window)
            return result

        try:
            value = aggregate(series, window)
            color = resolve(value, polygon.color_rules)
        except Exception as e:
            logger.error("Failed to classify polygon %s: %s", polygon.id, e)
            result = ColorizeResult.failure(polygon.id, FailureReason.DATA_ERROR, str(e))
            self._emit(result, window)
            return result

        result = ColorizeResult.success(polygon.id, color, value)
        self._emit(result, window)
        return result

    async def colorize_all(
        self,
        polygons: Sequence[Polygon],
        window: TimeWindow,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> List[ColorizeResult]:
        """
        Classify every polygon in order.

        ``on_result`` is called as soon as each polygon finishes, so a caller can
        apply results progressively.
        """
        batch = list(polygons)
        results: List[ColorizeResult] = []
        self._active_batches += 1
        if self.trace is not None:
            self.trace.batch_start(len(batch), window)
        try:
            for polygon in batch:
                result = await self.colorize(polygon, window)
                results.append(result)
                if on_result is not None:
                    on_result(result)
        finally:
            self._active_batches -= 1
            if self.trace is not None:
                self.trace.batch_end(len(results))
        return results

    def _emit(self, result: ColorizeResult, window: TimeWindow) -> None:
        if self.trace is None:
            return
        self.trace.polygon_result(result, window)
