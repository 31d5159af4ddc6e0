"""
Reduce an hourly series to one value for the selected time window.

A single-hour window returns that hour's sample exactly; a range returns the
arithmetic mean of the inclusive slice. Window indices are clamped into the
series bounds instead of being rejected, so a selection that drifts past the
end of the fetched data still produces a value.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Union

from polytherm.model import TimeSeries, TimeWindow


Samples = Union[TimeSeries, Sequence[Optional[float]]]


def _clamp(i: int, lo: int, hi: int) -> int:
    return max(lo, min(int(i), hi))


def clamp_window(window: TimeWindow, length: int) -> TimeWindow:
    """
    Clamp both ends of ``window`` into ``[0, length - 1]``.

    An inverted window collapses to a single point at the lower index.
    ``length`` must be positive.
    """
    max_index = length - 1
    start = _clamp(window.start, 0, max_index)
    end = _clamp(window.end, 0, max_index)
    if start > end:
        return TimeWindow(end, end)
    return TimeWindow(start, end)


def _sample(v: Optional[float]) -> float:
    # Missing readings count as 0.
    if v is None:
        return 0.0
    return float(v)


def aggregate(series: Samples, window: TimeWindow) -> float:
    """
    Aggregate ``series`` over ``window``.

    Example:
        >>> aggregate([1, 2, 3, 4], TimeWindow(0, 3))
        2.5
        >>> aggregate([5, 6, 7], TimeWindow(-2, 99))
        6.0
        >>> aggregate([], TimeWindow(0, 0))
        0.0
    """
    values = series.values if isinstance(series, TimeSeries) else series
    if len(values) == 0:
        return 0.0

    w = clamp_window(window, len(values))
    if w.is_single:
        v = _sample(values[w.start])
        return 0.0 if math.isnan(v) else v

    selected = [_sample(v) for v in values[w.start : w.end + 1]]
    if not selected:
        return 0.0
    return sum(selected) / len(selected)
