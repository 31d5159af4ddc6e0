"""
Series file reader.

Reads the hourly payload in the Open-Meteo layout:

    {"hourly": {"time": ["2025-01-01T00:00", ...], "temperature_2m": [3.1, ...]}}

``null`` samples are kept as ``None``; the aggregator counts them as 0.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from polytherm.model import DEFAULT_DATA_SOURCE, TimeSeries


class SeriesFormatError(ValueError):
    """Raised when a series document does not have the expected shape."""


def parse_series(data: Any, field: str = DEFAULT_DATA_SOURCE) -> TimeSeries:
    if not isinstance(data, dict):
        raise SeriesFormatError("Series document must be a JSON object")
    hourly = data.get("hourly")
    if not isinstance(hourly, dict):
        raise SeriesFormatError("Missing 'hourly' object")
    values = hourly.get(field)
    if not isinstance(values, list):
        raise SeriesFormatError(f"Missing 'hourly.{field}' list")

    times = hourly.get("time")
    if times is None:
        times = ["" for _ in values]
    if not isinstance(times, list) or len(times) != len(values):
        raise SeriesFormatError(
            f"'hourly.time' must be a list of the same length as 'hourly.{field}'"
        )

    out: List[Optional[float]] = []
    for i, v in enumerate(values):
        if v is None:
            out.append(None)
            continue
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise SeriesFormatError(f"hourly.{field}[{i}] is not a number: {v!r}")
        out.append(float(v))
    return TimeSeries.from_values(out, [str(t) for t in times])


def load_series_file(path: Path, field: str = DEFAULT_DATA_SOURCE) -> TimeSeries:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SeriesFormatError(f"Invalid JSON in {p.name}: {e}") from e
    return parse_series(data, field)


def series_to_dict(series: TimeSeries, field: str = DEFAULT_DATA_SOURCE) -> Dict[str, Any]:
    return {"hourly": {"time": list(series.times), field: list(series.values)}}
