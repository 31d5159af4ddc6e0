"""
Offline series source producing plausible hourly temperatures.

Used when no provider is reachable (and by the CLI when no series file is
given). The shape is a latitude-band base temperature plus a daily cycle
peaking mid-afternoon, a slow 30-day swing and bounded noise, rounded to 0.1 C.
"""

from __future__ import annotations

import asyncio
import math
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from polytherm.model import SERIES_HOURS, TimeSeries


def base_temperature(lat: float) -> float:
    if lat > 50:
        return 10.0
    if lat > 30:
        return 20.0
    return 25.0


def series_start(now: Optional[datetime] = None) -> datetime:
    """Hour 0 of the series: 15 days before ``now``, floored to the hour (UTC)."""
    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=15)
    return start.replace(minute=0, second=0, microsecond=0)


def hourly_timestamps(start: datetime, hours: int) -> List[str]:
    return [(start + timedelta(hours=i)).isoformat() for i in range(hours)]


def generate_temperatures(hours: int, lat: float, rng: random.Random) -> List[float]:
    base = base_temperature(lat)
    temps: List[float] = []
    for i in range(hours):
        hour_of_day = i % 24
        day = i // 24
        daily = math.sin((hour_of_day - 6) * math.pi / 12) * 8
        seasonal = math.sin(day * math.pi / 15) * 5
        noise = (rng.random() - 0.5) * 6
        temps.append(round(base + daily + seasonal + noise, 1))
    return temps


class SyntheticSeriesSource:
    """
    Async fetch collaborator returning generated series.

    With a ``seed`` the output depends only on (seed, rounded location), so
    repeated runs classify identically.
    """

    def __init__(
        self,
        hours: int = SERIES_HOURS,
        seed: Optional[int] = None,
        *,
        start: Optional[datetime] = None,
    ):
        if hours <= 0:
            raise ValueError(f"hours must be positive, got {hours}")
        self.hours = hours
        self.seed = seed
        self.start = start or series_start()
        self.calls = 0

    def _rng(self, lat: float, lng: float) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}:{lat:.2f}:{lng:.2f}")

    async def __call__(self, lat: float, lng: float) -> TimeSeries:
        self.calls += 1
        # Yield like a real network call would.
        await asyncio.sleep(0)
        values = generate_temperatures(self.hours, lat, self._rng(lat, lng))
        return TimeSeries.from_values(values, hourly_timestamps(self.start, self.hours))


class StaticSeriesSource:
    """Async fetch collaborator that returns the same series for every location."""

    def __init__(self, series: TimeSeries):
        self.series = series
        self.calls = 0

    async def __call__(self, lat: float, lng: float) -> TimeSeries:
        self.calls += 1
        await asyncio.sleep(0)
        return self.series
