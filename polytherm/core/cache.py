"""
Per-location series cache.

Series are keyed by the polygon centroid rounded to two decimals, so polygons
whose centroids fall within the same ~1 km cell share a single fetch. Entries
live for the whole session: there is no eviction and no refresh.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Iterator, List

from polytherm.model import TimeSeries


logger = logging.getLogger(__name__)

SeriesFetcher = Callable[[float, float], Awaitable[TimeSeries]]
"""Async collaborator returning the hourly series for (lat, lng). May raise."""


def cache_key(lat: float, lng: float) -> str:
    """
    Composite key of a location at two-decimal precision.

    Example:
        >>> cache_key(52.521, 13.411)
        '52.52_13.41'
        >>> cache_key(52.5, 13.4) == cache_key(52.50, 13.40)
        True
    """
    return f"{lat:.2f}_{lng:.2f}"


class LocationCache:
    """Fetch-once store of series by rounded location."""

    def __init__(self) -> None:
        self._entries: Dict[str, TimeSeries] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, lat: float, lng: float) -> TimeSeries | None:
        return self._entries.get(cache_key(lat, lng))

    def seed(self, lat: float, lng: float, series: TimeSeries) -> None:
        """Preload a series, e.g. one read from disk."""
        self._entries.setdefault(cache_key(lat, lng), series)

    async def get_or_fetch(self, lat: float, lng: float, fetch: SeriesFetcher) -> TimeSeries:
        """
        Return the cached series for (lat, lng), fetching it on first use.

        A failed fetch stores nothing and the error propagates to the caller.
        Entries are never replaced once stored.
        """
        key = cache_key(lat, lng)
        cached = self._entries.get(key)
        if cached is not None:
            logger.debug("Series cache hit for %s", key)
            return cached

        logger.debug("Series cache miss for %s; fetching (%.4f, %.4f)", key, lat, lng)
        series = await fetch(lat, lng)
        # An overlapping call may have stored this key while we awaited; keep the first entry.
        return self._entries.setdefault(key, series)
