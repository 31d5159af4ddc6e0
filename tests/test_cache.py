"""Unit tests for polytherm.core.cache."""

import asyncio

import pytest

from polytherm.core.cache import LocationCache, cache_key
from polytherm.model import TimeSeries


class _CountingFetcher:
    def __init__(self, series=None, error=None):
        self.calls = []
        self.series = series or TimeSeries.from_values([1.0, 2.0])
        self.error = error

    async def __call__(self, lat, lng):
        self.calls.append((lat, lng))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.series


def test_cache_key_uses_two_fixed_decimals():
    assert cache_key(52.521, 13.411) == "52.52_13.41"
    assert cache_key(52.519, 13.409) == "52.52_13.41"
    assert cache_key(52.5, 13.4) == cache_key(52.50, 13.40) == "52.50_13.40"
    assert cache_key(-0.001, 0.0) == "-0.00_0.00"


def test_nearby_centroids_share_one_fetch():
    cache = LocationCache()
    fetch = _CountingFetcher()

    async def _run():
        a = await cache.get_or_fetch(52.521, 13.411, fetch)
        b = await cache.get_or_fetch(52.519, 13.409, fetch)
        c = await cache.get_or_fetch(52.521, 13.411, fetch)
        return a, b, c

    a, b, c = asyncio.run(_run())
    assert a is b is c
    assert fetch.calls == [(52.521, 13.411)]
    assert "52.52_13.41" in cache
    assert len(cache) == 1


def test_distinct_locations_fetch_separately():
    cache = LocationCache()
    fetch = _CountingFetcher()

    async def _run():
        await cache.get_or_fetch(52.52, 13.41, fetch)
        await cache.get_or_fetch(48.85, 2.35, fetch)

    asyncio.run(_run())
    assert len(fetch.calls) == 2
    assert cache.keys() == ["52.52_13.41", "48.85_2.35"]


def test_failed_fetch_is_not_cached():
    cache = LocationCache()
    failing = _CountingFetcher(error=RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        asyncio.run(cache.get_or_fetch(1.0, 2.0, failing))
    assert len(cache) == 0

    ok = _CountingFetcher()
    series = asyncio.run(cache.get_or_fetch(1.0, 2.0, ok))
    assert series is ok.series
    assert len(ok.calls) == 1


def test_seed_preloads_without_fetch():
    cache = LocationCache()
    preset = TimeSeries.from_values([9.0])
    cache.seed(10.001, 20.002, preset)
    fetch = _CountingFetcher()

    assert asyncio.run(cache.get_or_fetch(10.0, 20.0, fetch)) is preset
    assert fetch.calls == []
    assert cache.get(10.0, 20.0) is preset


def test_late_overlapping_fetch_does_not_replace_stored_entry():
    cache = LocationCache()
    first = TimeSeries.from_values([1.0])
    second = TimeSeries.from_values([2.0])

    async def _run():
        gate = asyncio.Event()

        async def slow(lat, lng):
            await gate.wait()
            return first

        async def fast(lat, lng):
            return second

        stale = asyncio.create_task(cache.get_or_fetch(1.0, 2.0, slow))
        await asyncio.sleep(0)
        current = await cache.get_or_fetch(1.0, 2.0, fast)
        gate.set()
        late = await stale
        again = await cache.get_or_fetch(1.0, 2.0, _CountingFetcher())
        return current, late, again

    current, late, again = asyncio.run(_run())
    assert current is second
    assert late is second
    assert again is second
    assert cache.get(1.0, 2.0) is second
