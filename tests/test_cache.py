"""Tests for the rastermap.data_sources.cache module."""

import threading
import time

import pytest

from conftest import CountingProvider
from rastermap.area_definitions import Region
from rastermap.data_sources import TileCache
from rastermap.exceptions import ProviderUnavailable, UnsupportedStyle


class BlockingProvider(CountingProvider):
    """Provider whose fetch waits until released."""

    def __init__(self, mosaic):
        super().__init__(mosaic)
        self.release = threading.Event()

    def fetch(self, region, style):
        self.calls += 1
        assert self.release.wait(5)
        return self.mosaic


class FailingProvider(CountingProvider):
    def fetch(self, region, style):
        self.calls += 1
        if self.calls == 1:
            raise ProviderUnavailable("flaky")
        return self.mosaic


class TestTileCache:
    """Tests for memoised fetches."""

    def test_identical_requests_fetch_once(self, counting_provider, region):
        cache = TileCache()
        first = cache.fetch(counting_provider, region, "standard")
        second = cache.fetch(counting_provider, region, "standard")
        assert first is second
        assert counting_provider.calls == 1
        assert (cache.hits, cache.misses) == (1, 1)

    def test_style_enum_and_value_share_key(self, counting_provider, region):
        cache = TileCache()
        cache.fetch(counting_provider, region, "standard")
        cache.fetch(counting_provider, region, counting_provider.styles.STANDARD)
        assert counting_provider.calls == 1

    def test_different_regions_fetch_separately(self, counting_provider, region):
        cache = TileCache()
        other = Region(region.min_lon, region.min_lat, region.max_lon, region.max_lat, 13)
        cache.fetch(counting_provider, region, "standard")
        cache.fetch(counting_provider, other, "standard")
        assert counting_provider.calls == 2
        assert len(cache) == 2

    def test_unsupported_style_not_cached(self, counting_provider, region):
        cache = TileCache()
        with pytest.raises(UnsupportedStyle):
            cache.fetch(counting_provider, region, "toner")
        assert counting_provider.calls == 0

    def test_concurrent_requests_coalesce(self, mosaic, region):
        """Concurrent identical fetches share one call and one Mosaic."""
        provider = BlockingProvider(mosaic)
        cache = TileCache()
        results = []

        def worker():
            results.append(cache.fetch(provider, region, "standard"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        deadline = time.monotonic() + 5
        while cache.hits < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        provider.release.set()
        for thread in threads:
            thread.join(5)

        assert provider.calls == 1
        assert len(results) == 4
        assert all(r is results[0] for r in results)

    def test_failures_are_not_cached(self, mosaic, region):
        provider = FailingProvider(mosaic)
        cache = TileCache()
        with pytest.raises(ProviderUnavailable):
            cache.fetch(provider, region, "standard")
        assert len(cache) == 0
        assert cache.fetch(provider, region, "standard") is mosaic
        assert provider.calls == 2

    def test_lru_bound(self, counting_provider, region):
        cache = TileCache(maxsize=2)
        regions = [Region(region.min_lon, region.min_lat, region.max_lon,
                          region.max_lat, z) for z in (12, 13, 14)]
        for r in regions:
            cache.fetch(counting_provider, r, "standard")
        assert len(cache) == 2
        cache.fetch(counting_provider, regions[0], "standard")
        assert counting_provider.calls == 4

    def test_clear(self, counting_provider, region):
        cache = TileCache()
        cache.fetch(counting_provider, region, "standard")
        cache.clear()
        cache.fetch(counting_provider, region, "standard")
        assert counting_provider.calls == 2
