"""Tests for the TTL analysis cache."""

import threading
from datetime import date, timedelta

import pytest

from commodity_analytics.series import PricePoint, to_price_frame
from commodity_analytics.forecast.price_predictor import ForecastConfig
from commodity_analytics.services.analysis_cache import AnalysisCache, config_fingerprint, series_fingerprint


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_frame(values):
    start = date(2024, 1, 1)
    return to_price_frame([PricePoint(start + timedelta(days=i), float(v)) for i, v in enumerate(values)])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return AnalysisCache(ttl_seconds=60, max_entries=3, clock=clock)


class TestAnalysisCache:
    """Tests for expiry, eviction and invalidation."""

    def test_set_and_get(self, cache):
        cache.set(("soja", "forecast", "abc"), 42)
        assert cache.get(("soja", "forecast", "abc")) == 42
        assert cache.hits == 1

    def test_missing_key(self, cache):
        assert cache.get("nope") is None
        assert cache.misses == 1

    def test_expires_after_ttl(self, cache, clock):
        """Test entries expire once the TTL has fully elapsed."""
        cache.set("key", "value")

        clock.advance(59)
        assert cache.get("key") == "value"

        clock.advance(1)
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_set_refreshes_expiry(self, cache, clock):
        cache.set("key", 1)
        clock.advance(50)
        cache.set("key", 2)
        clock.advance(50)
        assert cache.get("key") == 2

    def test_evicts_oldest(self, cache):
        """Test the oldest entry goes when capacity is exceeded."""
        for i in range(4):
            cache.set(f"k{i}", i)

        assert len(cache) == 3
        assert cache.get("k0") is None
        assert cache.get("k3") == 3

    def test_get_or_compute(self, cache):
        """Test the factory runs once while the entry is fresh."""
        calls = []

        def compute():
            calls.append(1)
            return [1, 2, 3]

        assert cache.get_or_compute("key", compute) == [1, 2, 3]
        assert cache.get_or_compute("key", compute) == [1, 2, 3]
        assert len(calls) == 1

    def test_get_or_compute_caches_empty_results(self, cache):
        calls = []

        def compute():
            calls.append(1)
            return []

        cache.get_or_compute("key", compute)
        cache.get_or_compute("key", compute)
        assert len(calls) == 1

    def test_get_or_compute_recomputes_after_expiry(self, cache, clock):
        values = iter([1, 2])
        assert cache.get_or_compute("key", lambda: next(values)) == 1
        clock.advance(61)
        assert cache.get_or_compute("key", lambda: next(values)) == 2

    def test_get_or_compute_error_not_cached(self, cache):
        """Test failures propagate and leave nothing behind."""
        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.get_or_compute("key", fail)
        assert len(cache) == 0

    def test_invalidate_commodity(self, cache):
        cache.set(cache.make_key("soja", "forecast", "f1", 7), 1)
        cache.set(cache.make_key("soja", "anomalies", "f1"), 2)
        cache.set(cache.make_key("milho", "forecast", "f2", 7), 3)

        assert cache.invalidate("soja") == 2
        assert len(cache) == 1
        assert cache.get(cache.make_key("milho", "forecast", "f2", 7)) == 3

    def test_invalidate_all(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.invalidate() == 2
        assert len(cache) == 0

    def test_purge_expired(self, cache, clock):
        cache.set("old", 1)
        clock.advance(30)
        cache.set("new", 2)
        clock.advance(31)

        assert cache.purge_expired() == 1
        assert cache.get("new") == 2

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            AnalysisCache(**kwargs)

    def test_concurrent_access(self):
        """Test concurrent writers never exceed capacity."""
        cache = AnalysisCache(ttl_seconds=60, max_entries=50)

        def writer(offset):
            for i in range(200):
                cache.set((offset, i), i)
                cache.get((offset, i))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50


class TestSeriesFingerprint:
    """Tests for input fingerprints."""

    def test_equal_series_match(self):
        assert series_fingerprint(make_frame([1, 2, 3])) == series_fingerprint(make_frame([1, 2, 3]))

    def test_value_change_differs(self):
        assert series_fingerprint(make_frame([1, 2, 3])) != series_fingerprint(make_frame([1, 2, 4]))

    def test_date_change_differs(self):
        shifted = to_price_frame([
            PricePoint(date(2024, 2, 1), 1.0),
            PricePoint(date(2024, 2, 2), 2.0),
        ])
        assert series_fingerprint(make_frame([1, 2])) != series_fingerprint(shifted)


class TestConfigFingerprint:
    """Tests for config digests used in cache keys."""

    def test_equal_configs_match(self):
        assert config_fingerprint(ForecastConfig()) == config_fingerprint(ForecastConfig())

    def test_changed_field_differs(self):
        assert config_fingerprint(ForecastConfig()) != config_fingerprint(ForecastConfig(trend_window=30))
