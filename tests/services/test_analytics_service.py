"""Tests for the analytics service facade."""

from datetime import date, timedelta

import numpy as np
import pytest

from commodity_analytics.anomaly.detector import AnomalyType
from commodity_analytics.forecast.price_predictor import InsufficientDataError
from commodity_analytics.indicators.indicator_calculator import IndicatorConfig, IndicatorPoint
from commodity_analytics.series import MalformedInputError, PricePoint
from commodity_analytics.services.analysis_cache import AnalysisCache
from commodity_analytics.services.analytics_service import AnalysisReport, AnalyticsService, momentum_signals
from commodity_analytics.services.settings import AnalyticsSettings, ServiceOptions


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_points(values, start=date(2024, 1, 1)):
    return [PricePoint(start + timedelta(days=i), float(v)) for i, v in enumerate(values)]


@pytest.fixture
def random_walk():
    np.random.seed(11)
    return make_points(100 + np.cumsum(np.random.randn(60)))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    return AnalyticsService(cache=AnalysisCache(ttl_seconds=60, clock=clock))


class TestAnalyze:
    """Tests for the combined analysis."""

    def test_full_report(self, service, random_walk):
        report = service.analyze(random_walk, commodity="soja", horizon=14)

        assert isinstance(report, AnalysisReport)
        assert report.commodity == "soja"
        assert report.observations == 60
        assert len(report.indicators) == 60
        assert report.forecast is not None
        assert report.forecast.horizon == 14
        assert report.forecast_error is None

    def test_matches_individual_calls(self, service, random_walk):
        """Test the concurrent run returns the same results as direct calls."""
        report = service.analyze(random_walk, commodity="soja")

        assert report.indicators == service.calculator.apply(random_walk)
        assert report.anomalies == service.detector.detect(random_walk)
        assert report.forecast == service.predictor.predict(random_walk, 7)

    def test_short_series_reports_insufficient_data(self, service):
        """Test a short series still yields indicators and an error marker."""
        report = service.analyze(make_points([10.0, 11.0, 12.0, 11.0, 10.0]))

        assert len(report.indicators) == 5
        assert report.anomalies == []
        assert report.forecast is None
        assert report.forecast_error == {
            "code": "INSUFFICIENT_DATA",
            "required": 7,
            "available": 5,
        }

    def test_spike_reported(self, service):
        report = service.analyze(make_points([100.0] * 20 + [300.0]), commodity="boi")
        assert AnomalyType.PRICE_SPIKE in [a.type for a in report.anomalies]

    def test_to_dict_tail(self, service, random_walk):
        data = service.analyze(random_walk).to_dict(indicator_tail=5)

        assert len(data["indicators"]) == 5
        assert data["indicators"][-1]["date"] == "2024-02-29"
        assert data["forecast"]["horizon"] == 7
        assert data["forecast_error"] is None

    def test_to_dict_all_rows(self, service, random_walk):
        assert len(service.analyze(random_walk).to_dict()["indicators"]) == 60


class TestGuards:
    """Tests for input validation at the service boundary."""

    def test_series_too_long(self):
        settings = AnalyticsSettings(service=ServiceOptions(max_series_length=10))
        service = AnalyticsService(settings)

        with pytest.raises(MalformedInputError, match="limit"):
            service.analyze(make_points(range(11)))

    def test_limit_is_inclusive(self):
        settings = AnalyticsSettings(service=ServiceOptions(max_series_length=10))
        report = AnalyticsService(settings).analyze(make_points(range(100, 110)))
        assert report.observations == 10

    def test_malformed_series(self, service, random_walk):
        with pytest.raises(MalformedInputError):
            service.analyze(list(reversed(random_walk)))

    def test_forecast_raises_insufficient(self, service):
        with pytest.raises(InsufficientDataError):
            service.forecast(make_points([1.0, 2.0]))


class TestCaching:
    """Tests for cached results."""

    def test_injected_cache_is_used(self, clock):
        """Test an empty injected cache is kept rather than replaced."""
        cache = AnalysisCache(ttl_seconds=60, clock=clock)
        assert AnalyticsService(cache=cache).cache is cache

    def test_shared_cache_separates_configs(self, clock):
        """Test services with different configs sharing a cache never mix results."""
        cache = AnalysisCache(ttl_seconds=60, clock=clock)
        full = AnalyticsService(cache=cache)
        rsi_only = AnalyticsService(
            AnalyticsSettings(indicators=IndicatorConfig.from_flags(["rsi"])), cache=cache
        )
        points = make_points(100 + np.arange(40.0))

        assert full.indicators(points)[-1].sma20 is not None
        assert rsi_only.indicators(points)[-1].sma20 is None

    def test_shared_cache_reused_for_same_config(self, clock, random_walk):
        cache = AnalysisCache(ttl_seconds=60, clock=clock)
        first = AnalyticsService(cache=cache).anomalies(random_walk, commodity="soja")
        second = AnalyticsService(cache=cache).anomalies(random_walk, commodity="soja")

        assert first is second
        assert cache.hits == 1


    def test_forecast_cached(self, service, random_walk):
        first = service.forecast(random_walk, 7, commodity="soja")
        second = service.forecast(random_walk, 7, commodity="soja")
        assert first is second

    def test_cache_expires(self, service, clock, random_walk):
        first = service.forecast(random_walk, 7, commodity="soja")
        clock.now += 60
        second = service.forecast(random_walk, 7, commodity="soja")

        assert first is not second
        assert first == second

    def test_keys_separate_commodity_and_horizon(self, service, random_walk):
        a = service.forecast(random_walk, 7, commodity="soja")
        b = service.forecast(random_walk, 7, commodity="milho")
        c = service.forecast(random_walk, 14, commodity="soja")

        assert a is not b
        assert a is not c

    def test_changed_input_misses(self, service, random_walk):
        first = service.indicators(random_walk, commodity="soja")
        changed = random_walk[:-1] + [PricePoint(random_walk[-1].date, random_walk[-1].value + 1)]
        second = service.indicators(changed, commodity="soja")

        assert first is not second
        assert first[-1].value != second[-1].value

    def test_analyze_uses_cache(self, service, random_walk):
        report = service.analyze(random_walk, commodity="soja")
        assert service.anomalies(random_walk, commodity="soja") is report.anomalies
        assert service.indicators(random_walk, commodity="soja") is report.indicators


class TestForecastHorizons:
    """Tests for multi-horizon forecasts through the service."""

    def test_default_horizons(self, service, random_walk):
        results = service.forecast_horizons(random_walk)
        assert list(results) == [7, 14, 30, 60, 90]

    def test_shares_cache_with_single_forecast(self, service, random_walk):
        results = service.forecast_horizons(random_walk, [7, 14], commodity="soja")
        assert service.forecast(random_walk, 14, commodity="soja") is results[14]

    def test_insufficient_data_skipped(self, service):
        assert service.forecast_horizons(make_points([1.0, 2.0, 3.0]), [7, 14]) == {}

    def test_malformed_series_raises(self, service, random_walk):
        with pytest.raises(MalformedInputError):
            service.forecast_horizons(list(reversed(random_walk)), [7, 14])

    def test_invalid_horizon_skipped(self, service, random_walk):
        assert list(service.forecast_horizons(random_walk, [0, 7])) == [7]


class TestMomentumSignals:
    """Tests for the RSI/MACD readings attached to reports."""

    def test_rising_series(self, service):
        """Test an accelerating rise reads overbought and bullish."""
        report = service.analyze(make_points(100 + 0.05 * np.arange(60.0) ** 2))

        assert report.signals == {"rsi": "overbought", "macd": "bullish"}
        assert report.to_dict()["signals"] == report.signals

    def test_warming_up_left_out(self, service):
        assert service.analyze(make_points([10.0, 11.0, 12.0])).signals == {}

    def test_disabled_indicator_left_out(self):
        latest = IndicatorPoint(date=date(2024, 1, 1), value=10.0, rsi=25.0)
        assert momentum_signals([latest]) == {"rsi": "oversold"}

    def test_empty(self):
        assert momentum_signals([]) == {}
