"""Tests for regression-based trend analysis."""

import pytest

from commodity_analytics.forecast.trend_analysis import (
    TrendDirection,
    analyze_period,
    analyze_trends,
    determine_trend_from_slope,
    linear_regression,
    project_price,
    rate_of_change,
)


class TestLinearRegression:
    """Tests for the OLS fit."""

    def test_perfect_line(self):
        fit = linear_regression([1, 3, 5, 7])
        assert fit.slope == pytest.approx(2.0)
        assert fit.intercept == pytest.approx(1.0)
        assert fit.r_squared == pytest.approx(1.0)
        assert fit.size == 4

    def test_single_value(self):
        """Test one value gives a flat line through it."""
        fit = linear_regression([42.0])
        assert fit.slope == 0.0
        assert fit.intercept == 42.0
        assert fit.r_squared == 0.0

    def test_empty(self):
        fit = linear_regression([])
        assert (fit.slope, fit.intercept, fit.size) == (0.0, 0.0, 0)

    def test_constant_has_zero_r_squared(self):
        fit = linear_regression([5.0] * 10)
        assert fit.slope == pytest.approx(0.0)
        assert fit.r_squared == 0.0

    def test_noisy_r_squared_in_range(self):
        fit = linear_regression([1, 4, 2, 5, 3, 6])
        assert 0.0 < fit.r_squared < 1.0
        assert fit.slope > 0


class TestProjectPrice:
    """Tests for extrapolation."""

    def test_projects_past_last_point(self):
        values = [100.0 + i for i in range(20)]
        assert project_price(values, 7, clamp=False) == pytest.approx(126.0)

    def test_clamped_to_double(self):
        """Test the clamped projection never exceeds twice the last price."""
        assert project_price([10.0, 100.0], 10) == pytest.approx(200.0)

    def test_clamped_to_half(self):
        assert project_price([100.0, 10.0], 10) == pytest.approx(5.0)


class TestTrendDirection:
    """Tests for slope classification."""

    @pytest.mark.parametrize("slope,expected", [
        (1.0, TrendDirection.UP),
        (-1.0, TrendDirection.DOWN),
        (0.05, TrendDirection.STABLE),
        (-0.05, TrendDirection.STABLE),
    ])
    def test_determine_trend(self, slope, expected):
        assert determine_trend_from_slope(slope, 100.0) is expected

    def test_zero_price(self):
        assert determine_trend_from_slope(1.0, 0.0) is TrendDirection.STABLE


class TestAnalyzeTrends:
    """Tests for multi-period trend analysis."""

    def test_analyze_period(self):
        result = analyze_period([100.0, 102.0, 104.0])
        assert result.trend is TrendDirection.UP
        assert result.fitted_price == pytest.approx(104.0)

    def test_analyze_period_empty(self):
        assert analyze_period([]).trend is TrendDirection.STABLE

    def test_steady_rise(self):
        """Test a clean ramp agrees on UP across all periods."""
        analysis = analyze_trends([100.0 + i for i in range(90)])

        assert analysis.short_term.trend is TrendDirection.UP
        assert analysis.medium_term.trend is TrendDirection.UP
        assert analysis.long_term.trend is TrendDirection.UP
        assert analysis.overall_trend is TrendDirection.UP
        assert analysis.confidence == pytest.approx(1.0)

    def test_steady_fall(self):
        analysis = analyze_trends([200.0 - i for i in range(40)])
        assert analysis.overall_trend is TrendDirection.DOWN

    def test_flat_ties_prefer_stable(self):
        """Test all-zero scores resolve to STABLE."""
        analysis = analyze_trends([50.0] * 40)
        assert analysis.overall_trend is TrendDirection.STABLE
        assert analysis.confidence == pytest.approx(0.5)

    def test_periods_use_trailing_windows(self):
        """Test the short-term fit only sees the last 14 observations."""
        values = [200.0 - i for i in range(30)] + [170.0 + i for i in range(14)]
        analysis = analyze_trends(values)
        assert analysis.short_term.trend is TrendDirection.UP
        assert analysis.short_term.slope == pytest.approx(1.0)


class TestRateOfChange:
    """Tests for momentum."""

    def test_basic(self):
        assert rate_of_change([100.0, 105.0, 110.0], period=3) == pytest.approx(10.0)

    def test_window_is_inclusive(self):
        """Test period counts observations, not steps."""
        values = [90.0, 100.0, 101.0, 102.0, 103.0, 104.0, 105.0, 110.0]
        assert rate_of_change(values, period=7) == pytest.approx(10.0)

    def test_too_short(self):
        assert rate_of_change([100.0, 110.0], period=5) == 0.0

    def test_zero_base(self):
        assert rate_of_change([0.0, 5.0], period=2) == 0.0
