"""Trend analysis with ordinary least squares.

Fits a straight line through recent prices (x = observation index) to measure
direction and strength of a trend, and to project it forward.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

import numpy as np

Values = Union[Sequence[float], np.ndarray]


class TrendDirection(Enum):
    """Direction of a price move."""
    UP = "UP"
    DOWN = "DOWN"
    STABLE = "STABLE"


@dataclass(frozen=True)
class RegressionFit:
    """Least-squares line ``value = slope * index + intercept``.

    Attributes:
        slope: Change per observation
        intercept: Fitted value at index 0
        r_squared: Coefficient of determination, clipped to [0, 1]
        size: Number of observations fitted
    """
    slope: float
    intercept: float
    r_squared: float
    size: int

    def predict(self, index: float) -> float:
        return self.slope * index + self.intercept


def linear_regression(values: Values) -> RegressionFit:
    """Fit an OLS line through ``values`` against their index.

    Fewer than two values give a flat line through the single value (or 0).
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    if n < 2:
        return RegressionFit(slope=0.0, intercept=float(y[0]) if n else 0.0, r_squared=0.0, size=n)

    x = np.arange(n, dtype=float)
    x_mean = x.mean()
    y_mean = y.mean()

    denominator = ((x - x_mean) ** 2).sum()
    slope = float(((x - x_mean) * (y - y_mean)).sum() / denominator)
    intercept = float(y_mean - slope * x_mean)

    ss_res = float(((y - (slope * x + intercept)) ** 2).sum())
    ss_tot = float(((y - y_mean) ** 2).sum())
    r_squared = 1.0 - ss_res / ss_tot if ss_tot != 0 else 0.0

    return RegressionFit(
        slope=slope,
        intercept=intercept,
        r_squared=min(1.0, max(0.0, r_squared)),
        size=n,
    )


def project_price(values: Values, days_ahead: int, clamp: bool = True) -> float:
    """Extrapolate the OLS line ``days_ahead`` observations past the last one.

    Args:
        values: Price values, oldest first
        days_ahead: Steps beyond the last observation
        clamp: Keep the projection within [0.5x, 2x] of the last price

    Returns:
        Projected price
    """
    fit = linear_regression(values)
    projected = fit.predict(fit.size - 1 + days_ahead)
    if not clamp or fit.size == 0:
        return projected

    current = float(np.asarray(values, dtype=float)[-1])
    return max(current * 0.5, min(current * 2, projected))


def determine_trend_from_slope(
    slope: float,
    current_price: float,
    threshold: float = 0.001
) -> TrendDirection:
    """Classify a slope relative to price.

    A slope below ``threshold`` (0.1% of the price per observation) in
    magnitude is STABLE.
    """
    if current_price == 0:
        return TrendDirection.STABLE

    relative_slope = slope / current_price
    if abs(relative_slope) < threshold:
        return TrendDirection.STABLE
    return TrendDirection.UP if slope > 0 else TrendDirection.DOWN


@dataclass(frozen=True)
class TrendResult:
    """Regression summary for one lookback period."""
    slope: float
    intercept: float
    r_squared: float
    trend: TrendDirection
    fitted_price: float


def analyze_period(values: Values) -> TrendResult:
    """Fit one period and classify its direction."""
    y = np.asarray(values, dtype=float)
    if len(y) == 0:
        return TrendResult(0.0, 0.0, 0.0, TrendDirection.STABLE, 0.0)

    fit = linear_regression(y)
    return TrendResult(
        slope=fit.slope,
        intercept=fit.intercept,
        r_squared=fit.r_squared,
        trend=determine_trend_from_slope(fit.slope, float(y[-1])),
        fitted_price=fit.predict(len(y) - 1),
    )


@dataclass(frozen=True)
class TrendAnalysis:
    """Short (14), medium (30) and long (90) observation trends.

    Attributes:
        short_term: Fit over the last 14 observations
        medium_term: Fit over the last 30 observations
        long_term: Fit over the last 90 observations
        overall_trend: Direction with the highest R^2-weighted score
        confidence: Agreement between periods blended with mean R^2, in [0, 1]
    """
    short_term: TrendResult
    medium_term: TrendResult
    long_term: TrendResult
    overall_trend: TrendDirection
    confidence: float


# Tie-break order when two directions score the same
_TREND_PREFERENCE = (TrendDirection.STABLE, TrendDirection.UP, TrendDirection.DOWN)


def analyze_trends(values: Values) -> TrendAnalysis:
    """Combine short, medium and long-term fits into one trend reading."""
    y = np.asarray(values, dtype=float)
    short_term = analyze_period(y[-14:])
    medium_term = analyze_period(y[-30:])
    long_term = analyze_period(y[-90:])

    weighted = [
        (short_term.trend, short_term.r_squared * 0.5),
        (medium_term.trend, medium_term.r_squared * 0.3),
        (long_term.trend, long_term.r_squared * 0.2),
    ]
    scores = {direction: 0.0 for direction in TrendDirection}
    for direction, weight in weighted:
        scores[direction] += weight

    overall = max(_TREND_PREFERENCE, key=lambda d: scores[d])

    agreement = sum(1 for direction, _ in weighted if direction is overall) / 3
    mean_r_squared = (short_term.r_squared + medium_term.r_squared + long_term.r_squared) / 3
    confidence = min(1.0, max(0.0, agreement * 0.5 + mean_r_squared * 0.5))

    return TrendAnalysis(
        short_term=short_term,
        medium_term=medium_term,
        long_term=long_term,
        overall_trend=overall,
        confidence=confidence,
    )


def rate_of_change(values: Values, period: int = 14) -> float:
    """Percent change across the last ``period`` observations.

    Compares the last value with the one ``period - 1`` steps earlier; returns
    0 when there are fewer than ``period`` values or the base is zero.
    """
    y = np.asarray(values, dtype=float)
    if period < 1 or len(y) < period:
        return 0.0

    current = y[-1]
    previous = y[-period]
    if previous == 0:
        return 0.0
    return float((current - previous) / previous * 100)
