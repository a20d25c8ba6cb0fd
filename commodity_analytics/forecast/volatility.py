"""Volatility measures used to size forecast bounds and confidence."""

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from commodity_analytics.series import PriceRange
from .trend_analysis import Values


class VolatilityLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# Coefficient of variation boundaries in percent; agricultural series
# usually sit between 2% and 15%
LOW_VOLATILITY_CV = 3.0
HIGH_VOLATILITY_CV = 8.0


def standard_deviation(values: Values) -> float:
    """Population standard deviation (divides by n); 0 for empty input."""
    y = np.asarray(values, dtype=float)
    if len(y) == 0:
        return 0.0
    return float(y.std())


def coefficient_of_variation(values: Values) -> float:
    """Standard deviation over mean, in percent; 0 when the mean is 0."""
    y = np.asarray(values, dtype=float)
    if len(y) == 0:
        return 0.0
    mean = float(y.mean())
    if mean == 0:
        return 0.0
    return standard_deviation(y) / abs(mean) * 100


def daily_returns(values: Values) -> np.ndarray:
    """Percent change between consecutive observations.

    Changes from a zero price are skipped.
    """
    y = np.asarray(values, dtype=float)
    if len(y) < 2:
        return np.array([], dtype=float)

    previous = y[:-1]
    mask = previous != 0
    return (y[1:][mask] - previous[mask]) / previous[mask] * 100


def average_true_range(values: Values, period: int = 14) -> float:
    """Mean absolute daily change over the last ``period`` changes.

    Daily quotes carry no intraday high/low, so the true range of a day is
    approximated by its absolute change from the previous close.
    """
    y = np.asarray(values, dtype=float)
    if len(y) < 2:
        return 0.0
    ranges = np.abs(np.diff(y))[-period:]
    return float(ranges.mean())


def determine_volatility_level(cv_percent: float) -> VolatilityLevel:
    if cv_percent < LOW_VOLATILITY_CV:
        return VolatilityLevel.LOW
    if cv_percent < HIGH_VOLATILITY_CV:
        return VolatilityLevel.MEDIUM
    return VolatilityLevel.HIGH


@dataclass(frozen=True)
class VolatilityResult:
    """Volatility summary of a window of prices.

    Attributes:
        standard_deviation: Population sigma of the prices
        coefficient_of_variation: Sigma over mean, in percent
        average_true_range: Mean absolute daily change
        level: LOW, MEDIUM or HIGH by coefficient of variation
        price_range: Lowest and highest price in the window
        range_percent: ``(high - low) / mean * 100``
    """
    standard_deviation: float
    coefficient_of_variation: float
    average_true_range: float
    level: VolatilityLevel
    price_range: PriceRange
    range_percent: float


def analyze_volatility(values: Values) -> VolatilityResult:
    y = np.asarray(values, dtype=float)
    cv = coefficient_of_variation(y)

    if len(y) == 0:
        price_range = PriceRange(0.0, 0.0)
        range_percent = 0.0
    else:
        price_range = PriceRange(float(y.min()), float(y.max()))
        mean = float(y.mean())
        range_percent = (price_range.high - price_range.low) / mean * 100 if mean != 0 else 0.0

    return VolatilityResult(
        standard_deviation=standard_deviation(y),
        coefficient_of_variation=cv,
        average_true_range=average_true_range(y),
        level=determine_volatility_level(cv),
        price_range=price_range,
        range_percent=range_percent,
    )


def prediction_bounds(
    predicted_price: float,
    sigma: float,
    days_ahead: int,
    z_score: float = 1.28
) -> PriceRange:
    """Symmetric band around a forecast, widening with the square root of time.

    ``z_score`` 1.28 covers roughly 80% of a normal distribution. The lower
    bound is not clamped at zero.
    """
    margin = z_score * sigma * math.sqrt(days_ahead)
    return PriceRange(predicted_price - margin, predicted_price + margin)
