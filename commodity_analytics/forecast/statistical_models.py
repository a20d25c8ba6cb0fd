"""ARIMA and Holt-Winters point estimators, backed by statsmodels.

Each returns the value ``horizon`` steps past the last observation, bounded
to 0.5x..1.5x of the last price. Shorter inputs than ``MIN_OBSERVATIONS``
carry the last price forward. A failed or non-finite fit raises
EstimatorError and the caller decides what to use instead.

Usage:
    arima_forecast(values, horizon=14)
    holt_winters_forecast(values, horizon=14, seasonal_period=7)
"""

import warnings

import numpy as np
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.holtwinters import ExponentialSmoothing

MIN_OBSERVATIONS = 10
LOWER_BOUND_RATIO = 0.5
UPPER_BOUND_RATIO = 1.5

# Holt-Winters smoothing constants (level, trend, seasonal); not optimized
HW_SMOOTHING_LEVEL = 0.3
HW_SMOOTHING_TREND = 0.1
HW_SMOOTHING_SEASONAL = 0.2


class EstimatorError(Exception):
    """A statistical model could not produce a forecast."""


def _bounded(forecast: float, last: float) -> float:
    if not np.isfinite(forecast):
        raise EstimatorError(f"Non-finite forecast: {forecast}")
    low, high = sorted((last * LOWER_BOUND_RATIO, last * UPPER_BOUND_RATIO))
    return float(min(high, max(low, forecast)))


def arima_forecast(values: np.ndarray, horizon: int, order: tuple[int, int, int] = (2, 1, 1)) -> float:
    """ARIMA(p, d, q) forecast ``horizon`` steps ahead.

    Raises:
        EstimatorError: The model could not be fitted
    """
    values = np.asarray(values, dtype=float)
    last = float(values[-1])
    if len(values) < MIN_OBSERVATIONS:
        return last

    try:
        with warnings.catch_warnings():
            # convergence and start-parameter warnings on short windows
            warnings.simplefilter("ignore")
            result = ARIMA(values, order=order).fit()
            forecast = float(result.forecast(steps=horizon)[-1])
    except (ValueError, np.linalg.LinAlgError) as e:
        raise EstimatorError(f"ARIMA{order} fit failed: {e}")

    return _bounded(forecast, last)


def seasonal_minimum(seasonal_period: int) -> int:
    """Observations needed before a seasonal component is fitted."""
    return max(2 * seasonal_period, MIN_OBSERVATIONS + 2 * (seasonal_period // 2))


def holt_winters_forecast(values: np.ndarray, horizon: int, seasonal_period: int = 7) -> float:
    """Additive-trend Holt-Winters forecast ``horizon`` steps ahead.

    A multiplicative season of ``seasonal_period`` is added once the input
    spans enough cycles and is strictly positive; otherwise the model is
    Holt's linear trend.

    Raises:
        EstimatorError: The model could not be fitted
    """
    values = np.asarray(values, dtype=float)
    last = float(values[-1])
    if len(values) < MIN_OBSERVATIONS:
        return last

    seasonal = len(values) >= seasonal_minimum(seasonal_period) and bool((values > 0).all())
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            model = ExponentialSmoothing(
                values,
                trend="add",
                seasonal="mul" if seasonal else None,
                seasonal_periods=seasonal_period if seasonal else None,
                initialization_method="heuristic",
            )
            result = model.fit(
                smoothing_level=HW_SMOOTHING_LEVEL,
                smoothing_trend=HW_SMOOTHING_TREND,
                smoothing_seasonal=HW_SMOOTHING_SEASONAL if seasonal else None,
                optimized=False,
            )
            forecast = float(result.forecast(horizon)[-1])
    except (ValueError, np.linalg.LinAlgError) as e:
        raise EstimatorError(f"Holt-Winters fit failed: {e}")

    return _bounded(forecast, last)
