"""Commodity price analytics engine.

Turns a daily price series into technical indicators, statistical anomaly
flags and short-horizon forecasts.
"""

from .series import MalformedInputError, PricePoint, PriceRange, aggregate_daily
from .indicators import (
    apply_indicators,
    bollinger_bands,
    exponential_moving_average,
    macd,
    rsi,
    simple_moving_average,
)
from .anomaly import detect_anomalies
from .forecast import InsufficientDataError, predict_price

__version__ = "0.1.0"

__all__ = [
    "MalformedInputError",
    "PricePoint",
    "PriceRange",
    "aggregate_daily",
    "apply_indicators",
    "bollinger_bands",
    "exponential_moving_average",
    "macd",
    "rsi",
    "simple_moving_average",
    "detect_anomalies",
    "InsufficientDataError",
    "predict_price",
]
