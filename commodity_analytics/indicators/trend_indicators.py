"""Moving averages: windowed SMA, TA-Lib EMA."""

from typing import Optional

import numpy as np
import pandas as pd
import talib
from numpy.lib.stride_tricks import sliding_window_view

from commodity_analytics.series import PriceInput, validate_period
from .base_indicator import BaseIndicator, IndicatorResult


def sma_values(values: np.ndarray, period: int) -> np.ndarray:
    """Simple moving average over a plain array.

    Every window is averaged on its own, so a large value that has left the
    window leaves no residue in later averages.

    Args:
        values: Finite float values in chronological order
        period: Window length

    Returns:
        Array of the same length, NaN for the first ``period - 1`` positions
    """
    values = np.ascontiguousarray(values, dtype=float)
    result = np.full(len(values), np.nan)
    if len(values) < period:
        return result
    result[period - 1:] = sliding_window_view(values, period).mean(axis=1)
    return result


def ema_values(values: np.ndarray, period: int) -> np.ndarray:
    """Exponential moving average seeded with the SMA of the first window.

    ``ema[period-1]`` is the mean of the first ``period`` values; afterwards
    ``ema[i] = (values[i] - ema[i-1]) * k + ema[i-1]`` with
    ``k = 2 / (period + 1)``. TA-Lib's EMA follows the same seeding rule.

    Args:
        values: Finite float values in chronological order
        period: Window length

    Returns:
        Array of the same length, NaN for the first ``period - 1`` positions
    """
    values = np.ascontiguousarray(values, dtype=float)
    if len(values) < period:
        return np.full(len(values), np.nan)
    if period == 1:
        return values.copy()
    return talib.EMA(values, timeperiod=period)


class MAIndicator(BaseIndicator):
    """Simple Moving Average indicator.

    SMA smooths price data by calculating the average over a fixed window.
    Used for trend identification and support/resistance levels.
    """

    def __init__(self, period: int = 20):
        """Initialize MA indicator.

        Args:
            period: Number of periods for calculation (default: 20)
        """
        self.period = validate_period(period)

    @property
    def name(self) -> str:
        return f"SMA_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def calculate(self, df: pd.DataFrame) -> IndicatorResult:
        """Calculate Simple Moving Average.

        Args:
            df: Price frame with 'value' column

        Returns:
            IndicatorResult with SMA values
        """
        values = sma_values(df["value"].to_numpy(dtype=float), self.period)
        return IndicatorResult(
            name=self.name,
            values=pd.Series(values, index=df.index),
            params={"period": self.period}
        )


class EMAIndicator(BaseIndicator):
    """Exponential Moving Average indicator.

    EMA gives more weight to recent prices, making it more responsive
    to new information than SMA.
    """

    def __init__(self, period: int = 20):
        """Initialize EMA indicator.

        Args:
            period: Number of periods for calculation (default: 20)
        """
        self.period = validate_period(period)

    @property
    def name(self) -> str:
        return f"EMA_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def calculate(self, df: pd.DataFrame) -> IndicatorResult:
        """Calculate Exponential Moving Average.

        Args:
            df: Price frame with 'value' column

        Returns:
            IndicatorResult with EMA values
        """
        values = ema_values(df["value"].to_numpy(dtype=float), self.period)
        return IndicatorResult(
            name=self.name,
            values=pd.Series(values, index=df.index),
            params={"period": self.period}
        )


def simple_moving_average(series: PriceInput, period: int) -> list[Optional[float]]:
    """SMA aligned with the input, ``None`` during warm-up."""
    return MAIndicator(period=period)(series).to_list()


def exponential_moving_average(series: PriceInput, period: int) -> list[Optional[float]]:
    """SMA-seeded EMA aligned with the input, ``None`` during warm-up."""
    return EMAIndicator(period=period)(series).to_list()
