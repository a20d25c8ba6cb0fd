"""Momentum oscillators: RSI and MACD."""

from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from commodity_analytics.series import (
    DefinedRegion,
    PriceInput,
    to_optional_list,
    validate_period,
)
from .base_indicator import BaseIndicator, IndicatorResult
from .trend_indicators import ema_values

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    # No losses in the window saturates at 100, flat windows included.
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_values(values: np.ndarray, period: int) -> np.ndarray:
    """Wilder RSI over a plain array.

    The first ``period`` price changes are averaged with a simple mean; every
    later change is folded in with Wilder smoothing
    ``avg = (avg * (period - 1) + x) / period``.

    Args:
        values: Finite float values in chronological order
        period: Number of price changes in the averaging window

    Returns:
        Array of the same length; the first value sits at index ``period``
        because ``period + 1`` prices are needed for ``period`` changes
    """
    values = np.asarray(values, dtype=float)
    out = np.full(len(values), np.nan)
    if len(values) <= period:
        return out

    changes = np.diff(values)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return out


class RSIIndicator(BaseIndicator):
    """Relative Strength Index indicator.

    RSI measures the speed and magnitude of price changes:
    - RSI > 70: Overbought (potential reversal down)
    - RSI < 30: Oversold (potential reversal up)
    - RSI 30-70: Neutral zone

    Uses average gains vs average losses over the period. The warm-up is one
    observation longer than SMA/EMA of the same period.
    """

    def __init__(self, period: int = 14):
        """Initialize RSI indicator.

        Args:
            period: Number of periods for calculation (default: 14)
        """
        self.period = validate_period(period)

    @property
    def name(self) -> str:
        return f"RSI_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period + 1

    def calculate(self, df: pd.DataFrame) -> IndicatorResult:
        """Calculate RSI.

        Args:
            df: Price frame with 'value' column

        Returns:
            IndicatorResult with RSI values (0-100)
        """
        values = rsi_values(df["value"].to_numpy(dtype=float), self.period)
        return IndicatorResult(
            name=self.name,
            values=pd.Series(values, index=df.index),
            params={"period": self.period}
        )


class MACDResult(NamedTuple):
    """MACD component lists aligned with the input, ``None`` where absent."""
    macd: list[Optional[float]]
    signal: list[Optional[float]]
    histogram: list[Optional[float]]


class MACDIndicator(BaseIndicator):
    """Moving Average Convergence Divergence indicator.

    MACD shows the relationship between two EMAs and includes:
    - MACD line: Difference between fast and slow EMAs
    - Signal line: EMA of MACD line
    - Histogram: Difference between MACD and signal

    The signal EMA runs over the defined region of the MACD line only, so its
    warm-up starts at the first MACD value rather than the first price.
    """

    def __init__(
        self,
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9
    ):
        """Initialize MACD indicator.

        Args:
            fast_period: Fast EMA period (default: 12)
            slow_period: Slow EMA period (default: 26)
            signal_period: Signal line EMA period (default: 9)
        """
        self.fast_period = validate_period(fast_period, "fast_period")
        self.slow_period = validate_period(slow_period, "slow_period")
        self.signal_period = validate_period(signal_period, "signal_period")

    @property
    def name(self) -> str:
        return f"MACD_{self.fast_period}_{self.slow_period}_{self.signal_period}"

    @property
    def warmup(self) -> int:
        return max(self.fast_period, self.slow_period) + self.signal_period - 1

    def calculate(self, df: pd.DataFrame) -> IndicatorResult:
        """Calculate MACD, signal line, and histogram.

        Args:
            df: Price frame with 'value' column

        Returns:
            IndicatorResult with MACD line as values and
            signal/histogram in params
        """
        values = df["value"].to_numpy(dtype=float)
        n = len(values)

        macd_line = ema_values(values, self.fast_period) - ema_values(values, self.slow_period)

        region = DefinedRegion.of(macd_line)
        signal_line = region.embed(
            ema_values(region.slice(macd_line), self.signal_period), n
        )
        histogram = macd_line - signal_line

        return IndicatorResult(
            name=self.name,
            values=pd.Series(macd_line, index=df.index),
            params={
                "fast_period": self.fast_period,
                "slow_period": self.slow_period,
                "signal_period": self.signal_period,
                "macd": pd.Series(macd_line, index=df.index),
                "signal": pd.Series(signal_line, index=df.index),
                "histogram": pd.Series(histogram, index=df.index)
            }
        )


def rsi(series: PriceInput, period: int = 14) -> list[Optional[float]]:
    """RSI aligned with the input; the first ``period`` positions are ``None``."""
    return RSIIndicator(period=period)(series).to_list()


def macd(
    series: PriceInput,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9
) -> MACDResult:
    """MACD line, signal line and histogram aligned with the input."""
    result = MACDIndicator(fast, slow, signal)(series)
    return MACDResult(
        macd=to_optional_list(result.params["macd"]),
        signal=to_optional_list(result.params["signal"]),
        histogram=to_optional_list(result.params["histogram"]),
    )


def interpret_rsi(value: float) -> str:
    """Classify an RSI reading as 'overbought', 'oversold' or 'neutral'."""
    if value >= RSI_OVERBOUGHT:
        return "overbought"
    if value <= RSI_OVERSOLD:
        return "oversold"
    return "neutral"


def interpret_macd(macd_value: float, signal_value: float) -> str:
    """Classify MACD vs its signal line as 'bullish', 'bearish' or 'neutral'."""
    if macd_value > signal_value:
        return "bullish"
    if macd_value < signal_value:
        return "bearish"
    return "neutral"
