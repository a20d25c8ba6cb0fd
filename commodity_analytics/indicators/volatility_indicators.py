"""Bollinger volatility bands."""

import math
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from commodity_analytics.series import (
    MalformedInputError,
    PriceInput,
    to_optional_list,
    validate_period,
)
from .base_indicator import BaseIndicator, IndicatorResult


class BollingerBands(NamedTuple):
    """Band lists aligned with the input, ``None`` during warm-up."""
    upper: list[Optional[float]]
    middle: list[Optional[float]]
    lower: list[Optional[float]]


class BollingerBandsIndicator(BaseIndicator):
    """Bollinger Bands indicator.

    Rolling mean plus/minus a multiple of the rolling standard deviation:
    - Middle band: SMA over the window
    - Upper/lower band: middle +/- multiplier * sigma

    Sigma is the population standard deviation of the window (divided by
    ``period``, not ``period - 1``), computed for each window separately.
    Prices outside the bands are unusually far from their recent average.
    """

    def __init__(self, period: int = 20, std_dev_multiplier: float = 2.0):
        """Initialize Bollinger Bands indicator.

        Args:
            period: Window length (default: 20)
            std_dev_multiplier: Band width in standard deviations (default: 2)
        """
        self.period = validate_period(period)
        if not math.isfinite(std_dev_multiplier) or std_dev_multiplier < 0:
            raise MalformedInputError(
                f"std_dev_multiplier must be a non-negative number, got {std_dev_multiplier}"
            )
        self.std_dev_multiplier = float(std_dev_multiplier)

    @property
    def name(self) -> str:
        return f"BOLL_{self.period}"

    @property
    def warmup(self) -> int:
        return self.period

    def calculate(self, df: pd.DataFrame) -> IndicatorResult:
        """Calculate upper, middle and lower bands.

        Args:
            df: Price frame with 'value' column

        Returns:
            IndicatorResult with the middle band as values and all three
            bands in params
        """
        values = df["value"].to_numpy(dtype=float)
        n = len(values)

        middle = np.full(n, np.nan)
        sigma = np.full(n, np.nan)
        if n >= self.period:
            windows = sliding_window_view(values, self.period)
            middle[self.period - 1:] = windows.mean(axis=1)
            sigma[self.period - 1:] = windows.std(axis=1)
        upper = middle + self.std_dev_multiplier * sigma
        lower = middle - self.std_dev_multiplier * sigma

        return IndicatorResult(
            name=self.name,
            values=pd.Series(middle, index=df.index),
            params={
                "period": self.period,
                "std_dev_multiplier": self.std_dev_multiplier,
                "upper": pd.Series(upper, index=df.index),
                "middle": pd.Series(middle, index=df.index),
                "lower": pd.Series(lower, index=df.index)
            }
        )


def bollinger_bands(
    series: PriceInput,
    period: int = 20,
    std_dev_multiplier: float = 2.0
) -> BollingerBands:
    """Bollinger bands aligned with the input."""
    result = BollingerBandsIndicator(period, std_dev_multiplier)(series)
    return BollingerBands(
        upper=to_optional_list(result.params["upper"]),
        middle=to_optional_list(result.params["middle"]),
        lower=to_optional_list(result.params["lower"]),
    )
