"""Unified indicator calculator producing chart-ready series."""

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from commodity_analytics.series import PriceInput, to_price_frame
from .trend_indicators import MAIndicator, EMAIndicator
from .volatility_indicators import BollingerBandsIndicator
from .momentum_indicators import RSIIndicator, MACDIndicator


@dataclass
class IndicatorPoint:
    """One chart row: the source price plus any enabled indicator fields.

    Indicator fields are ``None`` when disabled or still warming up.
    """
    date: date
    value: float
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    ema12: Optional[float] = None
    ema26: Optional[float] = None
    bollinger_upper: Optional[float] = None
    bollinger_middle: Optional[float] = None
    bollinger_lower: Optional[float] = None
    rsi: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, dropping absent indicator fields."""
        data: dict[str, Any] = {"date": self.date.isoformat(), "value": self.value}
        for f in fields(self):
            if f.name in ("date", "value"):
                continue
            v = getattr(self, f.name)
            if v is not None:
                data[f.name] = v
        return data


INDICATOR_COLUMNS = [f.name for f in fields(IndicatorPoint)][2:]


@dataclass
class IndicatorConfig:
    """Which chart indicators to compute, and their parameters.

    The moving-average toggles carry their period in the name (``sma20`` is a
    20-period SMA), matching the chart fields they fill.
    """
    sma20: bool = True
    sma50: bool = True
    ema12: bool = True
    ema26: bool = True
    bollinger: bool = True
    rsi: bool = True
    macd: bool = True
    bollinger_period: int = 20
    bollinger_std_dev: float = 2.0
    rsi_period: int = 14
    macd_params: tuple[int, int, int] = (12, 26, 9)

    TOGGLES = ("sma20", "sma50", "ema12", "ema26", "bollinger", "rsi", "macd")

    @staticmethod
    def from_flags(flags: Iterable[str], **params: Any) -> "IndicatorConfig":
        """Build a config that enables only the named indicators.

        Args:
            flags: Toggle names, e.g. ``["sma20", "rsi"]``
            **params: Overrides for the parameter fields

        Raises:
            ValueError: If a flag is not a known toggle
        """
        enabled = set(flags)
        unknown = enabled - set(IndicatorConfig.TOGGLES)
        if unknown:
            raise ValueError(f"Unknown indicators: {sorted(unknown)}")

        toggles = {name: name in enabled for name in IndicatorConfig.TOGGLES}
        return IndicatorConfig(**toggles, **params)

    def enabled(self) -> list[str]:
        return [name for name in self.TOGGLES if getattr(self, name)]


class IndicatorCalculator:
    """Calculates the enabled chart indicators over one price series.

    Column names match the IndicatorPoint fields: sma20, ema12,
    bollinger_upper, rsi, macd_signal, ...
    """

    def __init__(self, config: Optional[IndicatorConfig] = None):
        self.config = config or IndicatorConfig()

    def calculate_all(self, series: PriceInput) -> pd.DataFrame:
        """Compute every enabled indicator.

        Args:
            series: PricePoint sequence or price DataFrame

        Returns:
            Date-indexed DataFrame with 'value' plus one column per field
        """
        df = to_price_frame(series)
        result = df[["value"]].copy()

        if self.config.sma20:
            result["sma20"] = MAIndicator(period=20)(df).values
        if self.config.sma50:
            result["sma50"] = MAIndicator(period=50)(df).values
        if self.config.ema12:
            result["ema12"] = EMAIndicator(period=12)(df).values
        if self.config.ema26:
            result["ema26"] = EMAIndicator(period=26)(df).values
        if self.config.bollinger:
            self._add_bollinger(df, result)
        if self.config.rsi:
            result["rsi"] = RSIIndicator(period=self.config.rsi_period)(df).values
        if self.config.macd:
            self._add_macd(df, result)

        return result

    def apply(self, series: PriceInput) -> list[IndicatorPoint]:
        """Compute enabled indicators as a list of IndicatorPoint rows."""
        table = self.calculate_all(series)
        columns = [c for c in INDICATOR_COLUMNS if c in table.columns]

        points = []
        for ts, row in zip(table.index, table.itertuples(index=False)):
            row_values = row._asdict()
            extras = {
                col: (None if np.isnan(row_values[col]) else float(row_values[col]))
                for col in columns
            }
            points.append(IndicatorPoint(date=ts.date(), value=float(row_values["value"]), **extras))
        return points

    def _add_bollinger(self, df: pd.DataFrame, result: pd.DataFrame) -> None:
        boll = BollingerBandsIndicator(
            period=self.config.bollinger_period,
            std_dev_multiplier=self.config.bollinger_std_dev
        )
        ind_result = boll(df)
        result["bollinger_upper"] = ind_result.params["upper"]
        result["bollinger_middle"] = ind_result.params["middle"]
        result["bollinger_lower"] = ind_result.params["lower"]

    def _add_macd(self, df: pd.DataFrame, result: pd.DataFrame) -> None:
        fast, slow, signal = self.config.macd_params
        ind_result = MACDIndicator(
            fast_period=fast, slow_period=slow, signal_period=signal
        )(df)
        result["macd"] = ind_result.params["macd"]
        result["macd_signal"] = ind_result.params["signal"]
        result["macd_histogram"] = ind_result.params["histogram"]


def apply_indicators(
    series: PriceInput,
    config: Optional[IndicatorConfig] = None
) -> list[IndicatorPoint]:
    """Chart-ready indicator series aligned 1:1 with the input."""
    return IndicatorCalculator(config).apply(series)
