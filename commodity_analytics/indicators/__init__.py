"""Technical indicator calculation module.

Provides chart indicators for commodity price series:
- Moving averages: SMA, EMA
- Volatility bands: Bollinger
- Momentum indicators: RSI, MACD
- Unified calculator producing chart-ready rows
"""

from .base_indicator import BaseIndicator, IndicatorResult
from .trend_indicators import (
    MAIndicator,
    EMAIndicator,
    simple_moving_average,
    exponential_moving_average,
)
from .volatility_indicators import BollingerBands, BollingerBandsIndicator, bollinger_bands
from .momentum_indicators import (
    RSIIndicator,
    MACDIndicator,
    MACDResult,
    rsi,
    macd,
    interpret_rsi,
    interpret_macd,
)
from .indicator_calculator import (
    IndicatorCalculator,
    IndicatorConfig,
    IndicatorPoint,
    apply_indicators,
)

__all__ = [
    # Base
    "BaseIndicator",
    "IndicatorResult",
    # Moving averages
    "MAIndicator",
    "EMAIndicator",
    "simple_moving_average",
    "exponential_moving_average",
    # Volatility
    "BollingerBands",
    "BollingerBandsIndicator",
    "bollinger_bands",
    # Momentum
    "RSIIndicator",
    "MACDIndicator",
    "MACDResult",
    "rsi",
    "macd",
    "interpret_rsi",
    "interpret_macd",
    # Calculator
    "IndicatorCalculator",
    "IndicatorConfig",
    "IndicatorPoint",
    "apply_indicators",
]
