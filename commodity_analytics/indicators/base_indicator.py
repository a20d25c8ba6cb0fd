"""Base class for all technical indicators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from commodity_analytics.series import (
    MalformedInputError,
    PriceInput,
    check_price_frame,
    to_optional_list,
    to_price_frame,
)


@dataclass
class IndicatorResult:
    """Container for indicator calculation results.

    Attributes:
        name: Indicator identifier (e.g., 'SMA_20', 'MACD_12_26_9')
        values: Indicator values aligned with the input, NaN where absent
        params: Parameters used for calculation plus any secondary series
    """
    name: str
    values: pd.Series
    params: dict = field(default_factory=dict)

    def to_list(self) -> list[Optional[float]]:
        """Primary values as a list with ``None`` for warm-up positions."""
        return to_optional_list(self.values)


class BaseIndicator(ABC):
    """Abstract base class for all technical indicators.

    Subclasses must implement:
        - name: Property returning indicator name
        - warmup: Property returning observations needed for the first value
        - calculate: Method performing the actual calculation

    Inputs shorter than the warm-up produce an all-NaN result of the same
    length; only malformed input raises.

    Usage:
        indicator = ConcreteIndicator()
        result = indicator(prices)  # Normalizes, validates and calculates
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return indicator name."""
        pass

    @property
    @abstractmethod
    def warmup(self) -> int:
        """Return number of observations needed before the first value."""
        pass

    @property
    def required_columns(self) -> list[str]:
        """Return list of required DataFrame columns."""
        return ["value"]

    @abstractmethod
    def calculate(self, df: pd.DataFrame) -> IndicatorResult:
        """Calculate indicator values.

        Args:
            df: Date-indexed price frame with a 'value' column

        Returns:
            IndicatorResult with calculated values
        """
        pass

    def validate_data(self, df: pd.DataFrame) -> None:
        """Validate a price frame has required columns and clean values.

        Args:
            df: Input DataFrame to validate

        Raises:
            MalformedInputError: If columns are missing, dates unsorted or
                values non-finite
        """
        missing = set(self.required_columns) - set(df.columns)
        if missing:
            raise MalformedInputError(f"Missing required columns: {missing}")
        check_price_frame(df)

    def __call__(self, series: PriceInput) -> IndicatorResult:
        """Normalize input, validate it and calculate the indicator.

        Args:
            series: PricePoint sequence or price DataFrame

        Returns:
            IndicatorResult with calculated values
        """
        df = to_price_frame(series)
        self.validate_data(df)
        return self.calculate(df)
