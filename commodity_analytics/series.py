"""Price series primitives shared by the analytics modules.

Every engine entry point accepts either a sequence of ``PricePoint`` records
or a DataFrame, and normalizes it through ``to_price_frame``:

- a ``DatetimeIndex`` named ``date``, strictly ascending, no duplicates
- a float ``value`` column with finite values only

Gaps between dates are kept as-is; nothing is interpolated.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, NamedTuple, Optional, Sequence, Union

import numpy as np
import pandas as pd


class MalformedInputError(ValueError):
    """Input violates the engine contract (ordering, finiteness, parameters)."""
    pass


@dataclass(frozen=True)
class PricePoint:
    """A single daily quote.

    Attributes:
        date: Calendar date of the quote
        value: Price in the commodity's quoting unit
    """
    date: date
    value: float


class PriceRange(NamedTuple):
    """Closed price interval, rendered by callers as ``low - high``."""
    low: float
    high: float


PriceInput = Union[Sequence[PricePoint], pd.DataFrame]


@dataclass(frozen=True)
class DefinedRegion:
    """Half-open index range ``[start, stop)`` where an indicator has values.

    Indicator arrays use NaN for absent positions. Warm-up padding is always
    a leading run, so the defined part of a well-formed array is contiguous.
    """
    start: int
    stop: int

    @classmethod
    def of(cls, values: np.ndarray) -> "DefinedRegion":
        """Locate the defined region of an indicator array.

        Args:
            values: 1-D float array, NaN where absent

        Returns:
            DefinedRegion; empty (start == stop == len) when nothing is defined

        Raises:
            ValueError: If defined values are interrupted by NaN
        """
        values = np.asarray(values, dtype=float)
        defined = np.flatnonzero(~np.isnan(values))
        if defined.size == 0:
            return cls(len(values), len(values))

        start = int(defined[0])
        stop = int(defined[-1]) + 1
        if stop - start != defined.size:
            raise ValueError("Indicator values are not contiguous")
        return cls(start, stop)

    def __len__(self) -> int:
        return max(0, self.stop - self.start)

    @property
    def is_empty(self) -> bool:
        return self.stop <= self.start

    def slice(self, values: np.ndarray) -> np.ndarray:
        """Return the defined sub-sequence of ``values``."""
        return values[self.start:self.stop]

    def embed(self, region_values: np.ndarray, length: int) -> np.ndarray:
        """Place values computed over this region back into a full-length array.

        Args:
            region_values: Array with ``len(self)`` elements (may hold NaN)
            length: Length of the full index range

        Returns:
            Array of ``length`` elements, NaN outside the region
        """
        out = np.full(length, np.nan)
        out[self.start:self.stop] = region_values
        return out


def validate_period(period: Any, name: str = "period") -> int:
    """Check a window parameter is a positive integer.

    Raises:
        MalformedInputError: For non-integer, zero or negative values
    """
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)):
        raise MalformedInputError(f"{name} must be an integer, got {period!r}")
    if period <= 0:
        raise MalformedInputError(f"{name} must be positive, got {period}")
    return int(period)


def _coerce_values(values: Iterable[Any]) -> np.ndarray:
    try:
        return np.asarray(list(values), dtype=float)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Price values must be numeric: {e}")


def _parse_dates(raw: Any) -> pd.DatetimeIndex:
    try:
        return pd.DatetimeIndex(pd.to_datetime(raw))
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Invalid price dates: {e}")


def _unpack_point(point: Any) -> tuple[Any, Any]:
    if isinstance(point, PricePoint):
        return point.date, point.value
    if isinstance(point, (tuple, list)) and len(point) == 2:
        return point[0], point[1]
    raise MalformedInputError(f"Unsupported price point: {point!r}")


def _frame_from_points(points: Sequence[Any]) -> pd.DataFrame:
    pairs = [_unpack_point(point) for point in points]
    dates = [d for d, _ in pairs]
    values = [v for _, v in pairs]

    index = pd.DatetimeIndex(_parse_dates(dates), name="date")
    return pd.DataFrame({"value": _coerce_values(values)}, index=index)


def _frame_from_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    if "value" not in df.columns:
        raise MalformedInputError("DataFrame is missing required column: 'value'")

    if "date" in df.columns:
        raw_dates = df["date"]
    elif isinstance(df.index, pd.DatetimeIndex):
        raw_dates = df.index
    else:
        raise MalformedInputError("DataFrame needs a 'date' column or a DatetimeIndex")

    index = pd.DatetimeIndex(_parse_dates(raw_dates), name="date")
    return pd.DataFrame({"value": _coerce_values(df["value"])}, index=index)


def check_price_frame(df: pd.DataFrame) -> None:
    """Enforce ordering and finiteness on a normalized price frame.

    Raises:
        MalformedInputError: If dates are unsorted/duplicated or values non-finite
    """
    if df.index.hasnans:
        raise MalformedInputError("Price series contains missing dates")
    if not df.index.is_unique:
        raise MalformedInputError("Price series contains duplicate dates")
    if not df.index.is_monotonic_increasing:
        raise MalformedInputError("Price series must be sorted ascending by date")

    values = df["value"].to_numpy(dtype=float)
    if not np.isfinite(values).all():
        raise MalformedInputError("Price series contains non-finite values")


def to_price_frame(series: PriceInput) -> pd.DataFrame:
    """Normalize caller input into a validated, date-indexed price frame.

    The caller's object is never modified; a new frame is always returned.

    Args:
        series: Sequence of PricePoint (or ``(date, value)`` pairs), or a
            DataFrame with a ``value`` column and dates in a ``date`` column
            or the index

    Returns:
        DataFrame indexed by date with a single float ``value`` column

    Raises:
        MalformedInputError: If the input is unsorted, duplicated or non-finite
    """
    if isinstance(series, pd.DataFrame):
        df = _frame_from_dataframe(series)
    else:
        df = _frame_from_points(series)

    check_price_frame(df)
    return df


def to_price_points(df: pd.DataFrame) -> list[PricePoint]:
    """Convert a price frame back into PricePoint records."""
    return [
        PricePoint(date=ts.date(), value=float(value))
        for ts, value in zip(df.index, df["value"].to_numpy(dtype=float))
    ]


def aggregate_daily(quotes: Union[Iterable[Any], pd.DataFrame]) -> list[PricePoint]:
    """Reduce raw quotes to one mean value per calendar day.

    Quotes from several markets or several times of day share a calendar
    date; the engine expects exactly one value per date, so they are averaged.
    Input order does not matter; the result is sorted ascending.

    Args:
        quotes: ``(date or datetime, value)`` pairs, PricePoint records, or a
            DataFrame with ``date`` and ``value`` columns

    Returns:
        Sorted list of PricePoint, one per calendar day
    """
    if isinstance(quotes, pd.DataFrame):
        if not {"date", "value"}.issubset(quotes.columns):
            raise MalformedInputError("Quotes need 'date' and 'value' columns")
        dates, values = quotes["date"], quotes["value"]
    else:
        pairs = [_unpack_point(q) for q in quotes]
        dates = [d for d, _ in pairs]
        values = [v for _, v in pairs]

    raw = pd.DataFrame({
        "date": _parse_dates(dates),
        "value": _coerce_values(values),
    })
    if raw.empty:
        return []
    if raw["date"].isna().any():
        raise MalformedInputError("Quotes contain missing dates")
    if not np.isfinite(raw["value"].to_numpy()).all():
        raise MalformedInputError("Quotes contain non-finite values")

    daily = raw.groupby(raw["date"].dt.normalize())["value"].mean().sort_index()
    return [PricePoint(date=ts.date(), value=float(v)) for ts, v in daily.items()]


def to_optional_list(values: Union[np.ndarray, pd.Series]) -> list[Optional[float]]:
    """Convert a NaN-padded array into a list with ``None`` for absent values."""
    arr = np.asarray(values, dtype=float)
    return [None if np.isnan(v) else float(v) for v in arr]

