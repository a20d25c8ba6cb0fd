"""Price anomaly detection.

Flags statistically unusual observations in a daily price series:
- Price spikes and drops (z-score against a rolling baseline)
- Excess volatility (coefficient of variation of the baseline window)
- New highs and lows over the whole available history
- Optional: extreme day-over-day moves

The detector is stateless; running it twice on the same series returns the
same records. Deduplicating alerts across runs is left to the caller.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

import numpy as np

from commodity_analytics.series import (
    MalformedInputError,
    PriceInput,
    PriceRange,
    to_price_frame,
    validate_period,
)
from commodity_analytics.utils.logger import get_logger

logger = get_logger(__name__)


class AnomalyType(Enum):
    """Kind of anomaly detected."""
    PRICE_SPIKE = "PRICE_SPIKE"
    PRICE_DROP = "PRICE_DROP"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"
    HISTORICAL_HIGH = "HISTORICAL_HIGH"
    HISTORICAL_LOW = "HISTORICAL_LOW"


class AnomalySeverity(Enum):
    """Anomaly severity tiers."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class SeverityThresholds:
    """Magnitude boundaries for LOW/MEDIUM/HIGH severity.

    A magnitude below ``low`` is not an anomaly.
    """
    low: float
    medium: float
    high: float

    def __post_init__(self):
        if not (0 <= self.low <= self.medium <= self.high):
            raise MalformedInputError(
                f"Severity thresholds must satisfy 0 <= low <= medium <= high, got {self}"
            )

    def classify(self, magnitude: float) -> Optional[AnomalySeverity]:
        """Map a magnitude (sign ignored) to a severity, or None."""
        magnitude = abs(magnitude)
        if magnitude >= self.high:
            return AnomalySeverity.HIGH
        if magnitude >= self.medium:
            return AnomalySeverity.MEDIUM
        if magnitude >= self.low:
            return AnomalySeverity.LOW
        return None


@dataclass
class AnomalyDetectorConfig:
    """Detector parameters.

    Attributes:
        min_data_points: History needed before anything is flagged
        baseline_window: Trailing observations (evaluation point included)
            used for the baseline mean and standard deviation
        z_score_thresholds: |z| boundaries for spike/drop severity; ``low``
            is also the spike/drop trigger
        volatility_threshold: Coefficient of variation (sigma/mean) above
            which a window counts as highly volatile
        volatility_ratio_thresholds: Severity boundaries for
            ``cv / volatility_threshold``
        daily_change_thresholds: Day-over-day move in percent that flags a
            spike/drop when no z-score rule fired; None disables the check
        zero_variance_tolerance: Sigma at or below this fraction of the mean
            is treated as zero
    """
    min_data_points: int = 14
    baseline_window: int = 30
    z_score_thresholds: SeverityThresholds = field(
        default_factory=lambda: SeverityThresholds(low=2.0, medium=3.0, high=4.0)
    )
    volatility_threshold: float = 0.08
    volatility_ratio_thresholds: SeverityThresholds = field(
        default_factory=lambda: SeverityThresholds(low=1.0, medium=1.5, high=2.0)
    )
    daily_change_thresholds: Optional[SeverityThresholds] = None
    zero_variance_tolerance: float = 1e-9

    def __post_init__(self):
        validate_period(self.min_data_points, "min_data_points")
        validate_period(self.baseline_window, "baseline_window")
        if self.baseline_window < 2:
            raise MalformedInputError("baseline_window must be at least 2")
        if self.volatility_threshold <= 0:
            raise MalformedInputError("volatility_threshold must be positive")


@dataclass(frozen=True)
class DetectedAnomaly:
    """A single anomaly record.

    Attributes:
        type: Anomaly kind
        severity: LOW, MEDIUM or HIGH
        description: Human-readable summary
        detected_value: Raw price at the evaluated point
        expected_range: Baseline mean +/- 2 sigma
        deviation_percent: Signed distance from the baseline mean, in percent
        date: Date of the evaluated point
    """
    type: AnomalyType
    severity: AnomalySeverity
    description: str
    detected_value: float
    expected_range: PriceRange
    deviation_percent: float
    date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "detected_value": self.detected_value,
            "expected_range": {"low": self.expected_range.low, "high": self.expected_range.high},
            "deviation_percent": self.deviation_percent,
            "date": self.date.isoformat(),
        }


@dataclass(frozen=True)
class _Baseline:
    mean: float
    sigma: float
    size: int

    @property
    def expected_range(self) -> PriceRange:
        return PriceRange(self.mean - 2 * self.sigma, self.mean + 2 * self.sigma)

    @property
    def coefficient_of_variation(self) -> float:
        return self.sigma / abs(self.mean) if self.mean != 0 else 0.0


def _percent_change(value: float, reference: float) -> float:
    if reference == 0:
        return 0.0
    return (value - reference) / reference * 100


class AnomalyDetector:
    """Rolling-baseline anomaly detector.

    For an evaluation point the baseline is the trailing ``baseline_window``
    observations ending at (and including) that point. Classification is
    first-match-wins:

    1. HIGH_VOLATILITY: cv above the threshold while |z| stays below the
       spike trigger (a noisy window without a single extreme point)
    2. PRICE_SPIKE: z >= trigger
    3. PRICE_DROP: z <= -trigger
    4. Optional day-over-day move (spike/drop)

    A zero sigma disables all of the above. Historical extremes are checked
    independently against the whole history up to the point.

    Usage:
        detector = AnomalyDetector()
        anomalies = detector.detect(series)              # latest point
        anomalies = detector.evaluate(series, position=-3)
        anomalies = detector.scan(series, start=-10)     # every point of a suffix
    """

    def __init__(self, config: Optional[AnomalyDetectorConfig] = None):
        self.config = config or AnomalyDetectorConfig()

    def detect(self, series: PriceInput) -> list[DetectedAnomaly]:
        """Evaluate the most recent observation."""
        return self.evaluate(series, position=-1)

    def evaluate(self, series: PriceInput, position: int = -1) -> list[DetectedAnomaly]:
        """Evaluate a single observation using the history up to it.

        Args:
            series: Daily price series, ascending by date
            position: Index of the observation; negative counts from the end

        Returns:
            Anomaly records for that point (empty if history is too short)

        Raises:
            MalformedInputError: If the series is malformed or position is
                out of range
        """
        df = to_price_frame(series)
        n = len(df)
        if n == 0:
            return []

        index = position + n if position < 0 else position
        if not 0 <= index < n:
            raise MalformedInputError(f"position {position} out of range for {n} observations")

        values = df["value"].to_numpy(dtype=float)
        return self._evaluate_at(values, index, df.index[index].date())

    def scan(self, series: PriceInput, start: Optional[int] = None) -> list[DetectedAnomaly]:
        """Evaluate every observation from ``start`` to the end.

        Args:
            series: Daily price series, ascending by date
            start: First index to evaluate; negative counts from the end;
                None starts at the first point with enough history

        Returns:
            Anomaly records in chronological order
        """
        df = to_price_frame(series)
        n = len(df)
        if n == 0:
            return []

        first = self.config.min_data_points - 1
        if start is not None:
            begin = start + n if start < 0 else start
            first = max(first, begin, 0)

        values = df["value"].to_numpy(dtype=float)
        anomalies: list[DetectedAnomaly] = []
        for index in range(first, n):
            anomalies.extend(self._evaluate_at(values, index, df.index[index].date()))
        return anomalies

    def _baseline(self, history: np.ndarray) -> _Baseline:
        window = history[-self.config.baseline_window:]
        mean = float(window.mean())
        sigma = float(window.std())  # population (ddof=0)
        if sigma <= self.config.zero_variance_tolerance * abs(mean):
            sigma = 0.0
        return _Baseline(mean=mean, sigma=sigma, size=len(window))

    def _evaluate_at(self, values: np.ndarray, index: int, point_date: date) -> list[DetectedAnomaly]:
        history = values[:index + 1]
        if len(history) < self.config.min_data_points:
            logger.debug(
                f"Skipping {point_date}: {len(history)} observations, "
                f"need {self.config.min_data_points}"
            )
            return []

        value = float(history[-1])
        baseline = self._baseline(history)
        deviation = _percent_change(value, baseline.mean)

        def record(kind: AnomalyType, severity: AnomalySeverity, description: str) -> DetectedAnomaly:
            return DetectedAnomaly(
                type=kind,
                severity=severity,
                description=description,
                detected_value=value,
                expected_range=baseline.expected_range,
                deviation_percent=deviation,
                date=point_date,
            )

        anomalies: list[DetectedAnomaly] = []
        if baseline.sigma > 0:
            classified = self._classify_deviation(history, value, baseline, record)
            if classified is not None:
                anomalies.append(classified)

        extreme = self._classify_extreme(history, value, record)
        if extreme is not None:
            anomalies.append(extreme)

        return anomalies

    def _classify_deviation(self, history, value, baseline, record) -> Optional[DetectedAnomaly]:
        cfg = self.config
        z = (value - baseline.mean) / baseline.sigma
        trigger = cfg.z_score_thresholds.low

        cv = baseline.coefficient_of_variation
        if cv > cfg.volatility_threshold and abs(z) < trigger:
            severity = cfg.volatility_ratio_thresholds.classify(cv / cfg.volatility_threshold)
            if severity is not None:
                intensity = "well " if severity is AnomalySeverity.HIGH else ""
                return record(
                    AnomalyType.HIGH_VOLATILITY,
                    severity,
                    f"Volatility {intensity}above normal "
                    f"({cv * 100:.1f}% over {baseline.size} days)",
                )

        if z >= trigger or z <= -trigger:
            severity = cfg.z_score_thresholds.classify(z)
            intensity = "far " if severity is AnomalySeverity.HIGH else ""
            if z > 0:
                return record(
                    AnomalyType.PRICE_SPIKE,
                    severity,
                    f"Price {intensity}above the {baseline.size}-day average ({z:.1f} sigma)",
                )
            return record(
                AnomalyType.PRICE_DROP,
                severity,
                f"Price {intensity}below the {baseline.size}-day average ({abs(z):.1f} sigma)",
            )

        if cfg.daily_change_thresholds is not None and len(history) >= 2:
            previous = float(history[-2])
            if previous > 0:
                change = _percent_change(value, previous)
                severity = cfg.daily_change_thresholds.classify(change)
                if severity is not None:
                    if change > 0:
                        return record(
                            AnomalyType.PRICE_SPIKE,
                            severity,
                            f"Price rose {change:.1f}% in one day",
                        )
                    return record(
                        AnomalyType.PRICE_DROP,
                        severity,
                        f"Price fell {abs(change):.1f}% in one day",
                    )

        return None

    @staticmethod
    def _classify_extreme(history, value, record) -> Optional[DetectedAnomaly]:
        if value >= history.max():
            return record(
                AnomalyType.HISTORICAL_HIGH,
                AnomalySeverity.MEDIUM,
                "Price reached the highest level of the period",
            )
        if value <= history.min():
            return record(
                AnomalyType.HISTORICAL_LOW,
                AnomalySeverity.MEDIUM,
                "Price reached the lowest level of the period",
            )
        return None


def detect_anomalies(
    series: PriceInput,
    config: Optional[AnomalyDetectorConfig] = None
) -> list[DetectedAnomaly]:
    """Detect anomalies at the most recent observation of a daily series.

    Series shorter than ``config.min_data_points`` (14) yield an empty list.
    """
    return AnomalyDetector(config).detect(series)


def format_expected_range(expected_range: PriceRange, currency: str = "R$") -> str:
    """Render an expected range as ``R$ 95.00 - R$ 105.00``."""
    return f"{currency} {expected_range.low:.2f} - {currency} {expected_range.high:.2f}"
