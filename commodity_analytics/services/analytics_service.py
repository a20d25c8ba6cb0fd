"""Analytics service: the calling layer around the engine.

Guards input size, runs the three independent analyses (indicators,
anomalies, forecast) concurrently and caches their results per commodity
and input fingerprint.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import pandas as pd

from commodity_analytics.anomaly.detector import AnomalyDetector, DetectedAnomaly
from commodity_analytics.forecast.price_predictor import (
    InsufficientDataError,
    PricePrediction,
    PricePredictor,
)
from commodity_analytics.indicators.indicator_calculator import IndicatorCalculator, IndicatorPoint
from commodity_analytics.indicators.momentum_indicators import interpret_macd, interpret_rsi
from commodity_analytics.series import MalformedInputError, PriceInput, to_price_frame, validate_period
from commodity_analytics.utils.logger import get_logger
from .analysis_cache import AnalysisCache, config_fingerprint, series_fingerprint
from .settings import AnalyticsSettings

logger = get_logger(__name__)


@dataclass
class AnalysisReport:
    """Combined output of one analysis run.

    Attributes:
        commodity: Commodity name supplied by the caller
        observations: Length of the analyzed series
        indicators: Chart rows aligned with the input
        anomalies: Anomalies at the latest observation
        forecast: Forecast, or None when history is too short
        forecast_error: ``{"code", "required", "available"}`` when the
            forecast was not possible
        signals: RSI and MACD readings at the latest observation
    """
    commodity: str
    observations: int
    indicators: list[IndicatorPoint] = field(default_factory=list)
    anomalies: list[DetectedAnomaly] = field(default_factory=list)
    forecast: Optional[PricePrediction] = None
    forecast_error: Optional[dict[str, Any]] = None
    signals: dict[str, str] = field(default_factory=dict)

    def to_dict(self, indicator_tail: int = 0) -> dict[str, Any]:
        """Serialize; ``indicator_tail`` > 0 keeps only the last rows."""
        rows = self.indicators[-indicator_tail:] if indicator_tail > 0 else self.indicators
        return {
            "commodity": self.commodity,
            "observations": self.observations,
            "indicators": [p.to_dict() for p in rows],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "forecast": self.forecast.to_dict() if self.forecast else None,
            "forecast_error": self.forecast_error,
            "signals": dict(self.signals),
        }


class AnalyticsService:
    """Facade over the indicator calculator, anomaly detector and forecaster.

    Returned objects may come from the cache and are shared between callers;
    treat them as read-only.

    Example:
        service = AnalyticsService(load_settings(config))
        report = service.analyze(points, commodity="soja", horizon=14)
    """

    def __init__(
        self,
        settings: Optional[AnalyticsSettings] = None,
        cache: Optional[AnalysisCache] = None,
    ):
        self.settings = settings or AnalyticsSettings()
        options = self.settings.service
        self.cache = cache if cache is not None else AnalysisCache(
            ttl_seconds=options.cache_ttl_seconds,
            max_entries=options.cache_max_entries,
        )
        self.calculator = IndicatorCalculator(self.settings.indicators)
        self.detector = AnomalyDetector(self.settings.anomaly)
        self.predictor = PricePredictor(self.settings.forecast)
        self._config_keys = {
            "indicators": config_fingerprint(self.settings.indicators),
            "anomalies": config_fingerprint(self.settings.anomaly),
            "forecast": config_fingerprint(self.settings.forecast),
        }

    def prepare(self, series: PriceInput) -> pd.DataFrame:
        """Validate and normalize a series, enforcing the size limit.

        Raises:
            MalformedInputError: Malformed or oversized series
        """
        df = to_price_frame(series)
        limit = self.settings.service.max_series_length
        if len(df) > limit:
            raise MalformedInputError(
                f"Series has {len(df)} observations, limit is {limit}"
            )
        return df

    def _key(self, commodity: str, kind: str, fingerprint: str, *params) -> tuple:
        return self.cache.make_key(commodity, kind, fingerprint, self._config_keys[kind], *params)

    def indicators(self, series: PriceInput, commodity: str = "") -> list[IndicatorPoint]:
        df = self.prepare(series)
        key = self._key(commodity, "indicators", series_fingerprint(df))
        return self.cache.get_or_compute(key, lambda: self.calculator.apply(df))

    def anomalies(self, series: PriceInput, commodity: str = "") -> list[DetectedAnomaly]:
        df = self.prepare(series)
        key = self._key(commodity, "anomalies", series_fingerprint(df))
        return self.cache.get_or_compute(key, lambda: self.detector.detect(df))

    def forecast(self, series: PriceInput, horizon: int = 7, commodity: str = "") -> PricePrediction:
        """Forecast one horizon.

        Raises:
            MalformedInputError: Malformed series or horizon < 1
            InsufficientDataError: Too few observations
        """
        df = self.prepare(series)
        key = self._key(commodity, "forecast", series_fingerprint(df), horizon)
        return self.cache.get_or_compute(key, lambda: self.predictor.predict(df, horizon))

    def forecast_horizons(
        self,
        series: PriceInput,
        horizons: Optional[Iterable[int]] = None,
        commodity: str = ""
    ) -> dict[int, PricePrediction]:
        """Forecast several horizons.

        Invalid horizons and horizons without enough history are logged and
        skipped; a malformed series raises.
        """
        df = self.prepare(series)
        fingerprint = series_fingerprint(df)
        results = {}
        for horizon in horizons or self.settings.forecast.horizons:
            try:
                validate_period(horizon, "horizon")
            except MalformedInputError as e:
                logger.warning(f"[{commodity or '-'}] Skipping horizon {horizon}: {e}")
                continue

            key = self._key(commodity, "forecast", fingerprint, horizon)
            try:
                results[horizon] = self.cache.get_or_compute(
                    key, lambda h=horizon: self.predictor.predict(df, h)
                )
            except InsufficientDataError as e:
                logger.warning(f"[{commodity or '-'}] Skipping horizon {horizon}: {e}")
        return results

    def analyze(self, series: PriceInput, commodity: str = "", horizon: int = 7) -> AnalysisReport:
        """Run indicators, anomaly detection and forecast concurrently.

        An InsufficientDataError from the forecaster is reported in
        ``forecast_error``; any other failure propagates.
        """
        df = self.prepare(series)
        logger.info(f"[{commodity or '-'}] Analyzing {len(df)} observations, horizon {horizon}")

        with ThreadPoolExecutor(max_workers=self.settings.service.max_workers) as pool:
            indicators_future = pool.submit(self.indicators, df, commodity)
            anomalies_future = pool.submit(self.anomalies, df, commodity)
            forecast_future = pool.submit(self.forecast, df, horizon, commodity)

            report = AnalysisReport(
                commodity=commodity,
                observations=len(df),
                indicators=indicators_future.result(),
                anomalies=anomalies_future.result(),
            )
            try:
                report.forecast = forecast_future.result()
            except InsufficientDataError as e:
                logger.info(f"[{commodity or '-'}] No forecast: {e}")
                report.forecast_error = e.to_dict()

        report.signals = momentum_signals(report.indicators)
        if report.anomalies:
            logger.info(
                f"[{commodity or '-'}] {len(report.anomalies)} anomalies: "
                + ", ".join(a.type.value for a in report.anomalies)
            )
        return report


def momentum_signals(indicators: list[IndicatorPoint]) -> dict[str, str]:
    """RSI and MACD readings of the latest chart row.

    A reading is left out while its indicator is disabled or warming up.
    """
    if not indicators:
        return {}
    latest = indicators[-1]
    signals = {}
    if latest.rsi is not None:
        signals["rsi"] = interpret_rsi(latest.rsi)
    if latest.macd is not None and latest.macd_signal is not None:
        signals["macd"] = interpret_macd(latest.macd, latest.macd_signal)
    return signals
