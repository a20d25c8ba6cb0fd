"""Map YAML configuration onto engine and service settings."""

from dataclasses import dataclass, field
from typing import Any, Optional

from commodity_analytics.anomaly.detector import AnomalyDetectorConfig, SeverityThresholds
from commodity_analytics.forecast.price_predictor import ForecastConfig
from commodity_analytics.indicators.indicator_calculator import IndicatorConfig
from commodity_analytics.utils.config import Config, ConfigError
from commodity_analytics.utils.logger import LoggingOptions


@dataclass
class ServiceOptions:
    """Calling-layer options.

    Attributes:
        max_series_length: Longest series accepted by the service
        max_workers: Threads used to compute analyses concurrently
        cache_ttl_seconds: Lifetime of a cached analysis
        cache_max_entries: Cache capacity
        indicator_tail: Indicator rows included in reports (0 for all)
    """
    max_series_length: int = 10000
    max_workers: int = 3
    cache_ttl_seconds: float = 300
    cache_max_entries: int = 256
    indicator_tail: int = 30


@dataclass
class AnalyticsSettings:
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    anomaly: AnomalyDetectorConfig = field(default_factory=AnomalyDetectorConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    service: ServiceOptions = field(default_factory=ServiceOptions)
    logging: LoggingOptions = field(default_factory=LoggingOptions)


def _thresholds(raw: Any, key: str) -> SeverityThresholds:
    if not isinstance(raw, dict):
        raise ConfigError(f"'{key}' must be a mapping with low/medium/high")
    try:
        return SeverityThresholds(
            low=float(raw["low"]),
            medium=float(raw["medium"]),
            high=float(raw["high"]),
        )
    except KeyError as e:
        raise ConfigError(f"'{key}' is missing {e}")


def _indicator_config(section: dict) -> IndicatorConfig:
    params = {
        k: section[k]
        for k in ("bollinger_period", "bollinger_std_dev", "rsi_period")
        if k in section
    }
    if "macd" in section:
        macd = section["macd"] or {}
        params["macd_params"] = (
            int(macd.get("fast", 12)),
            int(macd.get("slow", 26)),
            int(macd.get("signal", 9)),
        )

    if "enabled" in section:
        return IndicatorConfig.from_flags(section["enabled"] or [], **params)
    return IndicatorConfig(**params)


def _anomaly_config(section: dict) -> AnomalyDetectorConfig:
    params: dict[str, Any] = {
        k: section[k]
        for k in ("min_data_points", "baseline_window", "volatility_threshold", "zero_variance_tolerance")
        if k in section
    }
    if "z_score" in section:
        params["z_score_thresholds"] = _thresholds(section["z_score"], "anomaly.z_score")
    if "volatility_ratio" in section:
        params["volatility_ratio_thresholds"] = _thresholds(
            section["volatility_ratio"], "anomaly.volatility_ratio"
        )
    if section.get("daily_change") is not None:
        params["daily_change_thresholds"] = _thresholds(section["daily_change"], "anomaly.daily_change")
    return AnomalyDetectorConfig(**params)


def _forecast_config(section: dict) -> ForecastConfig:
    params = dict(section)
    if "horizons" in params:
        params["horizons"] = tuple(params["horizons"])
    return ForecastConfig(**params)


def _service_options(section: dict) -> ServiceOptions:
    params = {k: v for k, v in section.items() if k != "cache"}
    cache = section.get("cache") or {}
    if "ttl_seconds" in cache:
        params["cache_ttl_seconds"] = cache["ttl_seconds"]
    if "max_entries" in cache:
        params["cache_max_entries"] = cache["max_entries"]
    return ServiceOptions(**params)


def load_settings(config: Optional[Config] = None) -> AnalyticsSettings:
    """Build settings from a loaded config; absent keys keep their defaults.

    Args:
        config: Loaded YAML config, or None for all defaults

    Returns:
        AnalyticsSettings

    Raises:
        ConfigError: Unknown keys or invalid values in any section
    """
    if config is None:
        return AnalyticsSettings()

    try:
        return AnalyticsSettings(
            indicators=_indicator_config(config.section("indicators")),
            anomaly=_anomaly_config(config.section("anomaly")),
            forecast=_forecast_config(config.section("forecast")),
            service=_service_options(config.section("service")),
            logging=LoggingOptions(**config.section("logging")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration in {config.path}: {e}")
