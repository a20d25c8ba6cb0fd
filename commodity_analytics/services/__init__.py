"""Calling layer: configuration mapping, result cache and analytics facade."""

from .analysis_cache import AnalysisCache, config_fingerprint, series_fingerprint
from .analytics_service import AnalysisReport, AnalyticsService, momentum_signals
from .settings import AnalyticsSettings, LoggingOptions, ServiceOptions, load_settings

__all__ = [
    "AnalysisCache",
    "config_fingerprint",
    "series_fingerprint",
    "AnalysisReport",
    "AnalyticsService",
    "momentum_signals",
    "AnalyticsSettings",
    "LoggingOptions",
    "ServiceOptions",
    "load_settings",
]
