"""Statistical anomaly detection for daily price series."""

from .detector import (
    AnomalyDetector,
    AnomalyDetectorConfig,
    AnomalySeverity,
    AnomalyType,
    DetectedAnomaly,
    SeverityThresholds,
    detect_anomalies,
    format_expected_range,
)

__all__ = [
    "AnomalyDetector",
    "AnomalyDetectorConfig",
    "AnomalySeverity",
    "AnomalyType",
    "DetectedAnomaly",
    "SeverityThresholds",
    "detect_anomalies",
    "format_expected_range",
]
