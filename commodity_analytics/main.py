"""Commodity analytics command-line entry point."""
import argparse
import json
import sys
from typing import Optional

import pandas as pd

from commodity_analytics.anomaly.detector import format_expected_range
from commodity_analytics.forecast.price_predictor import InsufficientDataError
from commodity_analytics.series import MalformedInputError, PricePoint, aggregate_daily, validate_period
from commodity_analytics.services.analytics_service import AnalyticsService
from commodity_analytics.services.settings import AnalyticsSettings, load_settings
from commodity_analytics.utils.config import Config, ConfigError
from commodity_analytics.utils.logger import setup_logger, get_logger


def init_system(config_path: Optional[str] = None):
    """Load configuration, set up logging and build the service.

    Args:
        config_path: YAML config path; None uses built-in defaults

    Returns:
        (settings, service)
    """
    config = Config(config_path) if config_path else None
    settings = load_settings(config)

    try:
        setup_logger(settings.logging)
    except ValueError as e:
        raise ConfigError(f"Invalid logging configuration: {e}")
    logger = get_logger(__name__)
    logger.info(f"Configuration: {config_path or 'defaults'}")

    return settings, AnalyticsService(settings)


def load_prices(path: str) -> list[PricePoint]:
    """Read a ``date,value`` CSV, averaging quotes that share a date.

    Raises:
        MalformedInputError: Missing columns or unparseable content
    """
    try:
        frame = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise MalformedInputError(f"Cannot parse {path}: {e}")

    frame.columns = [str(c).strip().lower() for c in frame.columns]
    if not {"date", "value"}.issubset(frame.columns):
        raise MalformedInputError(f"{path} needs 'date' and 'value' columns")

    return aggregate_daily(frame[["date", "value"]])


def _anomaly_dicts(anomalies, currency: str) -> list[dict]:
    rows = []
    for anomaly in anomalies:
        row = anomaly.to_dict()
        row["expected_range_text"] = format_expected_range(anomaly.expected_range, currency)
        rows.append(row)
    return rows


def _emit(document: dict) -> None:
    print(json.dumps(document, indent=2, ensure_ascii=False))


def cmd_analyze(args, settings: AnalyticsSettings, service: AnalyticsService) -> int:
    """Indicators, anomalies and forecast for one price file."""
    points = load_prices(args.prices)
    report = service.analyze(points, commodity=args.commodity, horizon=args.horizon)

    document = report.to_dict(indicator_tail=settings.service.indicator_tail)
    document["anomalies"] = _anomaly_dicts(report.anomalies, args.currency)
    _emit(document)
    return 0


def cmd_forecast(args, settings: AnalyticsSettings, service: AnalyticsService) -> int:
    """Forecasts for several horizons."""
    horizons = [validate_period(h, "horizon") for h in args.horizons or settings.forecast.horizons]
    points = load_prices(args.prices)

    document = {"commodity": args.commodity, "observations": len(points), "forecasts": {}}
    required = settings.forecast.min_data_points
    if len(points) < required:
        document["forecast_error"] = InsufficientDataError(required, len(points)).to_dict()
        _emit(document)
        return 0

    forecasts = service.forecast_horizons(points, horizons, commodity=args.commodity)
    document["forecasts"] = {str(h): p.to_dict() for h, p in forecasts.items()}
    _emit(document)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commodity_analytics",
        description="Commodity price analytics: indicators, anomalies and forecasts"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("prices", help="CSV file with date,value columns")
    common.add_argument("--config", default=None, help="YAML config file (defaults if omitted)")
    common.add_argument("--commodity", default="", help="Commodity name used in logs and cache keys")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # analyze
    analyze_parser = subparsers.add_parser(
        "analyze", parents=[common], help="Indicators, anomalies and forecast"
    )
    analyze_parser.add_argument("--horizon", type=int, default=7, help="Forecast horizon in days")
    analyze_parser.add_argument("--currency", default="R$", help="Currency symbol for ranges")
    analyze_parser.set_defaults(func=cmd_analyze)

    # forecast
    forecast_parser = subparsers.add_parser(
        "forecast", parents=[common], help="Forecasts for several horizons"
    )
    forecast_parser.add_argument(
        "--horizons", type=int, nargs="+", help="Horizons in days (default from config)"
    )
    forecast_parser.set_defaults(func=cmd_forecast)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings, service = init_system(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logger = get_logger(__name__)
    try:
        return args.func(args, settings, service)
    except (MalformedInputError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
