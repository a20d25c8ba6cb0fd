"""Short-horizon price forecaster.

Blends estimators of the price ``h`` observations ahead, in two families:

- trend: ``linear_trend`` (OLS line over the recent window, extrapolated)
  and ``arima`` (ARIMA fitted to the same window)
- smoothing: ``ema_anchor`` (last EMA value carried forward along the OLS
  slope) and ``holt_winters`` (Holt-Winters over the same window)

Short horizons lean on the trend family; longer ones on the smoothing
family. Within a family the estimators share its weight equally. With
``statistical_models`` off only ``linear_trend`` and ``ema_anchor`` blend.
A failed ARIMA fit is replaced by the ``linear_trend`` estimate and a
failed Holt-Winters fit by the ``ema_anchor`` estimate.

Confidence decays with relative volatility and the square root of the
horizon, and so do the bounds.

Usage:
    predictor = PricePredictor()
    prediction = predictor.predict(series, horizon_days=14)
    print(prediction.predicted_price, prediction.bounds)
"""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Optional

import numpy as np

from commodity_analytics.indicators.trend_indicators import ema_values
from commodity_analytics.series import (
    MalformedInputError,
    PriceInput,
    PriceRange,
    to_price_frame,
    validate_period,
)
from commodity_analytics.utils.logger import get_logger
from .trend_analysis import (
    TrendDirection,
    analyze_trends,
    linear_regression,
    project_price,
    rate_of_change,
)
from .statistical_models import EstimatorError, arima_forecast, holt_winters_forecast
from .volatility import VolatilityLevel, analyze_volatility, prediction_bounds

logger = get_logger(__name__)

TREND_MODEL = "linear_trend"
SMOOTHING_MODEL = "ema_anchor"
ARIMA_MODEL = "arima"
HOLT_WINTERS_MODEL = "holt_winters"


class InsufficientDataError(Exception):
    """Too few observations to forecast.

    Attributes:
        code: Stable machine-readable code, ``INSUFFICIENT_DATA``
        required: Minimum observations needed
        available: Observations supplied
    """

    code = "INSUFFICIENT_DATA"

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient data for forecast: {available} observations, need at least {required}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "required": self.required, "available": self.available}


@dataclass
class ForecastConfig:
    """Forecaster parameters.

    Attributes:
        min_data_points: Observations required before forecasting
        trend_window: Trailing observations used for the OLS fit and for
            the volatility statistics
        ema_period: EMA period of the smoothing anchor (shortened to the
            series length when the series is shorter)
        stable_band_percent: |change| at or below this percent is STABLE
        bounds_z_score: Width multiplier of the bounds
        min_confidence: Confidence floor
        max_confidence: Confidence cap
        momentum_period: Observations spanned by the momentum factor
        range_window: Observations used for the range-position factor
        horizons: Default horizons for predict_multiple_horizons
        statistical_models: Blend ARIMA and Holt-Winters in as well
        arima_order: ARIMA (p, d, q)
        seasonal_period: Holt-Winters season length in observations
    """
    min_data_points: int = 7
    trend_window: int = 60
    ema_period: int = 20
    stable_band_percent: float = 0.5
    bounds_z_score: float = 1.28
    min_confidence: float = 0.05
    max_confidence: float = 0.95
    momentum_period: int = 7
    range_window: int = 30
    horizons: tuple[int, ...] = (7, 14, 30, 60, 90)
    statistical_models: bool = True
    arima_order: tuple[int, int, int] = (2, 1, 1)
    seasonal_period: int = 7

    def __post_init__(self):
        validate_period(self.min_data_points, "min_data_points")
        validate_period(self.trend_window, "trend_window")
        validate_period(self.ema_period, "ema_period")
        validate_period(self.momentum_period, "momentum_period")
        validate_period(self.range_window, "range_window")
        if not 0 <= self.min_confidence <= self.max_confidence <= 1:
            raise MalformedInputError("Confidence limits must satisfy 0 <= min <= max <= 1")
        if self.stable_band_percent < 0 or self.bounds_z_score < 0:
            raise MalformedInputError("stable_band_percent and bounds_z_score must be non-negative")
        self.horizons = tuple(validate_period(h, "horizon") for h in self.horizons)
        validate_period(self.seasonal_period, "seasonal_period")
        self.arima_order = tuple(self.arima_order)
        if len(self.arima_order) != 3 or any(
            isinstance(k, bool) or not isinstance(k, int) or k < 0 for k in self.arima_order
        ):
            raise MalformedInputError(f"arima_order must be three non-negative integers, got {self.arima_order}")

    @staticmethod
    def trend_weight(horizon: int) -> float:
        """Weight of the trend estimator in the blend."""
        if horizon <= 7:
            return 0.7
        if horizon <= 30:
            return 0.5
        return 0.3

    def models(self) -> list[str]:
        if self.statistical_models:
            return [TREND_MODEL, SMOOTHING_MODEL, ARIMA_MODEL, HOLT_WINTERS_MODEL]
        return [TREND_MODEL, SMOOTHING_MODEL]

    def model_weights(self, horizon: int) -> dict[str, float]:
        """Blend weight per estimator; the weights sum to 1.

        The trend family gets ``trend_weight(horizon)`` and the smoothing
        family the rest, split equally between the members in use.
        """
        w = self.trend_weight(horizon)
        if not self.statistical_models:
            return {TREND_MODEL: w, SMOOTHING_MODEL: 1 - w}
        return {
            TREND_MODEL: w / 2,
            SMOOTHING_MODEL: (1 - w) / 2,
            ARIMA_MODEL: w / 2,
            HOLT_WINTERS_MODEL: (1 - w) / 2,
        }


@dataclass(frozen=True)
class PredictionFactor:
    """One explanatory signal behind a forecast.

    Attributes:
        name: Factor label
        impact: 'positive', 'negative' or 'neutral'
        weight: Relative importance
        description: Reading of the factor for this series
    """
    name: str
    impact: str
    weight: float
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "impact": self.impact,
            "weight": self.weight,
            "description": self.description,
        }


@dataclass
class PricePrediction:
    """A forecast of the price ``horizon`` observations ahead."""
    current_price: float
    predicted_price: float
    price_change: float
    price_change_percent: float
    direction: TrendDirection
    confidence: float
    horizon: int
    target_date: date
    bounds: PriceRange
    factors: list[PredictionFactor] = field(default_factory=list)
    models: list[str] = field(default_factory=lambda: [TREND_MODEL, SMOOTHING_MODEL])
    estimates: dict[str, float] = field(default_factory=dict)
    trend_slope: float = 0.0
    volatility_level: VolatilityLevel = VolatilityLevel.MEDIUM

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_price": self.current_price,
            "predicted_price": self.predicted_price,
            "price_change": self.price_change,
            "price_change_percent": self.price_change_percent,
            "direction": self.direction.value,
            "confidence": self.confidence,
            "horizon": self.horizon,
            "target_date": self.target_date.isoformat(),
            "bounds": {"lower": self.bounds.low, "upper": self.bounds.high},
            "factors": [f.to_dict() for f in self.factors],
            "models": list(self.models),
            "estimates": dict(self.estimates),
            "trend_slope": self.trend_slope,
            "volatility_level": self.volatility_level.value,
        }


class PricePredictor:
    """Blended trend/EMA forecaster over a daily price series."""

    def __init__(self, config: Optional[ForecastConfig] = None):
        self.config = config or ForecastConfig()

    def predict(self, series: PriceInput, horizon_days: int = 7) -> PricePrediction:
        """Forecast the price ``horizon_days`` observations past the last one.

        Args:
            series: Daily price series, ascending by date
            horizon_days: Forecast horizon, >= 1

        Returns:
            PricePrediction

        Raises:
            MalformedInputError: Malformed series or horizon < 1
            InsufficientDataError: Fewer than ``min_data_points`` observations
        """
        cfg = self.config
        horizon = validate_period(horizon_days, "horizon_days")
        df = to_price_frame(series)

        n = len(df)
        if n < cfg.min_data_points:
            raise InsufficientDataError(required=cfg.min_data_points, available=n)

        values = df["value"].to_numpy(dtype=float)
        current_price = float(values[-1])

        window = values[-cfg.trend_window:]
        fit = linear_regression(window)
        trend_estimate = project_price(window, horizon, clamp=False)

        ema_period = min(cfg.ema_period, n)
        anchor = float(ema_values(values, ema_period)[-1])
        smoothing_estimate = anchor + fit.slope * horizon

        estimates = {TREND_MODEL: trend_estimate, SMOOTHING_MODEL: smoothing_estimate}
        if cfg.statistical_models:
            estimates.update(self._statistical_estimates(window, horizon, estimates))
        weights = cfg.model_weights(horizon)
        predicted = sum(weights[name] * estimates[name] for name in cfg.models())

        price_change = predicted - current_price
        price_change_percent = price_change / current_price * 100 if current_price != 0 else 0.0

        volatility = analyze_volatility(window)
        sigma = volatility.standard_deviation
        mean = float(window.mean())
        relative_sigma = sigma / abs(mean) if mean != 0 else 0.0
        confidence = 1 - relative_sigma * math.sqrt(horizon)
        confidence = min(cfg.max_confidence, max(cfg.min_confidence, confidence))

        prediction = PricePrediction(
            current_price=current_price,
            predicted_price=predicted,
            price_change=price_change,
            price_change_percent=price_change_percent,
            direction=self._direction(price_change_percent),
            confidence=confidence,
            horizon=horizon,
            target_date=df.index[-1].date() + timedelta(days=horizon),
            bounds=prediction_bounds(predicted, sigma, horizon, cfg.bounds_z_score),
            factors=self._factors(values, volatility.level, horizon),
            models=cfg.models(),
            estimates=estimates,
            trend_slope=fit.slope,
            volatility_level=volatility.level,
        )

        logger.debug(
            f"Forecast h={horizon}: {current_price:.2f} -> {predicted:.2f} "
            f"({prediction.direction.value}, confidence {confidence:.2f})"
        )
        return prediction

    def predict_multiple_horizons(
        self,
        series: PriceInput,
        horizons: Optional[Iterable[int]] = None
    ) -> dict[int, PricePrediction]:
        """Forecast several horizons.

        Invalid horizons and horizons without enough history are logged and
        skipped.

        Raises:
            MalformedInputError: Malformed series
        """
        df = to_price_frame(series)
        results: dict[int, PricePrediction] = {}
        for horizon in horizons or self.config.horizons:
            try:
                validate_period(horizon, "horizon")
                results[horizon] = self.predict(df, horizon)
            except (InsufficientDataError, MalformedInputError) as e:
                logger.warning(f"Skipping horizon {horizon}: {e}")
        return results

    def _statistical_estimates(
        self,
        window: np.ndarray,
        horizon: int,
        estimates: dict[str, float]
    ) -> dict[str, float]:
        cfg = self.config
        try:
            arima = arima_forecast(window, horizon, cfg.arima_order)
        except EstimatorError as e:
            logger.debug(f"{e}; using {TREND_MODEL}")
            arima = estimates[TREND_MODEL]
        try:
            holt_winters = holt_winters_forecast(window, horizon, cfg.seasonal_period)
        except EstimatorError as e:
            logger.debug(f"{e}; using {SMOOTHING_MODEL}")
            holt_winters = estimates[SMOOTHING_MODEL]
        return {ARIMA_MODEL: arima, HOLT_WINTERS_MODEL: holt_winters}

    def _direction(self, change_percent: float) -> TrendDirection:
        band = self.config.stable_band_percent
        if change_percent > band:
            return TrendDirection.UP
        if change_percent < -band:
            return TrendDirection.DOWN
        return TrendDirection.STABLE

    def _factors(
        self,
        values: np.ndarray,
        volatility_level: VolatilityLevel,
        horizon: int
    ) -> list[PredictionFactor]:
        cfg = self.config
        factors = []

        # Short-term momentum
        roc = rate_of_change(values, cfg.momentum_period)
        if roc > 1:
            impact, reading = "positive", f"Prices up {roc:.1f}% over {cfg.momentum_period} days"
        elif roc < -1:
            impact, reading = "negative", f"Prices down {abs(roc):.1f}% over {cfg.momentum_period} days"
        else:
            impact, reading = "neutral", "Little short-term momentum"
        factors.append(PredictionFactor(
            name=f"Short-term momentum ({cfg.momentum_period}d)",
            impact=impact,
            weight=0.35 if horizon <= 14 else 0.25,
            description=reading,
        ))

        # Medium-term trend
        trend = analyze_trends(values).medium_term.trend
        trend_readings = {
            TrendDirection.UP: ("positive", "Upward 30-day trend"),
            TrendDirection.DOWN: ("negative", "Downward 30-day trend"),
            TrendDirection.STABLE: ("neutral", "Flat 30-day trend"),
        }
        impact, reading = trend_readings[trend]
        factors.append(PredictionFactor(
            name="Medium-term trend (30d)", impact=impact, weight=0.30, description=reading
        ))

        # Volatility
        volatility_readings = {
            VolatilityLevel.LOW: ("positive", "Low volatility"),
            VolatilityLevel.MEDIUM: ("neutral", "Moderate volatility"),
            VolatilityLevel.HIGH: ("negative", "Elevated volatility widening bounds"),
        }
        impact, reading = volatility_readings[volatility_level]
        factors.append(PredictionFactor(
            name="Volatility", impact=impact, weight=0.20, description=reading
        ))

        # Position within the recent range
        recent = values[-cfg.range_window:]
        low, high = float(recent.min()), float(recent.max())
        position = (values[-1] - low) / ((high - low) or 1)
        if position > 0.7:
            impact, reading = "negative", "Near the top of the recent range"
        elif position < 0.3:
            impact, reading = "positive", "Near the bottom of the recent range"
        else:
            impact, reading = "neutral", "Mid-range"
        factors.append(PredictionFactor(
            name=f"Position in range ({cfg.range_window}d)",
            impact=impact,
            weight=0.15,
            description=reading,
        ))

        if horizon >= 30:
            factors.append(PredictionFactor(
                name="Long horizon",
                impact="neutral",
                weight=0.10,
                description="Long horizon favors smoothing anchor",
            ))

        return factors


def predict_price(
    series: PriceInput,
    horizon_days: int = 7,
    config: Optional[ForecastConfig] = None
) -> PricePrediction:
    """Forecast the price ``horizon_days`` observations ahead.

    Raises:
        InsufficientDataError: Fewer than 7 observations (``code`` is
            ``INSUFFICIENT_DATA``)
        MalformedInputError: Malformed series or horizon < 1
    """
    return PricePredictor(config).predict(series, horizon_days)


def predict_multiple_horizons(
    series: PriceInput,
    horizons: Optional[Iterable[int]] = None,
    config: Optional[ForecastConfig] = None
) -> dict[int, PricePrediction]:
    return PricePredictor(config).predict_multiple_horizons(series, horizons)
