"""Short-horizon price forecasting.

- Trend analysis: OLS fits, projections, rate of change
- Volatility: dispersion measures and forecast bounds
- Statistical models: ARIMA and Holt-Winters estimators
- Price predictor: blended trend/smoothing forecaster
"""

from .trend_analysis import (
    RegressionFit,
    TrendAnalysis,
    TrendDirection,
    TrendResult,
    analyze_period,
    analyze_trends,
    determine_trend_from_slope,
    linear_regression,
    project_price,
    rate_of_change,
)
from .volatility import (
    VolatilityLevel,
    VolatilityResult,
    analyze_volatility,
    average_true_range,
    coefficient_of_variation,
    daily_returns,
    determine_volatility_level,
    prediction_bounds,
    standard_deviation,
)
from .statistical_models import EstimatorError, arima_forecast, holt_winters_forecast
from .price_predictor import (
    ForecastConfig,
    InsufficientDataError,
    PredictionFactor,
    PricePrediction,
    PricePredictor,
    predict_multiple_horizons,
    predict_price,
)

__all__ = [
    # Trend analysis
    "RegressionFit",
    "TrendAnalysis",
    "TrendDirection",
    "TrendResult",
    "analyze_period",
    "analyze_trends",
    "determine_trend_from_slope",
    "linear_regression",
    "project_price",
    "rate_of_change",
    # Volatility
    "VolatilityLevel",
    "VolatilityResult",
    "analyze_volatility",
    "average_true_range",
    "coefficient_of_variation",
    "daily_returns",
    "determine_volatility_level",
    "prediction_bounds",
    "standard_deviation",
    # Statistical models
    "EstimatorError",
    "arima_forecast",
    "holt_winters_forecast",
    # Predictor
    "ForecastConfig",
    "InsufficientDataError",
    "PredictionFactor",
    "PricePrediction",
    "PricePredictor",
    "predict_multiple_horizons",
    "predict_price",
]
