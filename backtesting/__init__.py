"""Rolling-origin cross-validation for the macro forecaster.

This package provides:
- Expanding-window, strictly out-of-sample forecast evaluation
- Mean absolute error per window and across windows
- ARIMA, STL-trend ARIMA and naive last-value forecast adapters
"""

from .rolling_origin import (
    CrossValidationResult,
    ForecastFn,
    arima_forecaster,
    expanding_windows,
    naive_forecaster,
    rolling_origin_evaluate,
    rolling_origin_mae,
    trend_arima_forecaster,
)

__all__ = [
    'CrossValidationResult',
    'ForecastFn',
    'arima_forecaster',
    'expanding_windows',
    'naive_forecaster',
    'rolling_origin_evaluate',
    'rolling_origin_mae',
    'trend_arima_forecaster',
]
