# macro_forecaster_src/__init__.py

"""
Macro Forecaster ARIMA - FRED series modeling and forecasting package

Key Components
--------------
- errors: Per-series pipeline error kinds
- config_utils: Configuration management and CLI override support
- data_utils: Regular series construction, interpolation and group alignment
- stationarity_utils: Augmented Dickey-Fuller checks and differencing order
- decomposition_utils: STL decomposition with a periodic seasonal
- forecasting_utils: ARIMA order search, fitting, forecasting and seasonal recombination
- diagnostics_utils: Residual tests and diagnostic figures
- parsing_utils: Command-line argument parsing
- plotting_utils: Visualization
- file_utils: CSV and markdown exports, path utilities
- main: Report assembly and command-line entry point

Usage
-----
    # Command-line usage
    python -m macro_forecaster_src.main --series UNRATE,GDPC1

    # Programmatic usage
    from macro_forecaster_src import select_arima_order, forecast_model
"""

__version__ = "1.0.0"
__author__ = "Macro Forecaster Development Team"

from .errors import ForecasterError, DataUnavailable, InsufficientData, InvalidFrequency, NonConvergent
from .config_utils import initialize_config, get_config_value
from .data_utils import prepare_series, truncate_to_common_length
from .stationarity_utils import check_stationarity
from .decomposition_utils import decompose_series
from .forecasting_utils import select_arima_order, fit_arima, forecast_model, recombine_seasonal
from .diagnostics_utils import run_residual_diagnostics

__all__ = [
    # Errors
    "ForecasterError",
    "DataUnavailable",
    "InsufficientData",
    "InvalidFrequency",
    "NonConvergent",
    # Core functionality
    "initialize_config",
    "get_config_value",
    "prepare_series",
    "truncate_to_common_length",
    "check_stationarity",
    "decompose_series",
    "select_arima_order",
    "fit_arima",
    "forecast_model",
    "recombine_seasonal",
    "run_residual_diagnostics",
    # Version info
    "__version__",
    "__author__"
]
