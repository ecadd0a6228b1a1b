"""Rolling-origin cross-validation for time series forecasting.

This module implements expanding-window, strictly out-of-sample evaluation of
forecast accuracy. Window boundaries are positions in a zero-based array, not
calendar dates: for an origin ``k`` the model sees ``series.iloc[:k]`` and is
scored on ``series.iloc[k:k + horizon]``.

Features:
- Expanding training window from the first available point
- Fixed-horizon multi-step forecasts per origin
- Windows that would run past the end of the series are skipped
- Windows whose fit fails are skipped and counted
- ARIMA, STL-trend ARIMA and naive last-value forecast adapters
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd
from tqdm.auto import tqdm

from macro_forecaster_src.decomposition_utils import decompose_series
from macro_forecaster_src.errors import ForecasterError, InsufficientData
from macro_forecaster_src.forecasting_utils import fit_arima, forecast_model, recombine_seasonal

logger = logging.getLogger(__name__)

# (training series, horizon) -> point forecasts of length horizon
ForecastFn = Callable[[pd.Series, int], np.ndarray]


@dataclass
class CrossValidationResult:
    """Results from rolling-origin evaluation."""

    mae: float
    horizon: int
    window_mae: List[float] = field(default_factory=list)
    origins: List[int] = field(default_factory=list)
    n_failed: int = 0

    @property
    def n_windows(self) -> int:
        """Number of windows that produced a forecast."""
        return len(self.window_mae)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"origin": self.origins, "mae": self.window_mae})


def expanding_windows(n: int, horizon: int, min_train_size: int = 1, step: int = 1) -> List[Tuple[int, int]]:
    """
    Enumerate (train_end, test_end) position pairs for an expanding window.

    Training covers positions [0, train_end) and the test block [train_end, test_end).
    Pairs whose test block would extend past ``n`` are not produced.
    """
    if horizon <= 0:
        raise ValueError(f"horizon must be positive, got {horizon}")
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    first = max(1, int(min_train_size))
    return [(k, k + horizon) for k in range(first, n - horizon + 1, step)]


def rolling_origin_evaluate(series: pd.Series,
                            horizon: int,
                            forecast_fn: ForecastFn,
                            min_train_size: int = 1,
                            step: int = 1,
                            show_progress: bool = False) -> CrossValidationResult:
    """
    Evaluate a forecasting procedure by rolling-origin cross-validation.

    Parameters
    ----------
    series : pd.Series
        Cleaned series (no missing values)
    horizon : int
        Forecast steps per origin
    forecast_fn : ForecastFn
        Procedure that fits on the training slice and returns ``horizon`` point forecasts
    min_train_size : int, default=1
        Size of the first training window
    step : int, default=1
        Distance between consecutive origins
    show_progress : bool, default=False
        Display a tqdm progress bar over the windows

    Returns
    -------
    CrossValidationResult
        Mean of the per-window mean absolute errors, plus per-window detail

    Raises
    ------
    InsufficientData
        If ``len(series) <= horizon`` or no window produced a forecast

    Notes
    -----
    A window whose procedure raises a pipeline error (e.g. NonConvergent on a short
    training slice) is skipped and counted in ``n_failed``.
    """
    values = np.asarray(series, dtype=float)
    n = len(values)
    if n <= horizon:
        raise InsufficientData(f"Series of length {n} leaves no window for horizon {horizon}.",
                               series_id=getattr(series, "name", None))

    windows = expanding_windows(n, horizon, min_train_size=min_train_size, step=step)
    window_mae: List[float] = []
    origins: List[int] = []
    n_failed = 0

    for train_end, test_end in tqdm(windows, desc="Rolling origin", disable=not show_progress):
        train = series.iloc[:train_end]
        actual = values[train_end:test_end]
        try:
            pred = np.asarray(forecast_fn(train, horizon), dtype=float)
        except ForecasterError as e:
            n_failed += 1
            logger.debug("Window ending at %d skipped: %s", train_end, e)
            continue
        if pred.shape != actual.shape or not np.all(np.isfinite(pred)):
            n_failed += 1
            logger.debug("Window ending at %d skipped: unusable forecast", train_end)
            continue
        window_mae.append(float(np.mean(np.abs(actual - pred))))
        origins.append(train_end)

    if not window_mae:
        raise InsufficientData(
            f"No valid cross-validation window ({len(windows)} candidate, {n_failed} failed).",
            series_id=getattr(series, "name", None),
        )

    result = CrossValidationResult(
        mae=float(np.mean(window_mae)),
        horizon=horizon,
        window_mae=window_mae,
        origins=origins,
        n_failed=n_failed,
    )
    logger.info("Rolling-origin CV (h=%d): MAE=%.4f over %d windows (%d failed)",
                horizon, result.mae, result.n_windows, n_failed)
    return result


def rolling_origin_mae(series: pd.Series,
                       horizon: int,
                       forecast_fn: ForecastFn,
                       min_train_size: int = 1,
                       step: int = 1) -> float:
    """Average MAE across all valid rolling-origin windows."""
    return rolling_origin_evaluate(series, horizon, forecast_fn,
                                   min_train_size=min_train_size, step=step).mae


def arima_forecaster(order: Tuple[int, int, int],
                     seasonal_order: Tuple[int, int, int, int] = (0, 0, 0, 0),
                     trend: Optional[str] = None) -> ForecastFn:
    """
    Build a forecast procedure that refits a fixed ARIMA order on every training window.

    Only hard estimation failures skip a window; a fit that stops before the optimizer's
    convergence tolerance still forecasts.
    """
    def _forecast(train: pd.Series, horizon: int) -> np.ndarray:
        model = fit_arima(train, order, seasonal_order, trend=trend, require_convergence=False)
        return forecast_model(model, horizon, levels=()).mean.values

    return _forecast


def trend_arima_forecaster(order: Tuple[int, int, int],
                           period: int,
                           trend: Optional[str] = None) -> ForecastFn:
    """
    Build a forecast procedure for series modeled on their STL trend.

    Every training window is decomposed on its own, the fixed order is refit on that
    window's trend, and the window's last seasonal cycle is added back. No value from
    after the origin reaches the decomposition, so the forecasts can be scored against
    the observed series.
    """
    def _forecast(train: pd.Series, horizon: int) -> np.ndarray:
        decomposition = decompose_series(train, period)
        model = fit_arima(decomposition.trend.rename(train.name), order, trend=trend,
                          require_convergence=False)
        base = forecast_model(model, horizon, levels=())
        return recombine_seasonal(base, decomposition.seasonal_cycle()).mean.values

    return _forecast


def naive_forecaster() -> ForecastFn:
    """Last-value baseline: repeat the final training observation."""
    def _forecast(train: pd.Series, horizon: int) -> np.ndarray:
        if len(train) == 0:
            raise InsufficientData("Naive forecast needs at least one observation.")
        return np.repeat(float(train.iloc[-1]), horizon)

    return _forecast
