# macro_forecaster_src/forecasting_utils.py

import hashlib
import logging
import warnings
from dataclasses import dataclass, field
from itertools import product
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from statsmodels.tools.sm_exceptions import ConvergenceWarning, ValueWarning
from statsmodels.tsa.statespace.sarimax import SARIMAX
from tqdm.auto import tqdm

from .errors import NonConvergent
from .stationarity_utils import select_differencing_order

logger = logging.getLogger(__name__)

VALID_CRITERIA = ("aic", "aicc", "bic")


@dataclass(frozen=True)
class OrderSearchConfig:
    """
    Bounds and objective of the ARIMA order search.

    The search is exhaustive over p in [0, max_p], q in [0, max_q] and, when a seasonal
    period greater than 1 is given, P in [0, max_P] and Q in [0, max_Q]. The differencing
    order d is chosen by repeated ADF testing up to max_d; the seasonal differencing
    order D is fixed. Candidates are ranked by ``criterion`` (lower is better); those
    within ``parsimony_delta`` of the lowest value are treated as equivalent and the one
    with the fewest parameters is kept.
    """

    max_p: int = 3
    max_q: int = 3
    max_P: int = 1
    max_Q: int = 1
    max_d: int = 2
    D: int = 0
    criterion: str = "bic"
    parsimony_delta: float = 2.0
    alpha: float = 0.05
    maxiter: int = 200

    def __post_init__(self):
        if self.criterion not in VALID_CRITERIA:
            raise ValueError(f"Invalid criterion '{self.criterion}'. Must be one of: {list(VALID_CRITERIA)}")
        if self.parsimony_delta < 0:
            raise ValueError("parsimony_delta must be non-negative")
        for name in ("max_p", "max_q", "max_P", "max_Q", "max_d", "D"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass(frozen=True, eq=False)
class FittedModel:
    """A fitted (seasonal) ARIMA model; read-only once created."""

    order: Tuple[int, int, int]
    seasonal_order: Tuple[int, int, int, int]
    trend: str
    criterion: str
    aic: float
    aicc: float
    bic: float
    params: pd.Series
    residuals: pd.Series
    nobs: int
    converged: bool = True
    series_id: Optional[str] = None
    results: Any = field(default=None, repr=False, compare=False)
    search_table: Optional[pd.DataFrame] = field(default=None, repr=False, compare=False)

    @property
    def criterion_value(self) -> float:
        return float(getattr(self, self.criterion))

    @property
    def label(self) -> str:
        p, d, q = self.order
        P, D, Q, s = self.seasonal_order
        if s > 1 and (P or D or Q):
            return f"ARIMA({p},{d},{q})({P},{D},{Q})[{s}]"
        return f"ARIMA({p},{d},{q})"

    def summary_row(self) -> Dict[str, Any]:
        return {
            "series": self.series_id,
            "model": self.label,
            "p": self.order[0], "d": self.order[1], "q": self.order[2],
            "P": self.seasonal_order[0], "D": self.seasonal_order[1],
            "Q": self.seasonal_order[2], "s": self.seasonal_order[3],
            "trend": self.trend,
            "criterion": self.criterion,
            "AIC": self.aic, "AICc": self.aicc, "BIC": self.bic,
            "nobs": self.nobs,
        }


@dataclass
class Forecast:
    """Point forecasts and prediction intervals for ``horizon`` steps."""

    mean: pd.Series
    intervals: Dict[int, pd.DataFrame]
    model: FittedModel

    @property
    def horizon(self) -> int:
        return len(self.mean)

    def to_frame(self) -> pd.DataFrame:
        out = pd.DataFrame({"mean": self.mean})
        for lvl in sorted(self.intervals):
            out[f"lower_{lvl}"] = self.intervals[lvl]["lower"].values
            out[f"upper_{lvl}"] = self.intervals[lvl]["upper"].values
        return out


@dataclass
class AdjustedForecast:
    """A trend Forecast recombined with a repeated seasonal pattern."""

    mean: pd.Series
    intervals: Dict[int, pd.DataFrame]
    seasonal: pd.Series
    base: Forecast

    @property
    def horizon(self) -> int:
        return len(self.mean)

    @property
    def model(self) -> FittedModel:
        return self.base.model

    def to_frame(self) -> pd.DataFrame:
        out = pd.DataFrame({"mean": self.mean, "trend_mean": self.base.mean, "seasonal": self.seasonal})
        for lvl in sorted(self.intervals):
            out[f"lower_{lvl}"] = self.intervals[lvl]["lower"].values
            out[f"upper_{lvl}"] = self.intervals[lvl]["upper"].values
        return out


def default_trend(d: int, D: int) -> str:
    """Constant for undifferenced models, no deterministic term otherwise."""
    return "c" if d + D == 0 else "n"


def _fit_sarimax(endog: pd.Series,
                 order: Tuple[int, int, int],
                 seasonal_order: Tuple[int, int, int, int],
                 trend: str,
                 maxiter: int = 200):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ConvergenceWarning)
        warnings.simplefilter("ignore", ValueWarning)
        warnings.simplefilter("ignore", RuntimeWarning)
        model = SARIMAX(
            endog,
            order=order,
            seasonal_order=seasonal_order,
            trend=trend,
            simple_differencing=False,
        )
        return model.fit(disp=False, maxiter=maxiter)


def _is_converged(res) -> bool:
    retvals = getattr(res, "mle_retvals", None) or {}
    return bool(retvals.get("converged", True))


def _to_fitted_model(res, endog: pd.Series, order, seasonal_order, trend, criterion,
                     search_table: Optional[pd.DataFrame] = None) -> FittedModel:
    d = order[1]
    D, s = seasonal_order[1], seasonal_order[3]
    burn_in = d + D * s
    resid = pd.Series(np.asarray(res.resid, dtype=float), index=endog.index, name="residuals")
    # Differenced models produce diffuse start-up residuals
    resid = resid.iloc[burn_in:]
    params = pd.Series(np.asarray(res.params, dtype=float), index=list(res.model.param_names))
    return FittedModel(
        order=tuple(int(x) for x in order),
        seasonal_order=tuple(int(x) for x in seasonal_order),
        trend=trend,
        criterion=criterion,
        aic=float(res.aic),
        aicc=float(res.aicc),
        bic=float(res.bic),
        params=params,
        residuals=resid,
        nobs=int(res.nobs),
        converged=_is_converged(res),
        series_id=endog.name,
        results=res,
        search_table=search_table,
    )


def fit_arima(endog: pd.Series,
              order: Tuple[int, int, int],
              seasonal_order: Tuple[int, int, int, int] = (0, 0, 0, 0),
              trend: Optional[str] = None,
              criterion: str = "bic",
              require_convergence: bool = True,
              maxiter: int = 200) -> FittedModel:
    """
    Fit a fixed-order (seasonal) ARIMA model.

    Parameters
    ----------
    endog : pd.Series
        Cleaned series (or a decomposition's trend component).
    order : Tuple[int, int, int]
        (p, d, q)
    seasonal_order : Tuple[int, int, int, int], default=(0, 0, 0, 0)
        (P, D, Q, s)
    trend : Optional[str]
        statsmodels trend code; defaults to a constant only for undifferenced models.
    criterion : str, default="bic"
        Criterion recorded on the result.
    require_convergence : bool, default=True
        If True, an optimizer that reports non-convergence raises NonConvergent.

    Raises
    ------
    NonConvergent
        If estimation fails, or does not converge while ``require_convergence`` is set.
    """
    if trend is None:
        trend = default_trend(order[1], seasonal_order[1])
    try:
        res = _fit_sarimax(endog, order, seasonal_order, trend, maxiter=maxiter)
    except Exception as e:
        raise NonConvergent(f"ARIMA{order}x{seasonal_order} failed to fit: {e}",
                            series_id=endog.name) from e
    if require_convergence and not _is_converged(res):
        raise NonConvergent(f"ARIMA{order}x{seasonal_order} did not converge.", series_id=endog.name)
    return _to_fitted_model(res, endog, order, seasonal_order, trend, criterion)


def candidate_orders(d: int, seasonal_period: int, config: OrderSearchConfig) -> List[Tuple[Tuple, Tuple]]:
    """Enumerate (order, seasonal_order) pairs in a fixed, reproducible order."""
    if seasonal_period > 1:
        P_range, Q_range, D = range(config.max_P + 1), range(config.max_Q + 1), config.D
        s = seasonal_period
    else:
        P_range, Q_range, D, s = [0], [0], 0, 0
    out = []
    for p, q, P, Q in product(range(config.max_p + 1), range(config.max_q + 1), P_range, Q_range):
        out.append(((p, d, q), (P, D, Q, s)))
    return out


def select_arima_order(endog: pd.Series,
                       seasonal_period: int = 1,
                       config: Optional[OrderSearchConfig] = None,
                       show_progress: bool = True) -> FittedModel:
    """
    Select and fit an ARIMA model by a bounded, exhaustive information-criterion search.

    This function chooses d by repeated stationarity testing, then fits every candidate
    (p, q[, P, Q]) within the configured bounds and keeps the one with the lowest criterion.

    Parameters
    ----------
    endog : pd.Series
        Cleaned series (or a decomposition's trend component)
    seasonal_period : int, default=1
        Seasonal period; values above 1 add seasonal AR/MA terms to the search
    config : Optional[OrderSearchConfig]
        Search bounds and objective; defaults to OrderSearchConfig()
    show_progress : bool, default=True
        Display a tqdm progress bar over the candidates

    Returns
    -------
    FittedModel
        Best model; ``search_table`` lists every converged candidate sorted by the criterion

    Raises
    ------
    InsufficientData
        If the series is too short for the stationarity test
    NonConvergent
        If no candidate order converges

    Notes
    -----
    - Candidates within ``config.parsimony_delta`` of the lowest criterion are
      equivalent; among them the one with fewer parameters wins, then the lower
      criterion, then the earlier candidate in enumeration order, so repeated runs
      select the same model
    - Candidates whose estimation raises, reports non-convergence or yields a non-finite
      criterion are skipped
    """
    config = config or OrderSearchConfig()
    seasonal_period = int(seasonal_period or 1)
    D = config.D if seasonal_period > 1 else 0

    base = endog.dropna()
    for _ in range(D):
        base = base.diff(seasonal_period).dropna()
    d = select_differencing_order(base, alpha=config.alpha, max_d=config.max_d)
    logger.info("%s: differencing order d=%d (D=%d, s=%d)", endog.name or "series", d, D, seasonal_period)

    candidates = candidate_orders(d, seasonal_period, config)
    rows: List[List[object]] = []
    fits: List[Tuple[float, int, int, tuple]] = []

    for idx, (order, seasonal_order) in enumerate(
            tqdm(candidates, desc=f"Order search {endog.name or ''}".strip(), disable=not show_progress)):
        trend = default_trend(order[1], seasonal_order[1])
        try:
            res = _fit_sarimax(endog, order, seasonal_order, trend, maxiter=config.maxiter)
        except Exception as e:
            logger.debug("Skipping ARIMA%sx%s: %s", order, seasonal_order, e)
            continue
        if not _is_converged(res):
            logger.debug("Skipping ARIMA%sx%s: optimizer did not converge", order, seasonal_order)
            continue

        value = float(getattr(res, config.criterion, np.nan))
        if not np.isfinite(value):
            continue

        n_params = order[0] + order[2] + seasonal_order[0] + seasonal_order[2] + (1 if trend == "c" else 0)
        rows.append([order, seasonal_order, trend, n_params,
                     float(res.aic), float(res.aicc), float(res.bic), value])
        fits.append((value, n_params, idx, (res, order, seasonal_order, trend)))

    if not fits:
        raise NonConvergent(f"No candidate among {len(candidates)} orders converged.", series_id=endog.name)

    lowest = min(f[0] for f in fits)
    eligible = [f for f in fits if f[0] <= lowest + config.parsimony_delta]
    _, _, _, best = min(eligible, key=lambda f: (f[1], f[0], f[2]))

    table = pd.DataFrame(rows, columns=["order", "seasonal_order", "trend", "n_params",
                                        "AIC", "AICc", "BIC", "criterion"])
    table = table.sort_values(by="criterion", kind="mergesort").reset_index(drop=True)

    res, order, seasonal_order, trend = best
    fitted = _to_fitted_model(res, endog, order, seasonal_order, trend, config.criterion, search_table=table)
    logger.info("%s: selected %s with %s=%.3f (%d/%d candidates converged)",
                endog.name or "series", fitted.label, config.criterion.upper(),
                fitted.criterion_value, len(rows), len(candidates))
    return fitted


def forecast_model(model: FittedModel, horizon: int, levels: Sequence[int] = (80, 95)) -> Forecast:
    """
    Produce point forecasts and prediction intervals from a fitted model.

    Parameters
    ----------
    model : FittedModel
        Model returned by select_arima_order or fit_arima
    horizon : int
        Number of steps ahead (positive)
    levels : Sequence[int], default=(80, 95)
        Interval coverages in percent

    Returns
    -------
    Forecast
        Exactly ``horizon`` point forecasts with an interval per level

    Raises
    ------
    ValueError
        If horizon is not a positive integer or a level is outside (0, 100)
    """
    if not isinstance(horizon, (int, np.integer)) or horizon <= 0:
        raise ValueError(f"horizon must be a positive integer, got {horizon!r}")
    if model.results is None:
        raise ValueError("FittedModel carries no estimation results to forecast from.")

    fc = model.results.get_forecast(steps=int(horizon))
    mean = pd.Series(np.asarray(fc.predicted_mean, dtype=float), index=fc.predicted_mean.index, name="mean")

    intervals: Dict[int, pd.DataFrame] = {}
    for lvl in sorted(set(int(x) for x in levels)):
        if not 0 < lvl < 100:
            raise ValueError(f"Interval level must lie in (0, 100), got {lvl}")
        ci = fc.conf_int(alpha=1.0 - lvl / 100.0)
        intervals[lvl] = pd.DataFrame({
            "lower": np.asarray(ci.iloc[:, 0], dtype=float),
            "upper": np.asarray(ci.iloc[:, 1], dtype=float),
        }, index=mean.index)

    return Forecast(mean=mean, intervals=intervals, model=model)


def recombine_seasonal(forecast: Forecast, seasonal_cycle: Union[Sequence[float], np.ndarray]) -> AdjustedForecast:
    """
    Add a repeating seasonal pattern to a trend forecast.

    The cycle is tiled (and truncated) to the forecast horizon and added element-wise to
    the point forecast and to both bounds of every interval.
    """
    cycle = np.asarray(seasonal_cycle, dtype=float)
    if cycle.size == 0:
        raise ValueError("seasonal_cycle must not be empty")
    pattern = np.resize(cycle, forecast.horizon)
    seasonal = pd.Series(pattern, index=forecast.mean.index, name="seasonal")

    mean = (forecast.mean + seasonal).rename("mean")
    intervals = {
        lvl: pd.DataFrame({"lower": df["lower"] + pattern, "upper": df["upper"] + pattern}, index=df.index)
        for lvl, df in forecast.intervals.items()
    }
    return AdjustedForecast(mean=mean, intervals=intervals, seasonal=seasonal, base=forecast)


def hash_forecast(seq: Union[List[float], np.ndarray, pd.Series]) -> str:
    """
    Generate a hash fingerprint for a forecast sequence.

    Returns
    -------
    str
        16-character SHA-1 hash of the float64 bytes, used to confirm reproducible runs
    """
    arr = np.ascontiguousarray(np.asarray(seq, dtype=np.float64))
    return hashlib.sha1(arr.tobytes()).hexdigest()[:16]
