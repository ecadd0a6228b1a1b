# macro_forecaster_src/stationarity_utils.py

import logging
from dataclasses import dataclass, field
from typing import Dict, Union

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller

from .errors import InsufficientData

logger = logging.getLogger(__name__)

MIN_ADF_OBS = 20


@dataclass(frozen=True)
class StationarityResult:
    """Outcome of an augmented Dickey-Fuller test."""

    statistic: float
    p_value: float
    reject_null: bool
    alpha: float
    used_lag: int
    nobs: int
    critical_values: Dict[str, float] = field(default_factory=dict)

    @property
    def interpretation(self) -> str:
        if self.reject_null:
            return f"Unit root rejected at {self.alpha:.0%} (stationary)"
        return f"Unit root not rejected at {self.alpha:.0%} (non-stationary)"


def check_stationarity(series: Union[pd.Series, np.ndarray],
                       alpha: float = 0.05,
                       min_obs: int = MIN_ADF_OBS) -> StationarityResult:
    """
    Run the Augmented Dickey-Fuller (ADF) test for unit roots.

    Parameters
    ----------
    series : Union[pd.Series, np.ndarray]
        Input series. NaNs are dropped prior to testing.
    alpha : float, default=0.05
        Significance level for the reject/keep decision.
    min_obs : int, default=20
        Minimum number of non-missing observations.

    Returns
    -------
    StationarityResult
        Test statistic, p-value and the decision at ``alpha``.

    Raises
    ------
    InsufficientData
        If fewer than ``min_obs`` observations remain after dropping NaNs, or the
        series is constant.

    Notes
    -----
    - ADF null hypothesis: the series has a unit root (non-stationary)
    - Lag length is chosen by AIC (statsmodels default)
    """
    values = pd.Series(series).dropna()
    if len(values) < min_obs:
        raise InsufficientData(f"ADF test needs at least {min_obs} observations, got {len(values)}.",
                               series_id=getattr(series, "name", None))
    if np.ptp(values.values) == 0:
        raise InsufficientData("Series is constant; the unit-root test is undefined.",
                               series_id=getattr(series, "name", None))

    stat, pval, used_lag, nobs, crit, _ = adfuller(values.values, autolag="AIC")
    return StationarityResult(
        statistic=float(stat),
        p_value=float(pval),
        reject_null=bool(pval < alpha),
        alpha=alpha,
        used_lag=int(used_lag),
        nobs=int(nobs),
        critical_values={k: float(v) for k, v in crit.items()},
    )


def select_differencing_order(series: pd.Series,
                              alpha: float = 0.05,
                              max_d: int = 2,
                              min_obs: int = MIN_ADF_OBS) -> int:
    """
    Choose the differencing order by repeated ADF testing.

    Returns the smallest d in [0, max_d] whose d-times differenced series rejects the
    unit root. When no order rejects, max_d is returned. If the differenced series becomes
    too short to test, the last testable order is returned.
    """
    current = pd.Series(series).dropna()
    for d in range(max_d + 1):
        try:
            result = check_stationarity(current, alpha=alpha, min_obs=min_obs)
        except InsufficientData:
            if d == 0:
                raise
            logger.debug("Differenced series too short at d=%d; keeping d=%d", d, d - 1)
            return d - 1
        logger.debug("ADF at d=%d: statistic=%.3f p=%.4f", d, result.statistic, result.p_value)
        if result.reject_null:
            return d
        current = current.diff().dropna()
    return max_d
