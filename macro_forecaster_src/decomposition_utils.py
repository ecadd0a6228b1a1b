# macro_forecaster_src/decomposition_utils.py

"""Seasonal-trend decomposition using LOESS (STL) with a periodic seasonal."""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import STL

from .errors import InvalidFrequency

logger = logging.getLogger(__name__)


@dataclass
class Decomposition:
    """Additive decomposition: observed = seasonal + trend + remainder."""

    observed: pd.Series
    seasonal: pd.Series
    trend: pd.Series
    remainder: pd.Series
    period: int

    def seasonal_cycle(self) -> np.ndarray:
        """
        Return the last full seasonal cycle.

        Its first element belongs to the same cycle position as the step right after
        the end of the series, so tiling it lines up with a forecast horizon.
        """
        return np.asarray(self.seasonal.iloc[-self.period:], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "observed": self.observed,
            "seasonal": self.seasonal,
            "trend": self.trend,
            "remainder": self.remainder,
        })


def decompose_series(series: pd.Series, period: int) -> Decomposition:
    """
    Decompose a Cleaned Series into seasonal, trend and remainder components.

    The seasonal is treated as periodic: STL runs with a seasonal window wider than the
    series and a degree-0 seasonal smoother, after which every cycle position is replaced
    by its mean over all cycles. The pattern therefore repeats with a fixed amplitude.
    The remainder is recomputed from the final seasonal and trend so the additive
    identity holds exactly.

    Parameters
    ----------
    series : pd.Series
        Series without missing values.
    period : int
        Seasonal period (12 for monthly, 4 for quarterly).

    Returns
    -------
    Decomposition

    Raises
    ------
    InvalidFrequency
        If ``period <= 1`` or the series is shorter than two full cycles.
    """
    if period is None or int(period) <= 1:
        raise InvalidFrequency(f"Seasonal period must be greater than 1, got {period}.",
                               series_id=series.name)
    period = int(period)
    values = series.astype(float)
    if values.isna().any():
        raise ValueError("decompose_series expects a series without missing values.")
    if len(values) < 2 * period:
        raise InvalidFrequency(
            f"Series of length {len(values)} is shorter than two seasonal cycles (period={period}).",
            series_id=series.name,
        )

    fit = STL(values, period=period, seasonal=10 * len(values) + 1, seasonal_deg=0, robust=False).fit()

    positions = np.arange(len(values)) % period
    raw_seasonal = np.asarray(fit.seasonal, dtype=float)
    cycle_means = np.array([raw_seasonal[positions == k].mean() for k in range(period)])

    seasonal = pd.Series(cycle_means[positions], index=values.index, name="seasonal")
    trend = pd.Series(np.asarray(fit.trend, dtype=float), index=values.index, name="trend")
    remainder = (values - seasonal - trend).rename("remainder")

    logger.debug("STL(period=%d) on %s: seasonal amplitude=%.4f", period, series.name,
                 float(np.ptp(cycle_means)))
    return Decomposition(observed=values, seasonal=seasonal, trend=trend, remainder=remainder, period=period)
