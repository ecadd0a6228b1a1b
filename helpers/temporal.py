# -*- coding: utf-8 -*-
"""
Temporal utilities for frequency alignment and aggregation.

Functions
---------
- pandas_freq(frequency): Map the pipeline's frequency labels to pandas offset aliases.
- to_lower_frequency(series, target): Aggregate a monthly series to quarterly by
  within-quarter arithmetic mean, indexed at the quarter start. Only months inside
  each quarter are used, so no look-ahead is introduced.
- infer_frequency(series): Recover the frequency label from a regular index.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

# Period-start aliases: FRED dates observations at the first day of the period.
FREQUENCY_ALIASES = {
    "monthly": "MS",
    "quarterly": "QS",
}

FREQUENCY_RANK = {
    "monthly": 12,
    "quarterly": 4,
}


def pandas_freq(frequency: str) -> str:
    """Return the pandas offset alias for 'monthly' or 'quarterly'."""
    try:
        return FREQUENCY_ALIASES[frequency]
    except KeyError:
        raise ValueError(f"Unknown frequency '{frequency}'. Valid options: {list(FREQUENCY_ALIASES)}")


def infer_frequency(series: pd.Series) -> Optional[str]:
    """
    Return 'monthly' or 'quarterly' for a regular DatetimeIndex, else None.

    Uses the index ``freq`` when set, otherwise pandas' inference on the index.
    """
    freq = getattr(series.index, "freqstr", None)
    if not freq and isinstance(series.index, pd.DatetimeIndex) and len(series.index) >= 3:
        freq = pd.infer_freq(series.index)
    if not freq:
        return None
    freq = freq.upper()
    if freq.startswith("M"):
        return "monthly"
    if freq.startswith("Q"):
        return "quarterly"
    return None


def to_lower_frequency(series: pd.Series, target: str, name: Optional[str] = None) -> pd.Series:
    """
    Aggregate a series to a lower (or equal) frequency by within-period mean.

    Parameters
    ----------
    series : pd.Series
        Series with DatetimeIndex or PeriodIndex.
    target : str
        'monthly' or 'quarterly'.
    name : Optional[str]
        Name of the returned series. Defaults to series.name.

    Returns
    -------
    pd.Series
        Series at the target period-start frequency, e.g. 2001-01-01 for 2001Q1, holding the
        arithmetic mean of the constituent observations.

    Notes
    -----
    - Time-causality: for quarter Q only months within Q are used (no look-ahead).
    - Periods without any observation are dropped rather than left as NaN.
    """
    if not isinstance(series, pd.Series):
        raise TypeError("series must be a pandas Series")

    s = series.dropna()
    if isinstance(s.index, pd.PeriodIndex):
        s = s.copy()
        s.index = s.index.to_timestamp(how="start")
    elif not isinstance(s.index, pd.DatetimeIndex):
        raise TypeError("to_lower_frequency expects a Series with DatetimeIndex or PeriodIndex.")

    out = s.resample(pandas_freq(target)).mean().dropna()
    out.name = name if name is not None else series.name
    return out
