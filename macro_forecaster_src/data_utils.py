# macro_forecaster_src/data_utils.py

import logging
from typing import Dict, Optional, Union

import pandas as pd

from helpers.temporal import FREQUENCY_RANK, infer_frequency, pandas_freq, to_lower_frequency
from .errors import InsufficientData, InvalidFrequency

logger = logging.getLogger(__name__)

# pandas period codes used to snap observation dates onto period starts
_PERIOD_CODES = {
    "monthly": "M",
    "quarterly": "Q",
}


def to_regular_series(observations: pd.DataFrame,
                      frequency: str,
                      start: Optional[Union[str, pd.Timestamp]] = None,
                      name: Optional[str] = None) -> pd.Series:
    """
    Build a regularly spaced series from raw observations.

    Every period between ``start`` and the last observation appears in the index;
    periods without an observation (or with a missing value) are explicit NaN.

    Parameters
    ----------
    observations : pd.DataFrame
        Raw frame with 'date' and 'value' columns (as returned by the fetcher).
    frequency : str
        'monthly' or 'quarterly'.
    start : Optional[Union[str, pd.Timestamp]]
        First period of the output. Defaults to the first observed period.
    name : Optional[str]
        Name attached to the returned series.

    Returns
    -------
    pd.Series
        Series with a period-start DatetimeIndex at the declared frequency.

    Raises
    ------
    InvalidFrequency
        If the frequency label is unknown, dates are duplicated, or dates do not fall on
        period starts of the declared frequency.
    InsufficientData
        If no observation falls inside the requested range.
    """
    if frequency not in _PERIOD_CODES:
        raise InvalidFrequency(f"Unknown frequency '{frequency}'. Valid options: {list(_PERIOD_CODES)}",
                               series_id=name)
    if observations is None or observations.empty:
        raise InsufficientData("No observations to build a series from.", series_id=name)

    dates = pd.to_datetime(observations["date"], errors="coerce")
    values = pd.to_numeric(observations["value"], errors="coerce").astype(float)
    frame = pd.DataFrame({"date": dates, "value": values}).dropna(subset=["date"]).sort_values("date")

    if frame["date"].duplicated().any():
        raise InvalidFrequency("Observation dates must be strictly increasing (duplicates found).",
                               series_id=name)

    period_starts = frame["date"].dt.to_period(_PERIOD_CODES[frequency]).dt.to_timestamp(how="start")
    if not (period_starts.values == frame["date"].values).all():
        raise InvalidFrequency(
            f"Observation dates are not aligned to {frequency} period starts; aggregate the data first.",
            series_id=name,
        )

    first = pd.Timestamp(start) if start is not None else frame["date"].iloc[0]
    first = first.to_period(_PERIOD_CODES[frequency]).to_timestamp(how="start")
    last = frame["date"].iloc[-1]
    if first > last:
        raise InsufficientData(f"No observations on or after {first.date()}.", series_id=name)

    index = pd.date_range(first, last, freq=pandas_freq(frequency))
    series = pd.Series(frame["value"].values, index=pd.DatetimeIndex(frame["date"].values)).reindex(index)
    series.index.name = "date"
    series.name = name
    return series


def interpolate_missing(series: pd.Series) -> pd.Series:
    """
    Fill missing values by linear interpolation between the nearest known neighbours.

    Interior gaps are interpolated on the position axis. Leading and trailing gaps have
    only one neighbour, so they are trimmed: the result runs from the first to the last
    known value.

    Raises
    ------
    InsufficientData
        If fewer than 2 known points exist.
    """
    known = int(series.notna().sum())
    if known < 2:
        raise InsufficientData(f"Interpolation needs at least 2 known points, got {known}.",
                               series_id=series.name)
    inner = series.loc[series.first_valid_index():series.last_valid_index()]
    return inner.interpolate(method="linear", limit_area="inside")


def prepare_series(observations: pd.DataFrame,
                   frequency: str,
                   start: Optional[Union[str, pd.Timestamp]] = None,
                   name: Optional[str] = None) -> pd.Series:
    """
    Convert raw observations into a Cleaned Series (regular index, no missing values).
    """
    series = to_regular_series(observations, frequency, start=start, name=name)
    cleaned = interpolate_missing(series)
    n_trimmed = len(series) - len(cleaned)
    if n_trimmed:
        logger.warning("%s: dropped %d leading/trailing periods without observations; series starts %s",
                       name or "series", n_trimmed, cleaned.index[0].date())
    n_filled = int(series.loc[cleaned.index].isna().sum())
    if n_filled:
        logger.info("%s: filled %d missing of %d values by linear interpolation",
                    name or "series", n_filled, len(cleaned))
    return cleaned


def _with_inferred_freq(series: pd.Series) -> pd.Series:
    if isinstance(series.index, pd.DatetimeIndex) and series.index.freq is None and len(series) >= 3:
        series = series.copy()
        series.index = pd.DatetimeIndex(series.index, freq="infer")
    return series


def truncate_to_common_length(group: Dict[str, pd.Series]) -> Dict[str, pd.Series]:
    """
    Align a comparison group to a common start period and a common length.

    NaNs are dropped first, each member is trimmed to the latest first period in the
    group, and the minimum length is recomputed on the trimmed members before every
    member is cut to it. Applying the function to its own output returns it unchanged.

    Parameters
    ----------
    group : Dict[str, pd.Series]
        Series keyed by identifier, all at the same frequency.

    Returns
    -------
    Dict[str, pd.Series]
        Members of identical length and start period, in the input order.

    Raises
    ------
    InvalidFrequency
        If members have different frequencies.
    InsufficientData
        If any member is empty after NA removal or the members share no period.
    """
    if not group:
        return {}

    freqs = {sid: infer_frequency(s) for sid, s in group.items()}
    distinct = {f for f in freqs.values() if f is not None}
    if len(distinct) > 1:
        raise InvalidFrequency(f"Comparison group mixes frequencies: {freqs}")

    cleaned = {sid: s.dropna() for sid, s in group.items()}
    for sid, s in cleaned.items():
        if s.empty:
            raise InsufficientData("Series is empty after NA removal.", series_id=sid)

    common_start = max(s.index[0] for s in cleaned.values())
    trimmed = {sid: s.loc[s.index >= common_start] for sid, s in cleaned.items()}

    # Minimum is recomputed after NA removal and start alignment
    min_len = min(len(s) for s in trimmed.values())
    if min_len == 0:
        raise InsufficientData("Comparison group members share no common period.")

    out = {sid: _with_inferred_freq(s.iloc[:min_len]) for sid, s in trimmed.items()}
    logger.debug("Truncated comparison group %s to %d observations from %s",
                 list(out), min_len, common_start)
    return out


def align_group(group: Dict[str, pd.Series], frequency: str = "quarterly") -> Dict[str, pd.Series]:
    """
    Bring a mixed-frequency group to one frequency, then truncate to a common length.

    Members sampled more often than ``frequency`` are averaged within each period; members
    already at ``frequency`` pass through unchanged.
    """
    target_rank = FREQUENCY_RANK[frequency]
    converted: Dict[str, pd.Series] = {}
    for sid, s in group.items():
        freq = infer_frequency(s)
        if freq is None:
            raise InvalidFrequency("Cannot infer the sampling frequency.", series_id=sid)
        if FREQUENCY_RANK[freq] < target_rank:
            raise InvalidFrequency(f"Cannot disaggregate {freq} data to {frequency}.", series_id=sid)
        converted[sid] = to_lower_frequency(s, frequency, name=sid) if freq != frequency else s
    return truncate_to_common_length(converted)
