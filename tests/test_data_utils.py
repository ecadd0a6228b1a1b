import numpy as np
import pandas as pd
import pytest

from macro_forecaster_src.data_utils import (
    align_group, interpolate_missing, prepare_series, to_regular_series, truncate_to_common_length
)
from macro_forecaster_src.errors import InsufficientData, InvalidFrequency


def _observations(dates, values):
    return pd.DataFrame({"date": pd.to_datetime(dates), "value": values})


def test_regular_series_makes_gaps_explicit():
    obs = _observations(["2020-01-01", "2020-02-01", "2020-04-01"], [1.0, 2.0, 4.0])
    s = to_regular_series(obs, "monthly", name="X")

    assert list(s.index) == list(pd.date_range("2020-01-01", periods=4, freq="MS"))
    assert np.isnan(s.loc["2020-03-01"])
    assert s.name == "X"


def test_regular_series_start_before_first_observation():
    obs = _observations(["2020-04-01", "2020-07-01"], [1.0, 2.0])
    s = to_regular_series(obs, "quarterly", start="2020-01-01")
    assert s.index[0] == pd.Timestamp("2020-01-01")
    assert np.isnan(s.iloc[0])


def test_regular_series_rejects_bad_input():
    with pytest.raises(InvalidFrequency):
        to_regular_series(_observations(["2020-01-01"], [1.0]), "weekly")
    with pytest.raises(InsufficientData):
        to_regular_series(_observations([], []), "monthly")
    with pytest.raises(InvalidFrequency):
        to_regular_series(_observations(["2020-01-01", "2020-01-01"], [1.0, 2.0]), "monthly")
    with pytest.raises(InvalidFrequency):
        to_regular_series(_observations(["2020-01-15", "2020-02-15"], [1.0, 2.0]), "monthly")


def test_interpolation_strictly_between_neighbours():
    rng = np.random.default_rng(7)
    idx = pd.date_range("2000-01-01", "2020-12-01", freq="MS")
    values = np.cumsum(rng.normal(size=len(idx))) + 5.0
    gaps = rng.choice(np.arange(1, len(idx) - 1), size=30, replace=False)
    raw = pd.Series(values, index=idx)
    raw.iloc[gaps] = np.nan

    filled = interpolate_missing(raw)
    assert filled.notna().all()

    known_pos = np.flatnonzero(raw.notna().values)
    for pos in np.flatnonzero(raw.isna().values):
        left = known_pos[known_pos < pos].max()
        right = known_pos[known_pos > pos].min()
        lo, hi = sorted([raw.iloc[left], raw.iloc[right]])
        assert lo < filled.iloc[pos] < hi


def test_single_missing_month_lies_strictly_between_neighbours():
    idx = pd.date_range("2020-01-01", periods=3, freq="MS")
    s = pd.Series([2.0, np.nan, 5.0], index=idx)
    filled = interpolate_missing(s).loc["2020-02-01"]
    assert 2.0 < filled < 5.0
    assert filled == pytest.approx(3.5)


def test_interpolation_is_linear_and_trims_edges():
    s = pd.Series([np.nan, 1.0, np.nan, np.nan, 4.0, np.nan])
    out = interpolate_missing(s)
    assert out.index.tolist() == [1, 2, 3, 4]
    assert out.tolist() == pytest.approx([1.0, 2.0, 3.0, 4.0])


def test_prepare_series_does_not_invent_history_before_first_observation():
    obs = _observations(pd.date_range("2005-01-01", periods=30, freq="MS"), np.arange(30.0))
    s = prepare_series(obs, "monthly", start="2000-01-01", name="LATE")

    assert len(s) == 30
    assert s.index[0] == pd.Timestamp("2005-01-01")
    assert s.tolist() == pytest.approx(list(np.arange(30.0)))


def test_interpolation_needs_two_points():
    with pytest.raises(InsufficientData):
        interpolate_missing(pd.Series([np.nan, 1.0, np.nan]))


def test_prepare_series_fills_missing_marker():
    obs = _observations(pd.date_range("2020-01-01", periods=5, freq="QS"), [1.0, np.nan, 3.0, 4.0, 5.0])
    s = prepare_series(obs, "quarterly", name="GDPC1")
    assert s.notna().all()
    assert s.iloc[1] == pytest.approx(2.0)


def test_truncate_to_common_length_aligns_and_is_idempotent():
    a = pd.Series(np.arange(10.0), index=pd.date_range("2000-01-01", periods=10, freq="QS"))
    b = pd.Series(np.arange(8.0), index=pd.date_range("2000-07-01", periods=8, freq="QS"))
    b.iloc[-1] = np.nan

    out = truncate_to_common_length({"a": a, "b": b})
    assert len(out["a"]) == len(out["b"]) == 7
    assert out["a"].index[0] == out["b"].index[0] == pd.Timestamp("2000-07-01")

    again = truncate_to_common_length(out)
    for key in out:
        pd.testing.assert_series_equal(again[key], out[key], check_freq=False)


def test_truncate_rejects_mixed_frequency():
    m = pd.Series(np.arange(12.0), index=pd.date_range("2000-01-01", periods=12, freq="MS"))
    q = pd.Series(np.arange(4.0), index=pd.date_range("2000-01-01", periods=4, freq="QS"))
    with pytest.raises(InvalidFrequency):
        truncate_to_common_length({"m": m, "q": q})


def test_align_group_averages_monthly_to_quarterly():
    m = pd.Series(np.arange(1.0, 13.0), index=pd.date_range("2000-01-01", periods=12, freq="MS"))
    q = pd.Series([10.0, 20.0, 30.0], index=pd.date_range("2000-04-01", periods=3, freq="QS"))

    out = align_group({"m": m, "q": q}, frequency="quarterly")
    assert len(out["m"]) == len(out["q"]) == 3
    # Q2 months are 4, 5, 6
    assert out["m"].iloc[0] == pytest.approx(5.0)
    assert out["q"].iloc[0] == pytest.approx(10.0)
