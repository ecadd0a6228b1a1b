import numpy as np
import pandas as pd
import pytest

from macro_forecaster_src.decomposition_utils import decompose_series
from macro_forecaster_src.errors import InvalidFrequency


def _seasonal_monthly(n=120, seed=3):
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    values = 5.0 + 0.02 * t + 0.8 * np.sin(2 * np.pi * t / 12) + rng.normal(scale=0.1, size=n)
    return pd.Series(values, index=pd.date_range("2005-01-01", periods=n, freq="MS"), name="UNRATE")


def test_components_add_up_to_observed():
    s = _seasonal_monthly()
    dec = decompose_series(s, 12)

    assert len(dec.seasonal) == len(dec.trend) == len(dec.remainder) == len(s)
    np.testing.assert_allclose((dec.seasonal + dec.trend + dec.remainder).values, s.values, atol=1e-9)


def test_seasonal_is_periodic():
    dec = decompose_series(_seasonal_monthly(), 12)
    seas = dec.seasonal.values
    np.testing.assert_allclose(seas[12:], seas[:-12], atol=1e-12)
    # recovers roughly the injected amplitude
    assert np.ptp(seas) == pytest.approx(1.6, abs=0.3)


def test_seasonal_cycle_is_phase_aligned_with_next_step():
    s = _seasonal_monthly(n=125)
    dec = decompose_series(s, 12)
    cycle = dec.seasonal_cycle()

    assert len(cycle) == 12
    # step n sits at cycle position n % 12, the same position as element 0 of the cycle
    assert cycle[0] == pytest.approx(dec.seasonal.iloc[125 - 12])
    assert cycle[0] == pytest.approx(dec.seasonal.iloc[125 % 12])


def test_deterministic():
    s = _seasonal_monthly()
    a = decompose_series(s, 12)
    b = decompose_series(s, 12)
    pd.testing.assert_series_equal(a.trend, b.trend)
    pd.testing.assert_series_equal(a.seasonal, b.seasonal)


def test_invalid_period_or_length():
    s = _seasonal_monthly()
    with pytest.raises(InvalidFrequency):
        decompose_series(s, 1)
    with pytest.raises(InvalidFrequency):
        decompose_series(s.iloc[:23], 12)


def test_to_frame_columns():
    frame = decompose_series(_seasonal_monthly(), 12).to_frame()
    assert frame.columns.tolist() == ["observed", "seasonal", "trend", "remainder"]
