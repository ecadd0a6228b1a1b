"""End-to-end report run with a stub fetcher: per-series isolation and exported artifacts."""

import argparse
import logging

import numpy as np
import pandas as pd
import pytest

from backtesting.rolling_origin import naive_forecaster, rolling_origin_evaluate, trend_arima_forecaster
from config import ConfigurationManager
from fetchers.fred_fetchers import save_observations_csv
from macro_forecaster_src import config_utils
from macro_forecaster_src.errors import DataUnavailable, InsufficientData
from macro_forecaster_src.forecasting_utils import AdjustedForecast, Forecast, OrderSearchConfig
from macro_forecaster_src.main import (
    RunSettings, SeriesSpec, build_settings, load_or_fetch_observations, run_report
)


def _monthly_seasonal(n=120, seed=1):
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    values = 6.0 + np.cumsum(rng.normal(scale=0.3, size=n)) + 0.5 * np.sin(2 * np.pi * t / 12)
    return pd.DataFrame({"date": pd.date_range("2005-01-01", periods=n, freq="MS"), "value": values})


def _quarterly_drift(n=60, seed=2):
    rng = np.random.default_rng(seed)
    values = 100.0 + np.cumsum(0.5 + rng.normal(scale=0.8, size=n))
    return pd.DataFrame({"date": pd.date_range("2005-01-01", periods=n, freq="QS"), "value": values})


class StubFetcher:
    def __init__(self):
        self.calls = []
        self.frames = {
            "TRND": _monthly_seasonal(),
            "QGDP": _quarterly_drift(),
            "TINY": _quarterly_drift(n=10),
        }

    def fetch_observations(self, series_id, start=None, end=None, frequency=None):
        self.calls.append(series_id)
        if series_id == "GONE":
            raise DataUnavailable("no observations", series_id=series_id)
        if series_id == "BOOM":
            raise RuntimeError("unexpected parser failure")
        return self.frames[series_id].copy()


def _settings(tmp_path, series):
    return RunSettings(
        series=series,
        start="2005-01-01",
        end="2020-12-31",
        horizon=6,
        levels=(80, 95),
        search=OrderSearchConfig(max_p=1, max_q=1, max_P=0, max_Q=0),
        cv_horizon=3,
        cv_min_train=40,
        cv_step=12,
        data_dir=tmp_path / "data",
        figures_dir=tmp_path / "figures",
        show_progress=False,
    )


def test_failures_are_isolated_per_series(tmp_path):
    specs = [
        SeriesSpec("TRND", "Trend target", "monthly", 12, model_target="trend"),
        SeriesSpec("GONE", "Missing", "monthly", 12),
        SeriesSpec("QGDP", "Quarterly level", "quarterly", 4),
        SeriesSpec("TINY", "Too short", "quarterly", 4),
        SeriesSpec("BOOM", "Crashes", "monthly", 12),
    ]
    fetcher = StubFetcher()
    outcomes = run_report(_settings(tmp_path, specs), fetcher=fetcher)

    assert list(outcomes) == ["TRND", "GONE", "QGDP", "TINY", "BOOM"]
    assert outcomes["TRND"].ok and outcomes["QGDP"].ok
    assert isinstance(outcomes["GONE"].error, DataUnavailable)
    assert isinstance(outcomes["TINY"].error, InsufficientData)
    assert isinstance(outcomes["BOOM"].error, RuntimeError)
    assert not outcomes["GONE"].ok

    trnd = outcomes["TRND"].report
    assert isinstance(trnd.forecast, AdjustedForecast)
    assert trnd.forecast.horizon == 6
    assert trnd.decomposition is not None
    assert trnd.model.seasonal_order == (0, 0, 0, 0)
    assert trnd.cv.mae >= 0 and trnd.naive_cv.mae >= 0
    # CV of a trend-modeled series is scored on the observed values, not on the smoothed trend
    observed_cv = rolling_origin_evaluate(trnd.series, 3,
                                          trend_arima_forecaster(trnd.model.order, 12, trnd.model.trend),
                                          min_train_size=40, step=12)
    assert trnd.cv.window_mae == pytest.approx(observed_cv.window_mae)
    assert trnd.naive_cv.mae == pytest.approx(
        rolling_origin_evaluate(trnd.series, 3, naive_forecaster(), min_train_size=40, step=12).mae)

    qgdp = outcomes["QGDP"].report
    assert isinstance(qgdp.forecast, Forecast)
    assert qgdp.model.series_id == "QGDP"

    figures = tmp_path / "figures"
    metrics = pd.read_csv(figures / "metrics.csv")
    assert metrics["series"].tolist() == ["TRND", "QGDP"]
    assert (metrics["cv_MAE"] >= 0).all()

    fc = pd.read_csv(figures / "TRND" / "forecast_TRND.csv")
    assert len(fc) == 6
    assert {"mean", "lower_95", "upper_95", "seasonal", "trend_mean"} <= set(fc.columns)
    assert (figures / "QGDP" / "model_QGDP.csv").exists()
    assert (figures / "correlation.csv").exists()
    assert (figures / "SeriesPanel.png").exists()

    report_md = (figures / "report.md").read_text(encoding="utf-8")
    assert "Failed series" in report_md
    assert "GONE: DataUnavailable" in report_md
    assert "Cross-series correlation" in report_md

    # fetched series are cached for the next run
    assert (tmp_path / "data" / "TRND.csv").exists()


def test_offline_mode_uses_cache_only(tmp_path):
    spec = SeriesSpec("QGDP", "Quarterly level", "quarterly", 4)
    settings = _settings(tmp_path, [spec])
    settings.offline = True

    with pytest.raises(DataUnavailable):
        load_or_fetch_observations(spec, settings, fetcher=StubFetcher())

    settings.offline = False
    fetcher = StubFetcher()
    first = load_or_fetch_observations(spec, settings, fetcher=fetcher)

    settings.offline = True
    settings.start = "2010-01-01"
    cached = load_or_fetch_observations(spec, settings, fetcher=fetcher)
    assert fetcher.calls == ["QGDP"]
    assert cached["date"].min() >= pd.Timestamp("2010-01-01")
    assert len(cached) < len(first)


def test_build_settings_applies_cli_over_config(monkeypatch):
    monkeypatch.setattr(config_utils, "config_manager", ConfigurationManager())
    args = argparse.Namespace(series="gdpc1", horizon=8, max_p=1, max_q=None, max_P=None, max_Q=None,
                              criterion="aic", alpha=None, intervals="90", cv_horizon=None,
                              start=None, end=None, data_dir=None, figures_dir=None,
                              offline=True, no_progress=True)
    settings = build_settings(args)

    assert [s.series_id for s in settings.series] == ["GDPC1"]
    assert settings.series[0].frequency == "quarterly"
    assert settings.horizon == 8
    assert settings.levels == (90,)
    assert settings.search.max_p == 1
    assert settings.search.max_q == 3
    assert settings.search.criterion == "aic"
    assert settings.cv_horizon == 4
    assert settings.start == "2000-01-01"
    assert settings.offline and not settings.show_progress


def test_series_spec_from_entry_defaults():
    spec = SeriesSpec.from_entry({"id": "mich", "frequency": "monthly"})
    assert spec.series_id == "MICH"
    assert spec.seasonal_period == 12
    assert spec.model_target == "series"
    with pytest.raises(ValueError):
        SeriesSpec.from_entry({"id": "X", "frequency": "monthly", "model_target": "residual"})


def test_narrow_cache_is_refetched_online_and_flagged_offline(tmp_path, caplog):
    spec = SeriesSpec("QGDP", "Quarterly level", "quarterly", 4)
    settings = _settings(tmp_path, [spec])
    settings.end = "2019-12-31"
    full = StubFetcher().frames["QGDP"]
    save_observations_csv(full[full["date"] >= pd.Timestamp("2010-01-01")], tmp_path / "data" / "QGDP.csv")

    settings.offline = True
    with caplog.at_level(logging.WARNING, logger="macro_forecaster_src.main"):
        narrow = load_or_fetch_observations(spec, settings, fetcher=StubFetcher())
    assert narrow["date"].min() == pd.Timestamp("2010-01-01")
    assert any("narrower than the requested" in r.getMessage() for r in caplog.records)

    settings.offline = False
    fetcher = StubFetcher()
    refreshed = load_or_fetch_observations(spec, settings, fetcher=fetcher)
    assert fetcher.calls == ["QGDP"]
    assert refreshed["date"].min() == pd.Timestamp("2005-01-01")

    # the refreshed cache now spans the range and is reused
    again = StubFetcher()
    load_or_fetch_observations(spec, settings, fetcher=again)
    assert again.calls == []
