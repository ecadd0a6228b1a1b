"""Tests for residual diagnostics and diagnostic artifacts."""

import math
from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from macro_forecaster_src.diagnostics_utils import (
    ljung_box_lags, run_residual_diagnostics, save_residual_diagnostics
)
from macro_forecaster_src.errors import InsufficientData
from macro_forecaster_src.forecasting_utils import fit_arima


def _ar1(n=120, phi=0.6, seed=4):
    rng = np.random.default_rng(seed)
    y = np.zeros(n)
    e = rng.normal(size=n)
    for t in range(1, n):
        y[t] = phi * y[t - 1] + e[t]
    return pd.Series(y, index=pd.date_range("2000-01-01", periods=n, freq="QS"), name="AR")


def test_lag_rule_is_log_of_residual_count():
    assert ljung_box_lags(100) == round(math.log(100))
    assert ljung_box_lags(2) == 1
    assert ljung_box_lags(0) == 1


def test_well_specified_model_passes_ljung_box():
    model = fit_arima(_ar1(), (1, 0, 0))
    report = run_residual_diagnostics(model)

    assert report.lags == ljung_box_lags(len(model.residuals))
    assert 0.0 <= report.ljung_box_pvalue <= 1.0
    assert report.ljung_box_pvalue > 0.01
    assert report.aic == model.aic and report.bic == model.bic
    assert report.interpretation.endswith("residuals")
    assert report.to_dict()["model"] == model.label


def test_misspecified_model_flags_autocorrelation():
    # white-noise model on a strongly autocorrelated series
    model = fit_arima(_ar1(n=300, phi=0.9), (0, 0, 0))
    report = run_residual_diagnostics(model)
    assert report.autocorrelated
    assert report.ljung_box_pvalue < 0.05


def test_too_few_residuals():
    model = fit_arima(_ar1(), (1, 0, 0))
    short = replace(model, residuals=model.residuals.iloc[:2])
    with pytest.raises(InsufficientData):
        run_residual_diagnostics(short)


def test_save_residual_diagnostics_writes_artifacts(tmp_path):
    model = fit_arima(_ar1(), (1, 0, 0))
    save_residual_diagnostics(model.residuals, tmp_path / "diag", fname_prefix="AR_residuals")

    assert (tmp_path / "diag" / "AR_residuals_panel.png").exists()
    lb = pd.read_csv(tmp_path / "diag" / "AR_residuals_LjungBox.csv")
    assert {"lag", "lb_stat", "lb_pvalue"} <= set(lb.columns)
    assert lb["lag"].tolist() == list(range(1, 25))


def test_save_residual_diagnostics_empty_is_noop(tmp_path):
    save_residual_diagnostics(pd.Series(dtype=float), tmp_path)
    assert list(tmp_path.iterdir()) == []
