# macro_forecaster_src/diagnostics_utils.py

import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.graphics.tsaplots import plot_acf
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.stats.stattools import jarque_bera

from .errors import InsufficientData
from .file_utils import ensure_dir
from .forecasting_utils import FittedModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticsReport:
    """Residual tests and information criteria for one fitted model."""

    model: str
    ljung_box_stat: float
    ljung_box_pvalue: float
    lags: int
    autocorrelated: bool
    aic: float
    aicc: float
    bic: float
    n_residuals: int
    residual_mean: float
    residual_std: float
    jarque_bera_stat: float
    jarque_bera_pvalue: float
    alpha: float = 0.05

    @property
    def interpretation(self) -> str:
        if self.autocorrelated:
            return "Serial correlation detected in residuals"
        return "No significant serial correlation in residuals"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def ljung_box_lags(n_residuals: int) -> int:
    """Lag count for the portmanteau test: natural log of the residual count, at least 1."""
    if n_residuals <= 1:
        return 1
    return int(max(1, min(n_residuals - 1, round(math.log(n_residuals)))))


def run_residual_diagnostics(model: FittedModel, alpha: float = 0.05) -> DiagnosticsReport:
    """
    Run the Ljung-Box and Jarque-Bera tests on a fitted model's residuals.

    Parameters
    ----------
    model : FittedModel
        Model returned by the order search or a fixed-order fit
    alpha : float, default=0.05
        Significance level for the "no residual autocorrelation" null

    Returns
    -------
    DiagnosticsReport
        Test statistics, p-values and the model's AIC/AICc/BIC

    Raises
    ------
    InsufficientData
        If fewer than 3 finite residuals are available
    """
    resid = pd.Series(model.residuals).dropna()
    resid = resid[np.isfinite(resid.values)]
    if len(resid) < 3:
        raise InsufficientData(f"Residual diagnostics need at least 3 residuals, got {len(resid)}.",
                               series_id=model.series_id)

    lags = ljung_box_lags(len(resid))
    lb = acorr_ljungbox(resid.values, lags=[lags], return_df=True)
    lb_stat = float(lb["lb_stat"].iloc[-1])
    lb_pvalue = float(lb["lb_pvalue"].iloc[-1])

    jb_stat, jb_pvalue, _, _ = jarque_bera(resid.values)

    report = DiagnosticsReport(
        model=model.label,
        ljung_box_stat=lb_stat,
        ljung_box_pvalue=lb_pvalue,
        lags=lags,
        autocorrelated=bool(lb_pvalue < alpha),
        aic=model.aic,
        aicc=model.aicc,
        bic=model.bic,
        n_residuals=len(resid),
        residual_mean=float(resid.mean()),
        residual_std=float(resid.std(ddof=1)),
        jarque_bera_stat=float(jb_stat),
        jarque_bera_pvalue=float(jb_pvalue),
        alpha=alpha,
    )
    logger.info("%s %s: Ljung-Box Q(%d)=%.3f p=%.4f; AIC=%.2f BIC=%.2f",
                model.series_id or "series", model.label, lags, lb_stat, lb_pvalue, model.aic, model.bic)
    return report


def save_residual_diagnostics(residuals: Union[pd.Series, np.ndarray],
                              out_dir: Path,
                              fname_prefix: str = "Residuals") -> None:
    """
    Save residual diagnostics: time plot, ACF, histogram with normal overlay, Ljung-Box table.

    Parameters
    ----------
    residuals : Union[pd.Series, np.ndarray]
        Residual vector from a fitted model
    out_dir : Path
        Output directory where diagnostic artifacts will be written
    fname_prefix : str, default="Residuals"
        Prefix for output filenames to distinguish different series

    Notes
    -----
    Creates the following files:
    - {prefix}_panel.png: residual time plot (top), ACF and histogram (bottom)
    - {prefix}_LjungBox.csv: Ljung-Box test results for lags 1..min(24, n-1)
    """
    ensure_dir(out_dir)
    resid = pd.Series(residuals).dropna()
    if resid.empty:
        logger.warning("Residual diagnostics skipped: empty residual series.")
        return

    _save_residual_panel(resid, out_dir, fname_prefix)
    _save_ljungbox_table(resid, out_dir, fname_prefix)


def _save_residual_panel(resid: pd.Series, out_dir: Path, fname_prefix: str) -> None:
    lags = int(min(24, max(1, len(resid) // 4)))
    try:
        fig = plt.figure(figsize=(10, 7), dpi=150)
        ax_ts = fig.add_subplot(2, 1, 1)
        ax_acf = fig.add_subplot(2, 2, 3)
        ax_hist = fig.add_subplot(2, 2, 4)

        ax_ts.plot(resid.index, resid.values, color="tab:blue", linewidth=1)
        ax_ts.axhline(0, color="red", linestyle="--", alpha=0.5)
        ax_ts.set_title("Residuals")

        plot_acf(resid.values, ax=ax_acf, lags=lags, zero=False)
        ax_acf.set_title("Residual ACF")

        ax_hist.hist(resid.values, bins=20, density=True, alpha=0.7, color="skyblue")
        sd = float(resid.std(ddof=1))
        if np.isfinite(sd) and sd > 0:
            x = np.linspace(resid.min(), resid.max(), 100)
            ax_hist.plot(x, stats.norm.pdf(x, resid.mean(), sd), "r-", linewidth=1.5, label="Normal")
            ax_hist.legend()
        ax_hist.set_title("Residual distribution")

        fig.tight_layout()
        fig.savefig(out_dir / f"{fname_prefix}_panel.png", dpi=300)
        plt.close(fig)
        logger.debug("Residual panel saved successfully")
    except (ValueError, np.linalg.LinAlgError) as e:
        plt.close("all")
        logger.debug("Failed to render residual panel: %s", e)


def _save_ljungbox_table(resid: pd.Series, out_dir: Path, fname_prefix: str) -> None:
    max_lag = int(min(24, max(1, len(resid) - 1)))
    try:
        df_lb = acorr_ljungbox(resid.values, lags=np.arange(1, max_lag + 1), return_df=True)
        df_lb.index.name = "lag"
        df_lb.to_csv(out_dir / f"{fname_prefix}_LjungBox.csv", index=True)
        logger.debug("Ljung-Box table saved successfully")
    except ValueError as e:
        logger.debug("Ljung-Box table skipped: %s", e)
