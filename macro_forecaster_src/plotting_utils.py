# macro_forecaster_src/plotting_utils.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Optional
import logging

from .decomposition_utils import Decomposition
from .file_utils import ensure_dir

logger = logging.getLogger(__name__)

# Fan chart shading, darker for narrower bands
_BAND_ALPHAS = (0.35, 0.2, 0.12, 0.08)


def plot_series(series: pd.Series, out_path: Path, ylabel: Optional[str] = None, title: Optional[str] = None) -> None:
    """
    Render and save a single series against its date index.

    Parameters
    ----------
    series : pd.Series
        Series with a DatetimeIndex
    out_path : Path
        File path to save the rendered PNG (parents are created if missing)
    ylabel : str, optional
        Y-axis label (defaults to the series name)
    title : str, optional
        Plot title
    """
    ensure_dir(out_path.parent)
    fig, ax = plt.subplots()
    ax.plot(series.index, series.values, color="black", linewidth=1)
    ax.set_xlabel("Date")
    ax.set_ylabel(ylabel or str(series.name))
    if title:
        ax.set_title(title)
    fig.autofmt_xdate()
    plt.tight_layout()
    plt.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_series_panel(group: Dict[str, pd.Series], out_path: Path, labels: Optional[Dict[str, str]] = None) -> None:
    """
    Render and save one stacked panel per series.

    Parameters
    ----------
    group : Dict[str, pd.Series]
        Series keyed by identifier, plotted top to bottom in insertion order
    out_path : Path
        File path to save the PNG (parents are created if missing)
    labels : Dict[str, str], optional
        Panel titles keyed by identifier
    """
    if not group:
        logger.warning("No series provided for overview panel")
        return

    ensure_dir(out_path.parent)
    labels = labels or {}
    fig, axes = plt.subplots(nrows=len(group), ncols=1, dpi=300, figsize=(10, 2.6 * len(group)), squeeze=False)
    for ax, (sid, s) in zip(axes[:, 0], group.items()):
        ax.plot(s.index, s.values, color="black", linewidth=1)
        ax.set_title(labels.get(sid, sid), fontsize=9)
        ax.xaxis.set_ticks_position("none")
        ax.yaxis.set_ticks_position("none")
        ax.spines["top"].set_alpha(0)
        ax.tick_params(labelsize=7)
    fig.autofmt_xdate()
    plt.tight_layout()
    plt.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_decomposition(decomp: Decomposition, out_path: Path, title: Optional[str] = None) -> None:
    """
    Render the four STL components (observed, trend, seasonal, remainder) as stacked panels.
    """
    ensure_dir(out_path.parent)
    fig, axes = plt.subplots(nrows=4, ncols=1, sharex=True, figsize=(10, 8))
    parts = [
        ("Observed", decomp.observed),
        ("Trend", decomp.trend),
        ("Seasonal", decomp.seasonal),
        ("Remainder", decomp.remainder),
    ]
    for ax, (name, s) in zip(axes, parts):
        if name == "Remainder":
            ax.scatter(s.index, s.values, s=4, color="black")
            ax.axhline(0, color="gray", linestyle="--", linewidth=0.8)
        else:
            ax.plot(s.index, s.values, color="black", linewidth=1)
        ax.set_ylabel(name)
    axes[0].set_title(title or f"STL decomposition (period={decomp.period})")
    fig.autofmt_xdate()
    plt.tight_layout()
    plt.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_forecast_fan(history: pd.Series,
                      forecast_df: pd.DataFrame,
                      out_path: Path,
                      title: Optional[str] = None,
                      ylabel: Optional[str] = None,
                      history_window: Optional[int] = None) -> None:
    """
    Create a fan chart: observed history, point forecast and shaded prediction intervals.

    Parameters
    ----------
    history : pd.Series
        Observed series
    forecast_df : pd.DataFrame
        Forecast table with a ``mean`` column and ``lower_<lvl>``/``upper_<lvl>`` pairs
    out_path : Path
        Output file path for the plot
    title : str, optional
        Plot title
    ylabel : str, optional
        Y-axis label (defaults to the series name)
    history_window : int, optional
        Number of trailing observations to draw (all when None)
    """
    ensure_dir(out_path.parent)
    hist = history.iloc[-history_window:] if history_window else history

    levels = sorted(int(c.split("_", 1)[1]) for c in forecast_df.columns if c.startswith("lower_"))

    fig, ax = plt.subplots()
    ax.plot(hist.index, hist.values, color="black", linewidth=1.2, label="observed")
    # widest band first so narrower ones draw on top
    for i, lvl in enumerate(sorted(levels, reverse=True)):
        alpha = _BAND_ALPHAS[min(len(levels) - 1 - i, len(_BAND_ALPHAS) - 1)]
        ax.fill_between(forecast_df.index,
                        forecast_df[f"lower_{lvl}"].values,
                        forecast_df[f"upper_{lvl}"].values,
                        color="tab:blue", alpha=alpha, linewidth=0, label=f"{lvl}% interval")
    ax.plot(forecast_df.index, forecast_df["mean"].values, color="tab:blue", linewidth=1.5, label="forecast")

    ax.set_ylabel(ylabel or str(history.name))
    ax.set_title(title or "Forecast")
    ax.legend(fontsize=7)
    fig.autofmt_xdate()
    plt.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_correlation_heatmap(corr: pd.DataFrame, out_path: Path, title: str = "Correlation matrix") -> None:
    """
    Render a correlation matrix as an annotated heatmap on a fixed [-1, 1] scale.
    """
    if corr.empty:
        logger.warning("Empty correlation matrix; skipping heatmap")
        return

    ensure_dir(out_path.parent)
    n = len(corr.columns)
    fig, ax = plt.subplots(figsize=(max(4, n * 1.4), max(3.5, n * 1.2)))
    im = ax.imshow(corr.values, cmap="RdBu_r", vmin=-1.0, vmax=1.0)
    ax.set_xticks(np.arange(n))
    ax.set_yticks(np.arange(n))
    ax.set_xticklabels(corr.columns, rotation=45, ha="right")
    ax.set_yticklabels(corr.index)
    for i in range(n):
        for j in range(n):
            v = corr.values[i, j]
            if np.isfinite(v):
                ax.text(j, i, f"{v:.2f}", ha="center", va="center", fontsize=8,
                        color="white" if abs(v) > 0.6 else "black")
    fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    ax.set_title(title)
    plt.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)
