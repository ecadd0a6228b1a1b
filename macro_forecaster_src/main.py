# macro_forecaster_src/main.py

"""
ARIMA modeling and forecasting of US macroeconomic series retrieved from FRED.

This is the main entry point of the macro forecaster.

Purpose
-------
- Retrieve unemployment rate (UNRATE), real GDP (GDPC1) and inflation expectations (MICH)
  from FRED, or from the CSV cache under data/
- Build regularly spaced series, interpolate gaps and visualize them
- Run ADF stationarity checks on levels and first differences
- STL-decompose seasonal series; model either the series or its trend component
- Select ARIMA orders by a bounded information-criterion search
- Rolling-origin cross-validation against a naive last-value baseline
- Residual diagnostics (Ljung-Box, Jarque-Bera), forecasts with 80%/95% intervals
- Cross-series correlation on a common quarterly grid
- Export figures, CSV tables and a markdown report to the figures/ directory

Data Sources & Attribution
---------------------------
Federal Reserve Economic Data (FRED), Federal Reserve Bank of St. Louis:
- UNRATE: Bureau of Labor Statistics
- GDPC1: Bureau of Economic Analysis
- MICH: University of Michigan Surveys of Consumers

Configuration-Driven Workflow
-----------------------------
Series, date range, search bounds and evaluation settings are read from
config/settings.yaml. CLI arguments override configuration values where applicable.
"""

import argparse
import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd

from backtesting.rolling_origin import (
    CrossValidationResult, arima_forecaster, naive_forecaster, rolling_origin_evaluate, trend_arima_forecaster
)
from fetchers.fred_fetchers import (
    DEFAULT_FRED_SERIES, FredFetcher, load_observations_csv, save_observations_csv
)
from helpers.temporal import FREQUENCY_RANK

from .config_utils import initialize_config, get_config_value, get_series_entries
from .data_utils import prepare_series, align_group
from .decomposition_utils import Decomposition, decompose_series
from .diagnostics_utils import DiagnosticsReport, run_residual_diagnostics, save_residual_diagnostics
from .errors import DataUnavailable, ForecasterError, InvalidFrequency
from .file_utils import (
    ensure_dir, resolve_path, append_metrics_csv_row, export_frame_csv, md_table_from_df, append_eval_md
)
from .forecasting_utils import (
    AdjustedForecast, FittedModel, Forecast, OrderSearchConfig,
    forecast_model, hash_forecast, recombine_seasonal, select_arima_order
)
from .parsing_utils import parse_intervals_arg, parse_series_list, validate_criterion, validate_log_level
from .plotting_utils import (
    plot_series, plot_series_panel, plot_decomposition, plot_forecast_fan, plot_correlation_heatmap
)
from .stationarity_utils import StationarityResult, check_stationarity

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
MODEL_TARGETS = ("series", "trend")
_PERIOD_CODES = {"monthly": "M", "quarterly": "Q"}


@dataclass(frozen=True)
class SeriesSpec:
    """One configured series: identifier, sampling frequency and modeling choices."""

    series_id: str
    label: str
    frequency: str
    seasonal_period: int
    model_target: str = "series"

    @classmethod
    def from_entry(cls, entry: Dict) -> "SeriesSpec":
        """Build from a ``series`` entry of the configuration file."""
        frequency = str(entry.get("frequency", "monthly")).lower()
        if frequency not in FREQUENCY_RANK:
            raise InvalidFrequency(f"Unknown frequency '{frequency}'", series_id=entry.get("id"))
        target = str(entry.get("model_target", "series")).lower()
        if target not in MODEL_TARGETS:
            raise ValueError(f"model_target must be one of {MODEL_TARGETS}, got '{target}'")
        sid = str(entry["id"]).upper()
        return cls(
            series_id=sid,
            label=str(entry.get("label") or sid),
            frequency=frequency,
            seasonal_period=int(entry.get("seasonal_period", FREQUENCY_RANK[frequency])),
            model_target=target,
        )


@dataclass
class RunSettings:
    """Fixed parameters of one report run."""

    series: List[SeriesSpec]
    start: Optional[str] = "2000-01-01"
    end: Optional[str] = "2020-12-31"
    horizon: int = 12
    levels: Tuple[int, ...] = (80, 95)
    search: OrderSearchConfig = field(default_factory=OrderSearchConfig)
    stationarity_alpha: float = 0.05
    min_obs: int = 20
    cv_horizon: int = 4
    cv_min_train: int = 60
    cv_step: int = 6
    diagnostics_alpha: float = 0.05
    data_dir: Path = BASE_DIR / "data"
    figures_dir: Path = BASE_DIR / "figures"
    offline: bool = False
    show_progress: bool = True
    fetch_timeout: int = 60
    fetch_retries: int = 3
    fetch_backoff: float = 0.5


@dataclass
class SeriesReport:
    """Everything the pipeline produced for one series."""

    spec: SeriesSpec
    series: pd.Series
    stationarity_level: StationarityResult
    stationarity_diff: StationarityResult
    decomposition: Optional[Decomposition]
    model: FittedModel
    diagnostics: DiagnosticsReport
    cv: CrossValidationResult
    naive_cv: CrossValidationResult
    forecast: Union[Forecast, AdjustedForecast]
    forecast_hash: str
    artifacts: Dict[str, Path] = field(default_factory=dict)

    def metrics_row(self) -> Dict[str, object]:
        return {
            "series": self.spec.series_id,
            "model": self.model.label,
            "criterion": self.model.criterion,
            "AIC": round(self.model.aic, 4),
            "AICc": round(self.model.aicc, 4),
            "BIC": round(self.model.bic, 4),
            "ljung_box_lags": self.diagnostics.lags,
            "ljung_box_p": round(self.diagnostics.ljung_box_pvalue, 6),
            "cv_horizon": self.cv.horizon,
            "cv_windows": self.cv.n_windows,
            "cv_MAE": round(self.cv.mae, 6),
            "naive_cv_MAE": round(self.naive_cv.mae, 6),
            "forecast_horizon": self.forecast.horizon,
            "forecast_hash": self.forecast_hash,
        }


@dataclass
class SeriesOutcome:
    """Either a finished report or the error that stopped the series."""

    series_id: str
    report: Optional[SeriesReport] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.report is not None and self.error is None


def build_settings(args: Optional[argparse.Namespace] = None) -> RunSettings:
    """
    Assemble run settings from CLI arguments, the configuration file and defaults.

    Precedence follows get_config_value: CLI argument, then configuration, then default.
    """
    entries = get_series_entries()
    if entries:
        specs = [SeriesSpec.from_entry(e) for e in entries]
    else:
        specs = [
            SeriesSpec(s.series_id, s.title, s.frequency, FREQUENCY_RANK[s.frequency])
            for s in DEFAULT_FRED_SERIES.values()
        ]

    wanted = parse_series_list(getattr(args, "series", None) if args is not None else None)
    if wanted:
        known = {s.series_id: s for s in specs}
        for sid in wanted:
            if sid not in known:
                logger.warning("Series %s is not configured; skipping.", sid)
        specs = [known[sid] for sid in wanted if sid in known]

    intervals_cli = getattr(args, "intervals", None) if args is not None else None
    if intervals_cli:
        levels = parse_intervals_arg(intervals_cli)
    else:
        cfg_levels = get_config_value("forecast.intervals", [80, 95])
        levels = parse_intervals_arg(",".join(str(v) for v in cfg_levels))

    alpha = float(get_config_value("stationarity.alpha", 0.05, args, "alpha"))
    search = OrderSearchConfig(
        max_p=int(get_config_value("model.search_space.max_p", 3, args, "max_p")),
        max_q=int(get_config_value("model.search_space.max_q", 3, args, "max_q")),
        max_P=int(get_config_value("model.search_space.max_P", 1, args, "max_P")),
        max_Q=int(get_config_value("model.search_space.max_Q", 1, args, "max_Q")),
        max_d=int(get_config_value("model.search_space.max_d", 2)),
        D=int(get_config_value("model.fixed_parameters.D", 0)),
        criterion=validate_criterion(get_config_value("model.criterion", "bic", args, "criterion")),
        parsimony_delta=float(get_config_value("model.parsimony_delta", 2.0)),
        alpha=alpha,
    )

    data_dir = get_config_value("data.cache_dir", "data", args, "data_dir")
    figures_dir = get_config_value("output.figures_dir", "figures", args, "figures_dir")

    return RunSettings(
        series=specs,
        start=get_config_value("data.start", "2000-01-01", args, "start"),
        end=get_config_value("data.end", "2020-12-31", args, "end"),
        horizon=int(get_config_value("forecast.horizon", 12, args, "horizon")),
        levels=tuple(levels),
        search=search,
        stationarity_alpha=alpha,
        min_obs=int(get_config_value("stationarity.min_obs", 20)),
        cv_horizon=int(get_config_value("backtesting.rolling_origin.forecast_horizon", 4, args, "cv_horizon")),
        cv_min_train=int(get_config_value("backtesting.rolling_origin.min_train_size", 60)),
        cv_step=int(get_config_value("backtesting.rolling_origin.step", 6)),
        diagnostics_alpha=float(get_config_value("diagnostics.alpha", alpha)),
        data_dir=resolve_path(str(data_dir), BASE_DIR),
        figures_dir=resolve_path(str(figures_dir), BASE_DIR),
        offline=bool(getattr(args, "offline", False)) if args is not None else False,
        show_progress=not bool(getattr(args, "no_progress", False)) if args is not None else True,
        fetch_timeout=int(get_config_value("fetch.timeout", 60)),
        fetch_retries=int(get_config_value("fetch.retries", 3)),
        fetch_backoff=float(get_config_value("fetch.backoff_factor", 0.5)),
    )


def _cache_covers(df: pd.DataFrame, spec: SeriesSpec, settings: RunSettings) -> bool:
    """True when the cached observations span the requested start and end periods."""
    if df.empty:
        return False
    code = _PERIOD_CODES[spec.frequency]
    first, last = df["date"].min().to_period(code), df["date"].max().to_period(code)
    if settings.start and first > pd.Timestamp(settings.start).to_period(code):
        return False
    if settings.end and last < pd.Timestamp(settings.end).to_period(code):
        return False
    return True


def load_or_fetch_observations(spec: SeriesSpec, settings: RunSettings, fetcher=None) -> pd.DataFrame:
    """
    Return raw observations for a series, preferring the CSV cache under ``settings.data_dir``.

    A fetched series is written back to the cache. A cache that does not span the
    requested range is refetched; offline it is used with a warning. In offline mode a
    missing cache entry raises DataUnavailable instead of touching the network.
    """
    cache_path = settings.data_dir / f"{spec.series_id}.csv"
    if cache_path.is_file():
        df = load_observations_csv(cache_path)
        covered = _cache_covers(df, spec, settings)
        if covered or settings.offline:
            if not covered:
                logger.warning("Cached %s covers %s to %s only, narrower than the requested %s to %s",
                               spec.series_id, df["date"].min().date(), df["date"].max().date(),
                               settings.start, settings.end)
            logger.info("Loading %s from cache: %s", spec.series_id, cache_path)
            if settings.start:
                df = df[df["date"] >= pd.Timestamp(settings.start)]
            if settings.end:
                df = df[df["date"] <= pd.Timestamp(settings.end)]
            return df.reset_index(drop=True)
        logger.info("Cached %s does not cover %s to %s; refetching.", spec.series_id,
                    settings.start, settings.end)

    if settings.offline:
        raise DataUnavailable(f"Offline mode and no cached data at {cache_path}", series_id=spec.series_id)

    if fetcher is None:
        fetcher = FredFetcher(timeout=settings.fetch_timeout, retries=settings.fetch_retries,
                              backoff_factor=settings.fetch_backoff)
    df = fetcher.fetch_observations(spec.series_id, settings.start, settings.end, spec.frequency)
    save_observations_csv(df, cache_path)
    return df


def run_series_workflow(spec: SeriesSpec,
                        observations: pd.DataFrame,
                        settings: RunSettings,
                        out_dir: Path) -> SeriesReport:
    """
    Run the full pipeline for one series.

    Parameters
    ----------
    spec : SeriesSpec
        Series identifier, frequency and modeling choices
    observations : pd.DataFrame
        Raw observations with columns ['date', 'value']
    settings : RunSettings
        Run parameters
    out_dir : Path
        Directory for this series' figures and tables (created if missing)

    Returns
    -------
    SeriesReport

    Workflow
    --------
    - Regularize and interpolate the series; plot it
    - ADF on levels and first differences
    - STL decomposition when the seasonal period exceeds 1
    - Order search on the series, or on the STL trend when ``model_target == "trend"``
    - Residual diagnostics; rolling-origin CV of the selected order and a naive baseline,
      both scored against the observed series
    - Forecast with intervals, recombined with the last seasonal cycle for trend targets
    - Export forecast and candidate tables
    """
    sid = spec.series_id
    logger.info("Starting workflow for %s (%s, %s)", sid, spec.label, spec.frequency)
    ensure_dir(out_dir)
    artifacts: Dict[str, Path] = {}

    series = prepare_series(observations, spec.frequency, start=settings.start, name=sid)
    logger.info("%s: %d observations from %s to %s", sid, len(series),
                series.index[0].date(), series.index[-1].date())
    plot_series(series, out_dir / f"{sid}.png", ylabel=spec.label, title=sid)
    artifacts["series_plot"] = out_dir / f"{sid}.png"

    adf_level = check_stationarity(series, alpha=settings.stationarity_alpha, min_obs=settings.min_obs)
    logger.info("ADF test on %s: statistic=%.3f, p-value=%.3f", sid, adf_level.statistic, adf_level.p_value)
    adf_diff = check_stationarity(series.diff().dropna(), alpha=settings.stationarity_alpha,
                                  min_obs=settings.min_obs)
    logger.info("ADF test on %s (first diff): statistic=%.3f, p-value=%.3f",
                sid, adf_diff.statistic, adf_diff.p_value)

    decomposition: Optional[Decomposition] = None
    if spec.model_target == "trend" or spec.seasonal_period > 1:
        try:
            decomposition = decompose_series(series, spec.seasonal_period)
        except InvalidFrequency as e:
            if spec.model_target == "trend":
                raise
            logger.warning("%s: decomposition skipped: %s", sid, e)
    if decomposition is not None:
        plot_decomposition(decomposition, out_dir / f"{sid}_STL.png", title=f"{sid} STL decomposition")
        artifacts["decomposition_plot"] = out_dir / f"{sid}_STL.png"

    if spec.model_target == "trend":
        target = decomposition.trend.rename(sid)
        seasonal_period = 1
    else:
        target = series
        seasonal_period = spec.seasonal_period

    model = select_arima_order(target, seasonal_period=seasonal_period, config=settings.search,
                               show_progress=settings.show_progress)

    diagnostics = run_residual_diagnostics(model, alpha=settings.diagnostics_alpha)
    save_residual_diagnostics(model.residuals, out_dir, fname_prefix=f"{sid}_residuals")
    artifacts["residual_panel"] = out_dir / f"{sid}_residuals_panel.png"

    # Scored on observed values; trend targets re-decompose each training window
    if spec.model_target == "trend":
        cv_fn = trend_arima_forecaster(model.order, spec.seasonal_period, model.trend)
    else:
        cv_fn = arima_forecaster(model.order, model.seasonal_order, model.trend)
    cv = rolling_origin_evaluate(series, settings.cv_horizon, cv_fn,
                                 min_train_size=settings.cv_min_train, step=settings.cv_step,
                                 show_progress=settings.show_progress)
    naive_cv = rolling_origin_evaluate(series, settings.cv_horizon, naive_forecaster(),
                                       min_train_size=settings.cv_min_train, step=settings.cv_step)
    logger.info("%s CV MAE (h=%d): %s=%.4f naive=%.4f", sid, settings.cv_horizon,
                model.label, cv.mae, naive_cv.mae)

    forecast: Union[Forecast, AdjustedForecast] = forecast_model(model, settings.horizon, settings.levels)
    if spec.model_target == "trend":
        forecast = recombine_seasonal(forecast, decomposition.seasonal_cycle())
    fc_hash = hash_forecast(forecast.mean.values)

    fc_frame = forecast.to_frame()
    artifacts["forecast_csv"] = export_frame_csv(fc_frame, out_dir / f"forecast_{sid}.csv")
    if model.search_table is not None:
        artifacts["model_csv"] = export_frame_csv(model.search_table, out_dir / f"model_{sid}.csv",
                                                  index_label=None)
    plot_forecast_fan(series, fc_frame, out_dir / f"{sid}_forecast.png",
                      title=f"{sid}: {model.label} forecast", ylabel=spec.label,
                      history_window=8 * max(1, spec.seasonal_period))
    artifacts["forecast_plot"] = out_dir / f"{sid}_forecast.png"

    logger.info("Workflow for %s completed: %s, forecast hash %s", sid, model.label, fc_hash)
    return SeriesReport(
        spec=spec,
        series=series,
        stationarity_level=adf_level,
        stationarity_diff=adf_diff,
        decomposition=decomposition,
        model=model,
        diagnostics=diagnostics,
        cv=cv,
        naive_cv=naive_cv,
        forecast=forecast,
        forecast_hash=fc_hash,
        artifacts=artifacts,
    )


def compute_correlation(series_by_id: Dict[str, pd.Series]) -> pd.DataFrame:
    """Pearson correlation of the group after averaging to quarterly and truncating to common length."""
    aligned = align_group(series_by_id, frequency="quarterly")
    first = next(iter(aligned.values()))
    frame = pd.DataFrame({sid: s.values for sid, s in aligned.items()}, index=first.index)
    return frame.corr()


def _series_section(report: SeriesReport) -> str:
    m, diag = report.model, report.diagnostics
    lines = [
        f"**{report.spec.label}** ({report.spec.frequency}, modeled on the {report.spec.model_target})",
        "",
        f"- Observations: {len(report.series)} ({report.series.index[0].date()} to {report.series.index[-1].date()})",
        f"- ADF level: stat={report.stationarity_level.statistic:.3f}, p={report.stationarity_level.p_value:.4f}"
        f" ({report.stationarity_level.interpretation})",
        f"- ADF first difference: stat={report.stationarity_diff.statistic:.3f},"
        f" p={report.stationarity_diff.p_value:.4f}",
        f"- Selected model: {m.label}, trend='{m.trend}', by {m.criterion.upper()}",
        f"- AIC={m.aic:.3f}, AICc={m.aicc:.3f}, BIC={m.bic:.3f}",
        f"- Ljung-Box Q({diag.lags})={diag.ljung_box_stat:.3f}, p={diag.ljung_box_pvalue:.4f}: {diag.interpretation}",
        f"- Jarque-Bera p={diag.jarque_bera_pvalue:.4f}",
        f"- Rolling-origin MAE (h={report.cv.horizon}, {report.cv.n_windows} windows):"
        f" model={report.cv.mae:.4f}, naive={report.naive_cv.mae:.4f}",
        "",
        md_table_from_df(report.forecast.to_frame().reset_index().rename(columns={"index": "date"})),
    ]
    return "\n".join(lines)


def run_report(settings: RunSettings, fetcher=None) -> Dict[str, SeriesOutcome]:
    """
    Run every configured series and assemble the report.

    Each series is isolated: a pipeline error (or any unexpected exception) is logged
    and recorded in that series' outcome, and the remaining series still run.

    Parameters
    ----------
    settings : RunSettings
        Run parameters
    fetcher : optional
        Object with ``fetch_observations(series_id, start, end, frequency)``;
        defaults to a FredFetcher created on first use

    Returns
    -------
    Dict[str, SeriesOutcome]
        Outcome per series identifier, in configuration order
    """
    figures_dir = settings.figures_dir
    ensure_dir(figures_dir)
    metrics_csv = figures_dir / "metrics.csv"
    report_md = figures_dir / "report.md"

    ts = datetime.now(timezone.utc).isoformat(timespec="seconds")
    report_md.write_text(
        "# Macro forecaster report\n\n"
        f"_generated: {ts}_\n\n"
        f"Range {settings.start} to {settings.end}; horizon {settings.horizon}; "
        f"criterion {settings.search.criterion.upper()}; intervals {list(settings.levels)}.\n",
        encoding="utf-8",
    )

    if fetcher is None and not settings.offline:
        fetcher = FredFetcher(timeout=settings.fetch_timeout, retries=settings.fetch_retries,
                              backoff_factor=settings.fetch_backoff)

    outcomes: Dict[str, SeriesOutcome] = {}
    for spec in settings.series:
        sid = spec.series_id
        try:
            observations = load_or_fetch_observations(spec, settings, fetcher)
            report = run_series_workflow(spec, observations, settings, figures_dir / sid)
            outcomes[sid] = SeriesOutcome(sid, report=report)
            append_metrics_csv_row(metrics_csv, report.metrics_row())
            append_eval_md(report_md, f"{sid}: {report.model.label}", _series_section(report))
        except ForecasterError as e:
            logger.error("Workflow failed for %s (%s): %s", sid, type(e).__name__, e)
            outcomes[sid] = SeriesOutcome(sid, error=e)
        except Exception as e:
            logger.error("Unexpected failure for %s: %s", sid, e)
            outcomes[sid] = SeriesOutcome(sid, error=e)

    ok = {sid: o.report for sid, o in outcomes.items() if o.ok}
    if ok:
        plot_series_panel({sid: r.series for sid, r in ok.items()}, figures_dir / "SeriesPanel.png",
                          labels={sid: r.spec.label for sid, r in ok.items()})

    if len(ok) >= 2:
        try:
            corr = compute_correlation({sid: r.series for sid, r in ok.items()})
            export_frame_csv(corr, figures_dir / "correlation.csv", index_label="series")
            plot_correlation_heatmap(corr, figures_dir / "correlation.png",
                                     title="Correlation (quarterly averages)")
            append_eval_md(report_md, "Cross-series correlation", md_table_from_df(corr.rename_axis("series").reset_index()))
        except ForecasterError as e:
            logger.error("Correlation step failed: %s", e)

    failed = {sid: o.error for sid, o in outcomes.items() if not o.ok}
    if failed:
        body = "\n".join(f"- {sid}: {type(err).__name__}: {err}" for sid, err in failed.items())
        append_eval_md(report_md, "Failed series", body)

    logger.info("Report complete: %d succeeded, %d failed; output in %s", len(ok), len(failed), figures_dir)
    return outcomes


def setup_cli_parser() -> argparse.ArgumentParser:
    """
    Set up the command-line argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="ARIMA modeling and forecasting of FRED macroeconomic series."
    )

    # Data and output arguments
    parser.add_argument(
        "--config", type=str, default=None,
        help="YAML file merged over config/settings.yaml"
    )
    parser.add_argument(
        "--series", type=str, default=None,
        help="Comma-separated subset of configured series (e.g., 'UNRATE,GDPC1')"
    )
    parser.add_argument(
        "--start", type=str, default=None,
        help="Observation start date YYYY-MM-DD (config: data.start)"
    )
    parser.add_argument(
        "--end", type=str, default=None,
        help="Observation end date YYYY-MM-DD (config: data.end)"
    )
    parser.add_argument(
        "--data-dir", type=str, default=None,
        help="Directory for cached series CSVs (config: data.cache_dir)"
    )
    parser.add_argument(
        "--offline", action="store_true",
        help="Use cached CSVs only; never contact FRED"
    )
    parser.add_argument(
        "--figures-dir", type=str, default=None,
        help="Directory to save figures, tables and report.md (default: figures)"
    )

    # Model search arguments
    parser.add_argument(
        "--criterion", type=str, default=None, choices=["aic", "aicc", "bic"],
        help="Information criterion for order selection (config: model.criterion)"
    )
    parser.add_argument("--max-p", type=int, default=None, help="Maximum AR order")
    parser.add_argument("--max-q", type=int, default=None, help="Maximum MA order")
    parser.add_argument("--max-P", type=int, default=None, help="Maximum seasonal AR order")
    parser.add_argument("--max-Q", type=int, default=None, help="Maximum seasonal MA order")
    parser.add_argument(
        "--alpha", type=float, default=None,
        help="Significance level for ADF differencing selection"
    )

    # Forecast and evaluation arguments
    parser.add_argument(
        "--horizon", type=int, default=None,
        help="Forecast horizon in periods (config: forecast.horizon)"
    )
    parser.add_argument(
        "--intervals", type=str, default=None,
        help="Comma-separated prediction interval levels (e.g., '80,95')"
    )
    parser.add_argument(
        "--cv-horizon", type=int, default=None,
        help="Rolling-origin forecast horizon (config: backtesting.rolling_origin.forecast_horizon)"
    )

    # Runtime arguments
    parser.add_argument(
        "--no-progress", action="store_true",
        help="Disable tqdm progress bars"
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    return parser


def setup_logging(log_level: str) -> None:
    """
    Configure logging with specified level and warning filters.

    Parameters
    ----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = validate_log_level(log_level)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    if level == "DEBUG":
        warnings.resetwarnings()
        warnings.filterwarnings("default")
    else:
        from statsmodels.tools.sm_exceptions import ConvergenceWarning
        warnings.filterwarnings("ignore", category=ConvergenceWarning)
        warnings.filterwarnings("ignore", category=FutureWarning)
        warnings.filterwarnings("ignore", category=UserWarning, module="statsmodels")


def main() -> None:
    """
    Main entry point for the macro forecaster.

    Parses CLI arguments, loads configuration, runs every configured series
    and writes the report. Exits non-zero only when no series succeeded.
    """
    parser = setup_cli_parser()
    args = parser.parse_args()

    setup_logging(args.log_level)

    override = resolve_path(args.config, BASE_DIR) if args.config else None
    initialize_config(override_path=override)

    settings = build_settings(args)
    if not settings.series:
        logger.warning("No series selected; nothing to run.")
        return

    outcomes = run_report(settings)
    if not any(o.ok for o in outcomes.values()):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
