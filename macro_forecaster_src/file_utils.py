# macro_forecaster_src/file_utils.py

import csv
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

METRICS_HEADER = [
    "series", "model", "criterion", "AIC", "AICc", "BIC",
    "ljung_box_lags", "ljung_box_p", "cv_horizon", "cv_windows",
    "cv_MAE", "naive_cv_MAE", "forecast_horizon", "forecast_hash",
]


def ensure_dir(path: Path) -> None:
    """
    Create directory if it doesn't exist, including all parent directories.

    Parameters
    ----------
    path : Path
        Directory path to create
    """
    path.mkdir(parents=True, exist_ok=True)


def resolve_path(path_str: str, base_dir: Path) -> Path:
    """
    Resolve a path string relative to a base directory if not absolute.

    Examples
    --------
    >>> resolve_path("data/UNRATE.csv", Path("/project"))
    PosixPath('/project/data/UNRATE.csv')
    >>> resolve_path("/absolute/path.csv", Path("/project"))
    PosixPath('/absolute/path.csv')
    """
    p = Path(path_str)
    return p if p.is_absolute() else (base_dir / p)


def append_metrics_csv_row(csv_path: Optional[Path],
                           row: Dict[str, Any],
                           header: List[str] = METRICS_HEADER) -> None:
    """
    Append a single metrics row to CSV, creating header on first write.

    Parameters
    ----------
    csv_path : Optional[Path]
        Path to metrics CSV file (None to skip writing)
    row : Dict[str, Any]
        Metric values keyed by column name; keys outside ``header`` are ignored
    header : List[str]
        Column names for the CSV
    """
    if csv_path is None:
        return

    try:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        exists = csv_path.exists()

        with csv_path.open("a", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=header, extrasaction="ignore")
            if not exists:
                writer.writeheader()
            writer.writerow(row)

    except OSError as e:
        logger.error("Failed to append metrics to %s: %s", csv_path, e)


def export_frame_csv(df: pd.DataFrame, out_path: Path, index_label: Optional[str] = "date") -> Path:
    """Write a result table to CSV, creating the parent directory if needed."""
    ensure_dir(out_path.parent)
    df.to_csv(out_path, index=index_label is not None, index_label=index_label)
    logger.debug("Wrote %s (%d rows)", out_path, len(df))
    return out_path


def md_table_from_df(df: pd.DataFrame,
                     max_rows: int = 20,
                     columns: Optional[List[str]] = None,
                     float_fmt: str = "{:.4f}") -> str:
    """
    Convert a DataFrame to markdown table format.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to convert
    max_rows : int, default=20
        Maximum number of rows to include
    columns : Optional[List[str]]
        Specific columns to include (None for all)
    float_fmt : str, default="{:.4f}"
        Format applied to float cells

    Returns
    -------
    str
        Markdown table string, or empty string when there is nothing to show
    """
    if columns is not None:
        keep = [c for c in columns if c in df.columns]
        if keep:
            df = df.loc[:, keep]

    df_disp = df.head(max_rows)
    cols = list(df_disp.columns)
    if not cols:
        return ""

    def _fmt(v: Any) -> str:
        if isinstance(v, float):
            return float_fmt.format(v)
        return str(v)

    header = "| " + " | ".join(str(c) for c in cols) + " |"
    separator = "| " + " | ".join("---" for _ in cols) + " |"
    rows = ["| " + " | ".join(_fmt(row[c]) for c in cols) + " |" for _, row in df_disp.iterrows()]
    return "\n".join([header, separator] + rows)


def append_eval_md(eval_md_path: Path, title: str, body: str) -> None:
    """
    Append a section to the markdown report with a UTC timestamp.
    """
    ensure_dir(eval_md_path.parent)
    ts = datetime.now(timezone.utc).isoformat(timespec="seconds")
    with eval_md_path.open("a", encoding="utf-8") as f:
        f.write(f"\n\n## {title}  \n")
        f.write(f"_timestamp: {ts}_\n\n")
        f.write(body.strip() + "\n")
