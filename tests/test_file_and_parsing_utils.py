from pathlib import Path

import pandas as pd
import pytest

from macro_forecaster_src.file_utils import (
    METRICS_HEADER, append_eval_md, append_metrics_csv_row, export_frame_csv, md_table_from_df, resolve_path
)
from macro_forecaster_src.parsing_utils import (
    parse_intervals_arg, parse_series_list, validate_criterion, validate_log_level
)


def test_metrics_header_written_once(tmp_path):
    csv_path = tmp_path / "out" / "metrics.csv"
    append_metrics_csv_row(csv_path, {"series": "UNRATE", "cv_MAE": 0.1, "unknown": 1})
    append_metrics_csv_row(csv_path, {"series": "GDPC1", "cv_MAE": 0.2})

    df = pd.read_csv(csv_path)
    assert df.columns.tolist() == METRICS_HEADER
    assert df["series"].tolist() == ["UNRATE", "GDPC1"]
    assert "unknown" not in df.columns


def test_metrics_none_path_is_noop():
    append_metrics_csv_row(None, {"series": "UNRATE"})


def test_export_frame_csv_creates_parent(tmp_path):
    df = pd.DataFrame({"mean": [1.0, 2.0]}, index=pd.date_range("2021-01-01", periods=2, freq="MS"))
    out = export_frame_csv(df, tmp_path / "a" / "b" / "forecast.csv")
    back = pd.read_csv(out)
    assert back.columns.tolist() == ["date", "mean"]


def test_md_table_formats_floats():
    df = pd.DataFrame({"model": ["ARIMA(1,0,0)"], "AIC": [12.34567]})
    table = md_table_from_df(df)
    lines = table.splitlines()
    assert lines[0] == "| model | AIC |"
    assert lines[1] == "| --- | --- |"
    assert lines[2] == "| ARIMA(1,0,0) | 12.3457 |"
    assert md_table_from_df(pd.DataFrame()) == ""


def test_append_eval_md_adds_sections(tmp_path):
    md = tmp_path / "report.md"
    append_eval_md(md, "UNRATE", "body one")
    append_eval_md(md, "GDPC1", "body two")
    text = md.read_text(encoding="utf-8")
    assert text.count("## ") == 2
    assert "_timestamp:" in text and "body two" in text


def test_resolve_path():
    assert resolve_path("data/x.csv", Path("/project")) == Path("/project/data/x.csv")
    assert resolve_path("/abs/x.csv", Path("/project")) == Path("/abs/x.csv")


def test_parse_intervals():
    assert parse_intervals_arg("95, 80, 95") == [80, 95]
    assert parse_intervals_arg(None) == [80, 95]
    assert parse_intervals_arg("0,150") == [80, 95]
    assert parse_intervals_arg("abc") == [80, 95]


def test_parse_series_list():
    assert parse_series_list("unrate, GDPC1,unrate") == ["UNRATE", "GDPC1"]
    assert parse_series_list(None) == []


def test_validators():
    assert validate_criterion(" AICc ") == "aicc"
    assert validate_log_level("debug") == "DEBUG"
    with pytest.raises(ValueError):
        validate_criterion("hqic")
    with pytest.raises(ValueError):
        validate_log_level("loud")
