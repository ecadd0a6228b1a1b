"""Tests for the FRED fetcher using a stub HTTP session (no network)."""

import numpy as np
import pandas as pd
import pytest
import requests

from fetchers.fred_fetchers import (
    FredFetcher, build_retry_session, load_observations_csv, observations_to_frame, save_observations_csv
)
from macro_forecaster_src.errors import DataUnavailable


class _StubResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self.bad_json:
            raise ValueError("not json")
        return self.payload


class _StubSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {}), timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


def _payload(values):
    dates = pd.date_range("2020-01-01", periods=len(values), freq="MS")
    return {"observations": [{"date": d.strftime("%Y-%m-%d"), "value": v} for d, v in zip(dates, values)]}


def test_fetch_observations_parses_and_marks_missing():
    session = _StubSession(_StubResponse(_payload(["3.5", ".", "3.7"])))
    fetcher = FredFetcher(api_key="k", session=session, timeout=5)
    df = fetcher.fetch_observations("UNRATE", "2020-01-01", "2020-03-01", frequency="monthly")

    assert df.columns.tolist() == ["date", "value"]
    assert len(df) == 3
    assert np.isnan(df["value"].iloc[1])
    assert df["value"].iloc[2] == pytest.approx(3.7)

    url, params, timeout = session.calls[0]
    assert url.endswith("/fred/series/observations")
    assert params["series_id"] == "UNRATE"
    assert params["frequency"] == "m"
    assert params["observation_start"] == "2020-01-01"
    assert timeout == 5


def test_fetch_observations_sorted_ascending():
    payload = {"observations": [{"date": "2020-03-01", "value": "3"}, {"date": "2020-01-01", "value": "1"}]}
    fetcher = FredFetcher(api_key="k", session=_StubSession(_StubResponse(payload)))
    df = fetcher.fetch_observations("X")
    assert df["date"].is_monotonic_increasing


def test_missing_api_key_is_data_unavailable(monkeypatch):
    monkeypatch.delenv("FRED_API_KEY", raising=False)
    monkeypatch.setattr("fetchers.fred_fetchers._resolve_api_key", lambda explicit: explicit)
    fetcher = FredFetcher(session=_StubSession(_StubResponse(_payload(["1"]))))
    with pytest.raises(DataUnavailable):
        fetcher.fetch_observations("UNRATE")


def test_unknown_identifier_is_data_unavailable():
    fetcher = FredFetcher(api_key="k", session=_StubSession(_StubResponse({}, status_code=400)))
    with pytest.raises(DataUnavailable) as info:
        fetcher.fetch_observations("NOPE")
    assert info.value.series_id == "NOPE"


def test_empty_and_all_missing_results_are_data_unavailable():
    empty = FredFetcher(api_key="k", session=_StubSession(_StubResponse({"observations": []})))
    with pytest.raises(DataUnavailable):
        empty.fetch_observations("UNRATE")

    all_missing = FredFetcher(api_key="k", session=_StubSession(_StubResponse(_payload([".", "."]))))
    with pytest.raises(DataUnavailable):
        all_missing.fetch_observations("UNRATE")


def test_network_failure_and_bad_payload_are_data_unavailable():
    down = FredFetcher(api_key="k", session=_StubSession(exc=requests.exceptions.ConnectionError("down")))
    with pytest.raises(DataUnavailable):
        down.fetch_observations("UNRATE")

    garbled = FredFetcher(api_key="k", session=_StubSession(_StubResponse(bad_json=True)))
    with pytest.raises(DataUnavailable):
        garbled.fetch_observations("UNRATE")


def test_unknown_frequency_rejected():
    fetcher = FredFetcher(api_key="k", session=_StubSession(_StubResponse(_payload(["1"]))))
    with pytest.raises(ValueError):
        fetcher.fetch_observations("UNRATE", frequency="weekly")


def test_retry_session_mounts_bounded_retry():
    session = build_retry_session(retries=2, backoff_factor=0.1)
    retry = session.get_adapter("https://api.stlouisfed.org").max_retries
    assert retry.total == 2
    assert 503 in retry.status_forcelist


def test_csv_cache_round_trip_keeps_missing(tmp_path):
    df = observations_to_frame(_payload(["1.0", ".", "3.0"])["observations"])
    path = tmp_path / "data" / "UNRATE.csv"
    save_observations_csv(df, path)
    back = load_observations_csv(path)

    assert back["date"].tolist() == df["date"].tolist()
    assert back["value"].isna().sum() == 1


def test_missing_cache_is_data_unavailable(tmp_path):
    with pytest.raises(DataUnavailable):
        load_observations_csv(tmp_path / "GDPC1.csv")
