"""FRED observation fetcher for the macro series.

Purpose
-------
Retrieve observations for a named FRED series over a date range and return them
as a raw Observation frame for the Series Preparer.

Providers
---------
- FRED (St. Louis Fed) observations endpoint (JSON over HTTPS).
  Authentication: explicit api_key argument, environment variable FRED_API_KEY,
  or ``api_keys.fred`` in the configuration.

Key Inputs/Outputs
------------------
- FredFetcher.fetch_observations(): one HTTPS request per series; returns a DataFrame with
  columns ['date', 'value'] (datetime64[ns], float). FRED's '.' marker becomes NaN, so
  missing periods stay explicit.
- load_observations_csv() / save_observations_csv(): offline cache of the same frame.

Assumptions
-----------
- Transient failures (connection errors, 429 and 5xx responses) are retried with bounded
  exponential backoff by the session adapter.
- An unknown identifier (HTTP 400) or an empty/all-missing result is reported as
  DataUnavailable for that series only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from macro_forecaster_src.errors import DataUnavailable

logger = logging.getLogger(__name__)

# Base URL for FRED API endpoints (versioned path is handled by route names).
FRED_BASE = "https://api.stlouisfed.org"

# FRED server-side aggregation codes keyed by the pipeline's frequency labels.
FRED_FREQUENCY_CODES: Dict[str, str] = {
    "monthly": "m",
    "quarterly": "q",
}


@dataclass(frozen=True)
class FredSeries:
    """Descriptor for a FRED series."""

    series_id: str
    title: Optional[str] = None
    frequency: str = "monthly"


# Series analysed by the default report.
DEFAULT_FRED_SERIES: Dict[str, FredSeries] = {
    # Civilian Unemployment Rate, Percent, Monthly, SA
    # https://fred.stlouisfed.org/series/UNRATE
    "UNRATE": FredSeries(series_id="UNRATE", title="Unemployment Rate", frequency="monthly"),
    # Real Gross Domestic Product, Billions of Chained 2017 Dollars, Quarterly, SAAR
    # https://fred.stlouisfed.org/series/GDPC1
    "GDPC1": FredSeries(series_id="GDPC1", title="Real GDP (Chained 2017 $)", frequency="quarterly"),
    # University of Michigan: Inflation Expectation, Percent, Monthly, NSA
    # https://fred.stlouisfed.org/series/MICH
    "MICH": FredSeries(series_id="MICH", title="Inflation Expectation (UMich)", frequency="monthly"),
}


def _resolve_api_key(explicit: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit
    key = os.environ.get("FRED_API_KEY")
    if key:
        logger.debug("Using FRED API key from environment variable")
        return key
    try:
        from config import get_api_key
        key = get_api_key("fred")
    except ImportError:
        key = None
    if key:
        logger.debug("Using FRED API key from configuration")
    return key


def build_retry_session(retries: int = 3, backoff_factor: float = 0.5) -> requests.Session:
    """Create an HTTP session with bounded retry and exponential backoff."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class FredFetcher:
    """Fetcher for FRED series observations."""

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: int = 60, retries: int = 3, backoff_factor: float = 0.5):
        """
        Initialize the FRED fetcher.

        Parameters
        ----------
        api_key : str, optional
            FRED API key. If None, resolved from environment or configuration.
        session : requests.Session, optional
            Pre-built session (tests inject a stub); defaults to a retrying session.
        timeout : int, default 60
            Per-request timeout in seconds.
        retries : int, default 3
            Maximum retries for transient failures.
        backoff_factor : float, default 0.5
            Exponential backoff factor between retries.
        """
        self.api_key = _resolve_api_key(api_key)
        self.session = session if session is not None else build_retry_session(retries, backoff_factor)
        self.timeout = timeout
        self.base_url = f"{FRED_BASE}/fred/series/observations"

    def fetch_observations(self, series_id: str, start: Optional[str] = None,
                           end: Optional[str] = None, frequency: Optional[str] = None) -> pd.DataFrame:
        """
        Fetch observations for a FRED series.

        Parameters
        ----------
        series_id : str
            FRED series identifier (e.g., 'UNRATE').
        start : str, optional
            Observation start date (YYYY-MM-DD).
        end : str, optional
            Observation end date (YYYY-MM-DD).
        frequency : str, optional
            'monthly' or 'quarterly'; forwarded to FRED so the server aggregates
            higher-frequency series down to the requested frequency.

        Returns
        -------
        pd.DataFrame
            Columns ['date', 'value'] sorted ascending; missing values are NaN.

        Raises
        ------
        DataUnavailable
            If no API key is available, FRED rejects the request, the network fails
            after retries, or no usable observation is returned.
        """
        if not self.api_key:
            raise DataUnavailable(
                "FRED API key not found. Set FRED_API_KEY or api_keys.fred in the configuration.",
                series_id=series_id,
            )

        params = {
            "api_key": self.api_key,
            "series_id": series_id,
            "file_type": "json",
            "sort_order": "asc",
        }
        if start:
            params["observation_start"] = start
        if end:
            params["observation_end"] = end
        if frequency:
            if frequency not in FRED_FREQUENCY_CODES:
                raise ValueError(f"Unknown frequency '{frequency}'. Valid options: {list(FRED_FREQUENCY_CODES)}")
            params["frequency"] = FRED_FREQUENCY_CODES[frequency]

        logger.debug("Fetching FRED series: %s (%s to %s)", series_id, start, end)
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            logger.error("FRED rejected series %s (HTTP %s)", series_id, status)
            raise DataUnavailable(f"FRED request for {series_id} failed with HTTP {status}",
                                  series_id=series_id) from e
        except requests.exceptions.RequestException as e:
            logger.error("Failed to fetch FRED series %s: %s", series_id, e)
            raise DataUnavailable(f"FRED request for {series_id} failed: {e}", series_id=series_id) from e
        except ValueError as e:
            raise DataUnavailable(f"FRED returned a non-JSON payload for {series_id}",
                                  series_id=series_id) from e

        df = observations_to_frame(payload.get("observations", []))
        if df.empty or df["value"].notna().sum() == 0:
            raise DataUnavailable(f"No observations for {series_id} between {start} and {end}",
                                  series_id=series_id)

        logger.info("Fetched %d observations for FRED series %s (%d missing)",
                    len(df), series_id, int(df["value"].isna().sum()))
        return df


def observations_to_frame(observations: list) -> pd.DataFrame:
    """Normalize FRED observation records into a typed ['date', 'value'] frame."""
    df = pd.DataFrame(observations)
    if df.empty or "date" not in df.columns or "value" not in df.columns:
        return pd.DataFrame({"date": pd.Series(dtype="datetime64[ns]"), "value": pd.Series(dtype=float)})

    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    # '.' is FRED's missing-value marker
    df["value"] = pd.to_numeric(df["value"].replace(".", pd.NA), errors="coerce").astype(float)
    df = df[["date", "value"]].dropna(subset=["date"]).sort_values("date").reset_index(drop=True)
    return df


def load_observations_csv(path: Path) -> pd.DataFrame:
    """
    Load a cached Observation frame written by save_observations_csv.

    Raises
    ------
    DataUnavailable
        If the file is missing or holds no usable rows.
    """
    if not path.is_file():
        raise DataUnavailable(f"Cached series not found: {path}", series_id=path.stem)
    df = pd.read_csv(path)
    if "date" not in df.columns or "value" not in df.columns:
        raise DataUnavailable(f"Cached series {path} must contain 'date' and 'value' columns",
                              series_id=path.stem)
    df = observations_to_frame(df.to_dict("records"))
    if df.empty or df["value"].notna().sum() == 0:
        raise DataUnavailable(f"No valid rows in cached series {path}", series_id=path.stem)
    return df


def save_observations_csv(df: pd.DataFrame, out_path: Path) -> None:
    """Write an Observation frame to CSV, creating the parent directory if needed."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False, date_format="%Y-%m-%d")
