"""
Data fetchers for the macro forecaster.

Main Components:
- FredFetcher: FRED series observations over HTTPS with bounded retry
- CSV cache helpers used for offline runs
"""

from .fred_fetchers import (
    DEFAULT_FRED_SERIES,
    FRED_FREQUENCY_CODES,
    FredFetcher,
    FredSeries,
    build_retry_session,
    load_observations_csv,
    observations_to_frame,
    save_observations_csv,
)

__all__ = [
    'DEFAULT_FRED_SERIES',
    'FRED_FREQUENCY_CODES',
    'FredFetcher',
    'FredSeries',
    'build_retry_session',
    'load_observations_csv',
    'observations_to_frame',
    'save_observations_csv',
]
