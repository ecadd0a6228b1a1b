# macro_forecaster_src/errors.py

"""
Pipeline error kinds.

Every error raised here is terminal for the affected series only; the report
assembler records it against the series identifier and moves on.
"""


class ForecasterError(Exception):
    """Base class for per-series pipeline failures."""

    def __init__(self, message: str, series_id: str = None):
        super().__init__(message)
        self.series_id = series_id


class DataUnavailable(ForecasterError):
    """The data source has no observations for the requested identifier/range."""
    pass


class InsufficientData(ForecasterError):
    """Fewer observations than a method requires."""
    pass


class InvalidFrequency(ForecasterError):
    """Seasonal period or sampling frequency inconsistent with the series."""
    pass


class NonConvergent(ForecasterError):
    """Order search exhausted every candidate without a converged fit."""
    pass
