# macro_forecaster_src/parsing_utils.py

from typing import Optional, List
import logging

logger = logging.getLogger(__name__)

VALID_CRITERIA = ["aic", "aicc", "bic"]


def parse_intervals_arg(s: Optional[str], default: str = "80,95") -> List[int]:
    """
    Parse a CLI intervals argument like '80,95' into sorted unique integer coverage levels.

    Parameters
    ----------
    s : str, optional
        CLI intervals argument (e.g., "80,95" or "90")
    default : str, default="80,95"
        Default intervals if the argument is empty

    Returns
    -------
    List[int]
        Sorted list of unique coverage levels as integers between 1 and 99

    Examples
    --------
    >>> parse_intervals_arg("80,95")
    [80, 95]
    >>> parse_intervals_arg("95, 80, 95")
    [80, 95]
    """
    txt = (s or default).strip()
    try:
        vals = sorted({int(x.strip()) for x in txt.split(",") if x.strip() != ""})
    except ValueError:
        logger.warning("Could not parse intervals '%s'; using 80,95", txt)
        return [80, 95]
    vals = [v for v in vals if 1 <= v < 100]
    return vals or [80, 95]


def parse_series_list(series_string: Optional[str]) -> List[str]:
    """
    Parse a comma-separated list of series identifiers, upper-cased and de-duplicated in order.

    Examples
    --------
    >>> parse_series_list("unrate, GDPC1")
    ['UNRATE', 'GDPC1']
    >>> parse_series_list("")
    []
    """
    if not series_string:
        return []
    out: List[str] = []
    for part in series_string.split(","):
        sid = part.strip().upper()
        if sid and sid not in out:
            out.append(sid)
    return out


def validate_criterion(criterion: str) -> str:
    """
    Validate and normalize an information criterion name.

    Raises
    ------
    ValueError
        If the criterion is not one of aic, aicc, bic
    """
    crit = str(criterion).strip().lower()
    if crit not in VALID_CRITERIA:
        raise ValueError(f"Invalid criterion '{criterion}'. Must be one of: {VALID_CRITERIA}")
    return crit


def validate_log_level(log_level: str) -> str:
    """
    Validate and normalize logging level specification.

    Parameters
    ----------
    log_level : str
        Logging level to validate

    Returns
    -------
    str
        Validated logging level

    Raises
    ------
    ValueError
        If the logging level is not supported
    """
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    level_upper = log_level.upper()
    if level_upper not in valid_levels:
        raise ValueError(f"Invalid log level '{log_level}'. Must be one of: {valid_levels}")
    return level_upper
