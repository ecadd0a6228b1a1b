"""
Configuration system for the macro forecaster.

Usage
-----
    from config import get_config
    horizon = get_config().get("forecast.horizon", 12)
"""

from .manager import (
    ConfigurationError,
    ConfigurationManager,
    get_api_key,
    get_config,
)

__all__ = [
    "ConfigurationError",
    "ConfigurationManager",
    "get_api_key",
    "get_config",
]
