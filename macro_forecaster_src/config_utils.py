# macro_forecaster_src/config_utils.py

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Initialize the global configuration manager
config_manager = None
CONFIG_AVAILABLE = False
try:
    from config import get_config, ConfigurationError  # use project configuration manager
    CONFIG_AVAILABLE = True
except ImportError as e:
    CONFIG_AVAILABLE = False
    logger.warning("Configuration system NOT detected: %s - using defaults", e)


def initialize_config(settings_path: Optional[Path] = None, override_path: Optional[Path] = None) -> None:
    """
    Initializes the global configuration manager.

    This function loads and validates the project's configuration files. If the configuration
    cannot be read, it logs the error and proceeds with default settings.

    Parameters
    ----------
    settings_path : Optional[Path]
        Alternative base settings file (defaults to config/settings.yaml).
    override_path : Optional[Path]
        Optional YAML file merged over the base settings.
    """
    global config_manager
    if not CONFIG_AVAILABLE:
        return
    if config_manager is not None and settings_path is None and override_path is None:
        return
    try:
        config_manager = get_config(settings_path, override_path, reload=True)
        validation_errors = config_manager.validate_configuration()
        if validation_errors:
            logger.warning("Configuration validation warnings: %s", validation_errors)
    except ConfigurationError as e:
        logger.error("Failed to initialize configuration: %s. Using defaults.", e)
        config_manager = None


def get_config_value(key_path: str, default=None, args=None, cli_param=None):
    """
    Retrieves a configuration value, providing support for command-line overrides.
    The function prioritizes values in the following order:
    1. CLI argument (if provided)
    2. Configuration file
    3. Default value
    """
    # First priority: CLI argument
    if args and cli_param and hasattr(args, cli_param):
        cli_value = getattr(args, cli_param)
        if cli_value is not None:
            return cli_value

    # Second priority: Configuration file
    if config_manager:
        config_value = config_manager.get(key_path, default)
        if config_value is not None:
            return config_value

    # Third priority: Default value
    return default


def get_series_entries() -> list:
    """Return the configured series entries, or an empty list without configuration."""
    if config_manager is None:
        return []
    return config_manager.get_series_config()
