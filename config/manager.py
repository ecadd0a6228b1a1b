"""YAML-backed configuration manager.

Loads ``config/settings.yaml`` (and an optional override file) and exposes
values by dot-separated key path, e.g. ``model.search_space.max_p``.
"""

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent / "settings.yaml"

VALID_CRITERIA = ("aic", "aicc", "bic")
VALID_FREQUENCIES = ("monthly", "quarterly")


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read or parsed."""
    pass


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read configuration {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root in {path} must be a mapping")
    return data


class ConfigurationManager:
    """Holds the merged run configuration."""

    def __init__(self, settings_path: Optional[Path] = None, override_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else DEFAULT_SETTINGS_PATH
        self.override_path = Path(override_path) if override_path else None
        self.loaded_configs: List[str] = []
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        data = _read_yaml(self.settings_path)
        self.loaded_configs.append(str(self.settings_path))
        if self.override_path is not None:
            data = _deep_merge(data, _read_yaml(self.override_path))
            self.loaded_configs.append(str(self.override_path))
            logger.info("Applied configuration overrides from %s", self.override_path)
        return data

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up a value by dot-separated path.

        Parameters
        ----------
        key_path : str
            Path such as ``"forecast.horizon"``.
        default : Any
            Returned when any segment of the path is missing.
        """
        node: Any = self._data
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def as_dict(self) -> Dict[str, Any]:
        return deepcopy(self._data)

    def get_series_config(self) -> List[Dict[str, Any]]:
        return list(self.get("series", []) or [])

    def get_search_space(self) -> Dict[str, int]:
        return dict(self.get("model.search_space", {}) or {})

    def validate_configuration(self) -> Dict[str, List[str]]:
        """
        Check the loaded configuration for inconsistent values.

        Returns
        -------
        Dict[str, List[str]]
            Mapping of section name to messages; empty when everything is valid.
        """
        errors: Dict[str, List[str]] = {}

        def add(section: str, msg: str) -> None:
            errors.setdefault(section, []).append(msg)

        criterion = str(self.get("model.criterion", "bic")).lower()
        if criterion not in VALID_CRITERIA:
            add("model", f"criterion '{criterion}' not in {VALID_CRITERIA}")

        delta = self.get("model.parsimony_delta", 2.0)
        if not isinstance(delta, (int, float)) or delta < 0:
            add("model", "parsimony_delta must be a non-negative number")

        for key, value in self.get_search_space().items():
            if not isinstance(value, int) or value < 0:
                add("model", f"search_space.{key} must be a non-negative integer")

        horizon = self.get("forecast.horizon", 12)
        if not isinstance(horizon, int) or horizon <= 0:
            add("forecast", "horizon must be a positive integer")

        alpha = self.get("stationarity.alpha", 0.05)
        if not isinstance(alpha, (int, float)) or not 0.0 < float(alpha) < 1.0:
            add("stationarity", "alpha must lie in (0, 1)")

        seen = set()
        for entry in self.get_series_config():
            sid = entry.get("id")
            if not sid:
                add("series", "entry without 'id'")
                continue
            if sid in seen:
                add("series", f"duplicate series id '{sid}'")
            seen.add(sid)
            freq = entry.get("frequency")
            if freq not in VALID_FREQUENCIES:
                add("series", f"{sid}: frequency '{freq}' not in {VALID_FREQUENCIES}")
            if entry.get("model_target", "series") not in ("series", "trend"):
                add("series", f"{sid}: model_target must be 'series' or 'trend'")

        return errors

    def get_configuration_summary(self) -> Dict[str, Any]:
        return {
            "loaded_configs": list(self.loaded_configs),
            "series": [s.get("id") for s in self.get_series_config()],
            "api_providers": sorted((self.get("api_keys", {}) or {}).keys()),
        }


_CONFIG: Optional[ConfigurationManager] = None


def get_config(settings_path: Optional[Path] = None, override_path: Optional[Path] = None,
               reload: bool = False) -> ConfigurationManager:
    """Return the process-wide configuration manager, creating it on first use."""
    global _CONFIG
    if _CONFIG is None or reload or settings_path is not None or override_path is not None:
        _CONFIG = ConfigurationManager(settings_path, override_path)
    return _CONFIG


def get_api_key(provider: str) -> Optional[str]:
    """Resolve an API key from ``<PROVIDER>_API_KEY`` or ``api_keys.<provider>``."""
    env_key = os.environ.get(f"{provider.upper()}_API_KEY")
    if env_key:
        return env_key
    try:
        return get_config().get(f"api_keys.{provider.lower()}")
    except ConfigurationError as e:
        logger.debug("API key lookup for %s failed: %s", provider, e)
        return None
