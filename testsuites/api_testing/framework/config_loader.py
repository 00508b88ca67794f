"""
================================================================================
Configuration Loader
================================================================================

Settings for the API test layer, read from config/config.yaml.

Lookup order for a dot-notation key such as `api.base_url`:
    1. The key's own environment variable (API_BASE_URL)
    2. The project-wide alias from apprabbit_tools.common (APPRABBIT_API_URL)
    3. The YAML file
    4. The caller's default

Environment values are strings; they are converted to the type of the
default when one is given (so `get("api.timeout", 30)` returns an int).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from apprabbit_tools.common import ENV_MAPPING


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "config.yaml"

# Dot-notation key -> project-wide environment variable
ENV_ALIASES: Dict[str, str] = {key: env for env, key in ENV_MAPPING.items()}

_TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when the configuration file cannot be parsed."""
    pass


class ConfigLoader:
    """
    Process-wide configuration (one instance until `reset()`).

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("api.base_url", "https://api.apprabbit.com")
        'https://api.apprabbit.com'
        >>> config.get("api.retry_count", 3)
        3
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._config_path = Path(config_path or DEFAULT_CONFIG_PATH)
            instance._config = {}
            instance._load_config()
            cls._instance = instance
        return cls._instance

    @property
    def config_path(self) -> Path:
        return self._config_path

    def _load_config(self) -> None:
        if not self._config_path.exists():
            logger.warning(f"Config file {self._config_path} not found, using env vars and defaults")
            self._config = {}
            return
        try:
            self._config = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self._config_path}: {e}") from e
        logger.debug(f"Loaded configuration from: {self._config_path}")

    def _from_env(self, key: str) -> Optional[str]:
        value = os.environ.get(key.upper().replace(".", "_"))
        if value is None and key in ENV_ALIASES:
            value = os.environ.get(ENV_ALIASES[key])
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Value for a dot-notation key (env, alias env, YAML, default)."""
        env_value = self._from_env(key)
        if env_value is not None:
            return self._convert_type(env_value, default)

        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def get_section(self, section: str) -> Dict[str, Any]:
        """A whole top-level section from the YAML file (no env overrides)."""
        return dict(self._config.get(section) or {})

    def reload(self) -> None:
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    @staticmethod
    def _convert_type(value: str, reference: Any) -> Any:
        # bool before int: bool is an int subclass
        if isinstance(reference, bool):
            return value.strip().lower() in _TRUE_VALUES
        for kind in (int, float):
            if isinstance(reference, kind):
                try:
                    return kind(value)
                except ValueError:
                    return value
        return value

    @classmethod
    def reset(cls) -> None:
        """Forget the instance; the next ConfigLoader() re-reads the file."""
        cls._instance = None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "ENV_ALIASES",
]
