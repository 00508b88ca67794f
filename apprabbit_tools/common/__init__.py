"""
================================================================================
AppRabbit Tools Common Utilities
================================================================================

Configuration and logging shared by the discovery CLI, the test runner, the
Jira integration and the UI framework.

Configuration comes from config/config.yaml (or the file named by
APPRABBIT_CONFIG); the environment variables in ENV_MAPPING override
individual keys.

Usage:
    from apprabbit_tools.common import get_config, get_flag, init_logger

    init_logger()
    base_url = get_config("ui.base_url", "https://app.apprabbit.com")
    if get_flag("jira.enabled"):
        ...

================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

# ============================================================
# Configuration
# ============================================================

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Environment variable -> dot-notation config key
ENV_MAPPING: Dict[str, str] = {
    "APPRABBIT_BASE_URL": "ui.base_url",
    "UI_BROWSER": "ui.browser",
    "UI_HEADLESS": "ui.headless",
    "APPRABBIT_API_URL": "api.base_url",
    "APPRABBIT_TEST_EMAIL": "auth.email",
    "APPRABBIT_TEST_PASSWORD": "auth.password",
    "JIRA_URL": "jira.url",
    "JIRA_EMAIL": "jira.email",
    "JIRA_API_TOKEN": "jira.api_token",
    "JIRA_PROJECT_KEY": "jira.project_key",
    "JIRA_ENABLED": "jira.enabled",
    "DISCOVERY_OUTPUT_DIR": "discovery.output_dir",
    "LOG_LEVEL": "logging.level",
}

_TRUE_VALUES = ("true", "1", "yes", "on")


def _config_candidates() -> List[Path]:
    paths = [Path("config/config.yaml"), PROJECT_ROOT / "config" / "config.yaml"]
    explicit = os.environ.get("APPRABBIT_CONFIG")
    if explicit:
        paths.insert(0, Path(explicit))
    return paths


class GlobalConfig:
    """
    Process-wide settings: the first readable YAML file, then env overrides.

    Created lazily by `get_config`; `GlobalConfig.reset()` forces a reload.
    """
    _instance: Optional["GlobalConfig"] = None

    def __new__(cls) -> "GlobalConfig":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._config = instance._load()
            cls._instance = instance
        return cls._instance

    @staticmethod
    def _load() -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        for path in _config_candidates():
            if not path.is_file():
                continue
            try:
                config = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {path}: {e}")
                continue
            logger.debug(f"Loaded configuration from {path}")
            break

        for env_key, config_key in ENV_MAPPING.items():
            if env_key in os.environ:
                _set_nested(config, config_key, os.environ[env_key])
        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Dot-notation lookup, e.g. `get("jira.project_key", "ALT")`."""
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    @classmethod
    def reset(cls) -> None:
        cls._instance = None


def _set_nested(config: Dict[str, Any], key: str, value: Any) -> None:
    *parents, leaf = key.split(".")
    node = config
    for part in parents:
        if not isinstance(node.get(part), dict):
            node[part] = {}
        node = node[part]
    node[leaf] = value


def get_config(key: str, default: Any = None) -> Any:
    """
    Read one setting.

    Example:
        project = get_config("jira.project_key", "ALT")
    """
    return GlobalConfig().get(key, default)


def get_flag(key: str, default: bool = False) -> bool:
    """Boolean setting that may be a YAML bool or an env string ("true", "1"...)."""
    value = get_config(key, default)
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


# ============================================================
# Logging Setup
# ============================================================

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_logger_initialized = False


def init_logger(level: str = None, log_file: str = None) -> None:
    """
    Configure loguru once per process: stderr sink plus an optional
    rotating file sink (`logging.file`, `logging.rotation`, `logging.retention`).

    Example:
        init_logger(level="DEBUG", log_file="logs/discovery.log")
    """
    global _logger_initialized
    if _logger_initialized:
        return

    level = (level or get_config("logging.level", "INFO")).upper()
    fmt = get_config("logging.format", LOG_FORMAT)

    logger.remove()
    logger.add(sys.stderr, format=fmt, level=level, colorize=True)

    log_file = log_file or get_config("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=fmt,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized (level={level})")


__all__ = [
    "ENV_MAPPING",
    "PROJECT_ROOT",
    "GlobalConfig",
    "get_config",
    "get_flag",
    "init_logger",
]
