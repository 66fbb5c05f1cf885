"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (~/.feedcache/config.yaml). Keys are dotted
('cache.ttl_seconds'); the matching environment variable is
FEEDCACHE_CACHE_TTL_SECONDS.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from feedcache.domain.exceptions import ConfigurationError
from feedcache.domain.models.cache import (
    CacheSettings,
    DEFAULT_CACHE_NAMESPACE,
    DEFAULT_DISK_BUDGET_BYTES,
    DEFAULT_MEMORY_BUDGET_BYTES,
    DEFAULT_TTL_SECONDS,
    default_cache_root,
)
from feedcache.domain.models.common import BackoffPolicy, CacheNamespace

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".feedcache"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "FEEDCACHE_"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from the YAML file and a .env file.

    Priority order (highest to lowest):
    1. Test overrides (set_config_for_testing)
    2. Environment Variables
    3. .env file (never overrides real environment variables)
    4. YAML configuration file
    5. Defaults passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    config_file = Path(config_file)
    if config_file.is_file():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
        else:
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    # 3. Environment Variables (Highest priority) are read lazily in get_config
    _loaded = True
    logger.info("Configuration loading process completed.")


def _flatten(mapping: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """{'cache': {'ttl_seconds': 60}} -> {'cache.ttl_seconds': 60}"""
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def env_var_name(key: str) -> str:
    """'cache.ttl_seconds' -> 'FEEDCACHE_CACHE_TTL_SECONDS'"""
    return ENV_PREFIX + key.upper().replace(".", "_").replace("-", "_")


def _coerce(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        if "." in value or "e" in lowered:
            return float(value)
        return int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dotted key.

    Args:
        key: The configuration key, e.g. 'cache.ttl_seconds'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Typed accessors ---

def _get_number(key: str, default: Any, kind: type) -> Any:
    value = get_config(key, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"Config '{key}' must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config '{key}' must be a number, got {value!r}") from e


def load_cache_settings() -> CacheSettings:
    """Builds CacheSettings from the loaded configuration.

    Raises:
        ConfigurationError: If a value has the wrong type or is out of range.
    """
    root = get_config("cache.root")
    return CacheSettings(
        memory_budget_bytes=_get_number("cache.memory_budget_bytes", DEFAULT_MEMORY_BUDGET_BYTES, int),
        disk_budget_bytes=_get_number("cache.disk_budget_bytes", DEFAULT_DISK_BUDGET_BYTES, int),
        ttl_seconds=_get_number("cache.ttl_seconds", DEFAULT_TTL_SECONDS, float),
        cache_namespace=CacheNamespace(str(get_config("cache.namespace", DEFAULT_CACHE_NAMESPACE))),
        cache_root=Path(str(root)).expanduser() if root else default_cache_root(),
    )


def load_backoff_policy() -> BackoffPolicy:
    """Retry settings for content-source calls."""
    return {
        "max_retries": _get_number("retry.max_retries", 3, int),
        "initial_delay": _get_number("retry.initial_backoff_s", 0.5, float),
        "factor": _get_number("retry.backoff_factor", 2.0, float),
    }


def get_feed_source_path() -> Optional[Path]:
    """Path of the bundled posts JSON file, if configured."""
    path = get_config("feed.source_path")
    return Path(str(path)).expanduser() if path else None


def get_feed_cache_key() -> str:
    return str(get_config("feed.cache_key", "feed_posts"))


def get_feed_loop_count() -> int:
    return _get_number("feed.loop_count", 0, int)


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
