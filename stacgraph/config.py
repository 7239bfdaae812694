"""Configuration management for stacgraph.

This module provides layered configuration with the following precedence
(highest to lowest):
1. CLI argument
2. Environment variable (STACGRAPH_<KEY>)
3. Config file (`.stacgraph/config.yaml` in the config directory)
4. Built-in default

Usage:
    from stacgraph.config import get_setting, set_setting

    # Get a setting with full precedence resolution
    workers = get_setting("max_workers", cli_value=cli_workers, config_dir=Path.cwd())

    # Persist a setting
    set_setting(Path.cwd(), "s3_region", "eu-west-1")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from stacgraph.constants import DEFAULT_MAX_WORKERS, DEFAULT_SCHEMA_BASE_URL
from stacgraph.errors import ConfigInvalidStructureError, ConfigParseError

logger = logging.getLogger(__name__)

# Built-in defaults for known settings (unknown keys are still allowed)
DEFAULTS: dict[str, Any] = {
    "schema_base_url": DEFAULT_SCHEMA_BASE_URL,
    "max_workers": DEFAULT_MAX_WORKERS,
    "s3_endpoint": None,
    "s3_region": None,
}

KNOWN_SETTINGS: frozenset[str] = frozenset(DEFAULTS)

# Environment variables are strings; known settings that are not get converted
_CONVERTERS: dict[str, Callable[[str], Any]] = {"max_workers": int}

# Config directory and file name
CONFIG_DIRNAME = ".stacgraph"
CONFIG_FILENAME = "config.yaml"


def get_config_path(config_dir: Path) -> Path:
    """Get the path to the config file.

    Args:
        config_dir: Directory holding the `.stacgraph` folder.

    Returns:
        Path to .stacgraph/config.yaml
    """
    return config_dir / CONFIG_DIRNAME / CONFIG_FILENAME


def load_config(config_dir: Path) -> dict[str, Any]:
    """Load configuration from .stacgraph/config.yaml.

    Args:
        config_dir: Directory holding the `.stacgraph` folder.

    Returns:
        Config dictionary. Returns empty dict if file doesn't exist.

    Raises:
        ConfigParseError: If the file is not valid YAML.
        ConfigInvalidStructureError: If the file is not a YAML mapping.
    """
    config_file = get_config_path(config_dir)

    if not config_file.exists():
        return {}

    content = config_file.read_text()
    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise ConfigParseError(str(config_file), str(err)) from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigInvalidStructureError(
            str(config_file), f"expected a mapping, got {type(data).__name__}"
        )
    return data


def save_config(config_dir: Path, config: dict[str, Any]) -> None:
    """Save configuration to .stacgraph/config.yaml.

    Creates the .stacgraph directory if it doesn't exist.
    """
    config_file = get_config_path(config_dir)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    # Use default_flow_style=False for readable multi-line YAML
    content = yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
    config_file.write_text(content)
    logger.debug("Saved config to %s", config_file)


def _get_env_var_name(key: str) -> str:
    """Convert a setting key to environment variable name.

    Args:
        key: Setting key (e.g., "s3_region")

    Returns:
        Environment variable name (e.g., "STACGRAPH_S3_REGION")
    """
    return f"STACGRAPH_{key.upper()}"


def _from_env(key: str, value: str) -> Any:
    converter = _CONVERTERS.get(key)
    if converter is None:
        return value
    try:
        return converter(value)
    except ValueError as err:
        raise ConfigInvalidStructureError(
            _get_env_var_name(key), f"cannot convert {value!r} for {key}"
        ) from err


def get_setting(
    key: str,
    cli_value: Any | None = None,
    config_dir: Path | None = None,
) -> Any | None:
    """Resolve a setting with full precedence.

    Args:
        key: Setting key (e.g., "max_workers", "s3_region")
        cli_value: Value passed via CLI argument (highest precedence)
        config_dir: Directory holding the config file

    Returns:
        Resolved value, or the built-in default (None for unknown keys).
    """
    value, _ = _resolve(key, cli_value, load_config(config_dir) if config_dir else {})
    return value


def _resolve(key: str, cli_value: Any | None, config: dict[str, Any]) -> tuple[Any, str]:
    """Resolve ``key`` and report where the value came from."""
    if cli_value is not None:
        return cli_value, "cli"

    env_value = os.environ.get(_get_env_var_name(key))
    if env_value is not None:
        return _from_env(key, env_value), "env"

    if key in config:
        return config[key], "file"

    return DEFAULTS.get(key), "default"


def set_setting(config_dir: Path, key: str, value: Any) -> None:
    """Set a configuration value in the config file.

    Creates the config file and .stacgraph directory if they don't exist.
    """
    config = load_config(config_dir)
    config[key] = value
    save_config(config_dir, config)


def unset_setting(config_dir: Path, key: str) -> bool:
    """Remove a configuration value.

    Returns:
        True if the key existed and was removed, False if key didn't exist.
    """
    config = load_config(config_dir)
    if key not in config:
        return False
    del config[key]
    save_config(config_dir, config)
    return True


def list_settings(config_dir: Path | None = None) -> dict[str, dict[str, Any]]:
    """List known and configured settings with their sources.

    Returns:
        Dict mapping setting keys to {"value": ..., "source": ...}, where
        source is one of "env", "file" or "default".
    """
    config = load_config(config_dir) if config_dir else {}
    result: dict[str, dict[str, Any]] = {}
    for key in sorted(KNOWN_SETTINGS | set(config)):
        value, source = _resolve(key, None, config)
        result[key] = {"value": value, "source": source}
    return result
