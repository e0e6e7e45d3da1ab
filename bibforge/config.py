"""Configuration loading.

Settings come from YAML files, later files overriding earlier ones:

1. ``$XDG_CONFIG_HOME/bibforge/config.yaml``
2. ``./.bibforge.yaml``
3. ``./bibforge.yaml``

Example::

    indent: 4
    group_headers: false
    required:
      article: [doi]
    defaults:
      publisher: Unknown
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import msgspec
import yaml

from bibforge.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


class Settings(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Validated configuration values."""

    indent: int = 2
    group_headers: bool = True
    required: dict[str, list[str]] = msgspec.field(default_factory=dict)
    defaults: dict[str, str | int] = msgspec.field(default_factory=dict)

    def __post_init__(self):
        if self.indent < 0:
            raise ValueError("indent must not be negative")


class Config:
    """Configuration management for the command line."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "bibforge" / "config.yaml")

        # Project config
        paths.append(Path(".bibforge.yaml"))
        paths.append(Path("bibforge.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def get_config_paths() -> list[Path]:
    """Get configuration paths in precedence order."""
    return Config.get_config_paths()


def to_settings(data: dict[str, Any]) -> Settings:
    """Validate a raw configuration mapping."""
    try:
        return msgspec.convert(data, Settings, str_keys=True)
    except (msgspec.ValidationError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path | None = None) -> Settings:
    """Load settings from the default locations and the environment.

    Args:
        path: Explicit config file, merged last.

    Raises:
        ConfigError: If a file is unreadable or the values are invalid.
    """
    config: dict[str, Any] = {}

    paths = [p for p in get_config_paths() if p.exists()]
    if path is not None:
        paths.append(Path(path))

    for config_path in paths:
        logger.debug("Loading config from %s", config_path)
        config = Config.merge_configs(config, Config.from_file(config_path))

    # Override with environment variables
    env_overrides: dict[str, Any] = {}
    if indent := os.environ.get("BIBFORGE_INDENT"):
        try:
            env_overrides["indent"] = int(indent)
        except ValueError:
            raise ConfigError(f"BIBFORGE_INDENT must be an integer, got {indent!r}")

    return to_settings(Config.merge_configs(config, env_overrides))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
