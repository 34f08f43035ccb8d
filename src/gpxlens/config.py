"""Configuration management for gpxlens.

Handles loading configuration from TOML files, environment variables,
and command-line options with proper precedence.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gpxlens.models.track import SeriesMode

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "gpxlens" / "config.toml"
LOCAL_CONFIG_NAME = ".gpxlens.toml"
DEFAULT_DATA_DIR = Path("./data")
DEFAULT_MAX_SELECTED = 20


@dataclass
class DataConfig:
    """Data storage configuration."""

    directory: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)


@dataclass
class DisplayConfig:
    """Selection and chart defaults."""

    max_selected: int = DEFAULT_MAX_SELECTED
    series_mode: SeriesMode = SeriesMode.ELEVATION


@dataclass
class Config:
    """Main configuration container."""

    data: DataConfig = field(default_factory=DataConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    config_path: Path | None = None


def _get_env_value(key: str, default: str = "") -> str:
    """Get environment variable value."""
    return os.environ.get(key, default)


def _resolve_config_path() -> Path:
    """Find the config file when none was given explicitly."""
    env_config = _get_env_value("GPXLENS_CONFIG")
    if env_config:
        return Path(env_config)

    local_config = Path(LOCAL_CONFIG_NAME)
    if local_config.exists():
        return local_config

    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_path: Path to configuration file. If None, uses
            ``GPXLENS_CONFIG``, then ``./.gpxlens.toml``, then the
            default location.

    Returns:
        Populated Config object.

    Raises:
        ValueError: If a configured value is invalid.
    """
    config = Config()

    if config_path is None:
        config_path = _resolve_config_path()

    config.config_path = config_path

    if config_path.exists():
        config = _load_from_file(config_path, config)

    return _apply_env_overrides(config)


def _load_from_file(path: Path, config: Config) -> Config:
    """Load configuration from TOML file.

    Args:
        path: Path to TOML file.
        config: Existing config to update.

    Returns:
        Updated Config object.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    if "data" in data:
        data_section = data["data"]
        if "directory" in data_section:
            config.data.directory = Path(data_section["directory"])

    if "display" in data:
        display = data["display"]
        max_selected = display.get("max_selected", config.display.max_selected)
        if not isinstance(max_selected, int) or max_selected < 1:
            raise ValueError(f"display.max_selected must be a positive integer, got {max_selected!r}")
        config.display.max_selected = max_selected
        if "series_mode" in display:
            config.display.series_mode = SeriesMode.parse(display["series_mode"])

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to configuration.

    Args:
        config: Config to update.

    Returns:
        Updated Config object.
    """
    if data_dir := _get_env_value("GPXLENS_DATA_DIR"):
        config.data.directory = Path(data_dir)

    if series_mode := _get_env_value("GPXLENS_SERIES_MODE"):
        config.display.series_mode = SeriesMode.parse(series_mode)

    return config


def ensure_data_dir(config: Config) -> Path:
    """Ensure data directory exists and return its path.

    Args:
        config: Configuration with data directory setting.

    Returns:
        Path to data directory.
    """
    data_dir = config.data.directory.resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
