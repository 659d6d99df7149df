"""
Configuration loader — reads delivery-build.yml into BuildSettings.

The file is optional: without one, the built-in defaults describe the
delivery-cli build hosts. When present it is read as YAML, validated
against the Pydantic schema, and returned as typed settings.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from delivery_build.core.models.settings import BuildSettings

logger = logging.getLogger(__name__)

# Default config filename
BUILD_CONFIG_FILE = "delivery-build.yml"


class ConfigError(Exception):
    """Raised when build configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for delivery-build.yml starting from a directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / BUILD_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None) -> BuildSettings:
    """Load and validate build settings.

    Args:
        path: Explicit path to the config file. None means defaults.

    Returns:
        Validated BuildSettings.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        logger.debug("No %s, using defaults", BUILD_CONFIG_FILE)
        return BuildSettings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return BuildSettings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # YAML reads an unquoted 13.0 as a float
    if "tool_version" in data and data["tool_version"] is not None:
        data["tool_version"] = str(data["tool_version"])

    try:
        settings = BuildSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid build configuration: {e}") from e

    logger.info("Loaded build config from %s", path)
    return settings


def load_settings_for(repo_path: Path, config_path: Path | None = None) -> tuple[BuildSettings, Path | None]:
    """Resolve and load settings for a repository checkout.

    An explicit ``config_path`` wins; otherwise the file is searched
    upward from ``repo_path``.

    Returns:
        (settings, path actually loaded or None).
    """
    if config_path is None:
        config_path = find_config_file(repo_path)
    return load_settings(config_path), config_path
