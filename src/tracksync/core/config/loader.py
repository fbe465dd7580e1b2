"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import TrackSyncConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = ".tracksync.json"

# Global cache to avoid reloading config multiple times per session
_config_cache: TrackSyncConfig | None = None


def get_xdg_config_home() -> Path:
    """Get XDG config home directory (defaults to ~/.config)."""
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_xdg_data_home() -> Path:
    """Get XDG data home directory (defaults to ~/.local/share)."""
    if xdg_home := os.environ.get("XDG_DATA_HOME"):
        return Path(xdg_home)
    return Path.home() / ".local" / "share"


def get_user_config_path() -> Path:
    """Path to ~/.config/tracksync/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "tracksync" / "config.json"


def get_credentials_path() -> Path:
    """Path to the stored GitHub credential."""
    return get_xdg_config_home() / "tracksync" / "auth.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Project directory (defaults to current directory)

    Returns:
        Path to .tracksync.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_FILE


def get_state_dir(config: TrackSyncConfig) -> Path:
    """Directory holding repository records."""
    if config.state.state_dir is not None:
        return config.state.state_dir.expanduser()
    return get_xdg_data_home() / "tracksync" / "repos"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`; nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        TRACKSYNC_API_URL - overrides github.api_url
        TRACKSYNC_TIMEOUT - overrides github.timeout
        TRACKSYNC_STATE_DIR - overrides state.state_dir
        TRACKSYNC_BRANCH - overrides defaults.branch

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if api_url := os.environ.get("TRACKSYNC_API_URL"):
        result.setdefault("github", {})["api_url"] = api_url

    if timeout_str := os.environ.get("TRACKSYNC_TIMEOUT"):
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                logger.warning("TRACKSYNC_TIMEOUT must be > 0, got %s, ignoring", timeout_str)
            else:
                result.setdefault("github", {})["timeout"] = timeout
        except ValueError:
            logger.warning("Invalid TRACKSYNC_TIMEOUT value '%s', ignoring", timeout_str)

    if state_dir := os.environ.get("TRACKSYNC_STATE_DIR"):
        result.setdefault("state", {})["state_dir"] = state_dir

    if branch := os.environ.get("TRACKSYNC_BRANCH"):
        result.setdefault("defaults", {})["branch"] = branch

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return TrackSyncConfig().model_dump(mode="json", exclude_none=True)


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> TrackSyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (TRACKSYNC_*)
        2. Project config (.tracksync.json)
        3. User config (~/.config/tracksync/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .tracksync.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated TrackSyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = TrackSyncConfig.model_validate(merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
