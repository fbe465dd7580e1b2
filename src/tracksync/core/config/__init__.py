"""
Configuration models and loading.

Pydantic models for tracksync configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .env import EnvLayers, get_user_env_path, load_layered_env
from .loader import (
    clear_cache,
    get_credentials_path,
    get_project_config_path,
    get_state_dir,
    get_user_config_path,
    get_xdg_config_home,
    get_xdg_data_home,
    load_config,
)
from .models import GitHubConfig, StateConfig, TrackSyncConfig

__all__ = [
    # Models
    "EnvLayers",
    "GitHubConfig",
    "StateConfig",
    "TrackSyncConfig",
    # Loader functions
    "clear_cache",
    "get_credentials_path",
    "get_project_config_path",
    "get_state_dir",
    "get_user_env_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "load_config",
    "load_layered_env",
]
