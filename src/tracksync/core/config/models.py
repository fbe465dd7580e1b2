"""
Configuration data models for tracksync.

These models define the structure of .tracksync.json and
~/.config/tracksync/config.json files, with validation via Pydantic.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tracksync.core.github.client import DEFAULT_API_URL, DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT
from tracksync.core.local.models import RepoConfig


class GitHubConfig(BaseModel):
    """Remote API settings."""

    api_url: str = Field(default=DEFAULT_API_URL, description="REST API base URL")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout (s)")
    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        ge=1,
        description="Maximum concurrent blob uploads and content fetches",
    )
    token_env_var: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable read for the bearer token",
    )


class StateConfig(BaseModel):
    """Where repository records live."""

    state_dir: Path | None = Field(
        default=None,
        description="Directory for per-project records (default: XDG data dir)",
    )


class TrackSyncConfig(BaseModel):
    """
    Root configuration.

    Example:
        >>> config = TrackSyncConfig()
        >>> config.github.api_url
        'https://api.github.com'
        >>> config.defaults.branch
        'main'
    """

    model_config = ConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    defaults: RepoConfig = Field(
        default_factory=RepoConfig,
        description="Repository settings applied when a project is initialized",
    )
    ignore: list[str] = Field(
        default_factory=list,
        description="Extra gitignore-style patterns skipped when loading a workspace",
    )
