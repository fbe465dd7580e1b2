"""
Shared wiring for CLI commands.

Commands never hold global services: each invocation builds the local
repository, the GitHub client and the tracker from the loaded config.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import typer

from tracksync.core.config import (
    EnvLayers,
    TrackSyncConfig,
    get_credentials_path,
    get_state_dir,
)
from tracksync.core.files import load_project_files
from tracksync.core.github import CredentialStore, GitHubClient, resolve_auth
from tracksync.core.github.models import GitHubAuth
from tracksync.core.local import JsonStateStore, LocalRepository, ProjectFile
from tracksync.core.tracker import Tracker


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for CLI commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@dataclass
class CliState:
    """Options and config resolved by the top-level callback."""

    project_dir: Path
    project_id: str
    config: TrackSyncConfig
    debug: bool = False
    env: EnvLayers = field(default_factory=EnvLayers)

    def local(self) -> LocalRepository:
        store = JsonStateStore(get_state_dir(self.config))
        return LocalRepository(store, defaults=self.config.defaults)

    def files(self) -> list[ProjectFile]:
        return load_project_files(self.project_dir, self.config.ignore)

    def credentials(self) -> CredentialStore:
        return CredentialStore(get_credentials_path())

    def auth(self) -> GitHubAuth | None:
        return resolve_auth(
            token_env_var=self.config.github.token_env_var,
            store=self.credentials(),
        )


def get_state(ctx: typer.Context) -> CliState:
    """Fetch the CliState stored on the root context."""
    state = ctx.find_root().obj
    if not isinstance(state, CliState):
        raise RuntimeError("tracksync CLI context was not initialized")
    return state


def build_client(state: CliState, auth: GitHubAuth | None) -> GitHubClient:
    """Create a GitHub client from the loaded config."""
    github = state.config.github
    return GitHubClient(
        auth,
        api_url=github.api_url,
        timeout=github.timeout,
        concurrency=github.concurrency,
    )


def build_tracker(state: CliState, client: GitHubClient) -> Tracker:
    return Tracker(state.local(), client)
