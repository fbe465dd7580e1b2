"""
Pytest configuration and shared fixtures.

Provides environment isolation, sample project files, a local repository
backed by the in-memory store, and an in-memory fake of the GitHub git
object API served through httpx.MockTransport.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fake_github import TOKEN, FakeGitHub

from tracksync.core.config import clear_cache
from tracksync.core.github import GitHubAuth, GitHubClient
from tracksync.core.local import LocalRepository, MemoryStateStore, ProjectFile

# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point XDG dirs at tmp_path and drop tracksync/GitHub env vars."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    for name in (
        "GITHUB_TOKEN",
        "TRACKSYNC_TOKEN",
        "TRACKSYNC_API_URL",
        "TRACKSYNC_TIMEOUT",
        "TRACKSYNC_STATE_DIR",
        "TRACKSYNC_BRANCH",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()


# ==============================================================================
# Local Fixtures
# ==============================================================================


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def repo(store: MemoryStateStore) -> LocalRepository:
    """A LocalRepository over an in-memory store."""
    return LocalRepository(store)


@pytest.fixture
def sample_files() -> list[ProjectFile]:
    return [
        ProjectFile(name="index.html", content="<h1>Hello</h1>\n"),
        ProjectFile(name="style.css", content="body { margin: 0; }\n"),
        ProjectFile(name="js/app.js", content="console.log('hi');\n"),
    ]


# ==============================================================================
# Fake GitHub
# ==============================================================================


@pytest.fixture
def fake_github() -> FakeGitHub:
    """A fake remote seeded with a README on main."""
    github = FakeGitHub()
    github.seed({"README.md": "# site\n"})
    return github


@pytest.fixture
def make_client(fake_github: FakeGitHub) -> Callable[..., GitHubClient]:
    """Factory for clients talking to ``fake_github``; authenticated by default."""

    def factory(auth: GitHubAuth | None = GitHubAuth(token=TOKEN), **kwargs: Any) -> GitHubClient:
        return GitHubClient(auth, transport=fake_github.transport(), **kwargs)

    return factory
