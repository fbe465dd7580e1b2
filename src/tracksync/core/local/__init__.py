"""
Local repository state.

A lightweight, single-user commit/branch model over a flat list of named
files, persisted as one JSON record per project.

Example:
    >>> from tracksync.core.local import LocalRepository, MemoryStateStore, ProjectFile
    >>> repo = LocalRepository(MemoryStateStore())
    >>> repo.init("demo")
    >>> repo.commit("demo", "first", [ProjectFile(name="a.txt", content="a")])
"""

from tracksync.core.local.models import (
    Branch,
    ChangeType,
    Commit,
    FileChange,
    ProjectFile,
    RepoConfig,
    RepositoryState,
    RepoStatus,
)
from tracksync.core.local.service import (
    LocalRepository,
    detect_changes,
    generate_commit_message,
)
from tracksync.core.local.store import JsonStateStore, MemoryStateStore, StateStore

__all__ = [
    "Branch",
    "ChangeType",
    "Commit",
    "FileChange",
    "JsonStateStore",
    "LocalRepository",
    "MemoryStateStore",
    "ProjectFile",
    "RepoConfig",
    "RepoStatus",
    "RepositoryState",
    "StateStore",
    "detect_changes",
    "generate_commit_message",
]
