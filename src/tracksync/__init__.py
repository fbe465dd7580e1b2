"""
tracksync - local version tracking with a GitHub sync bridge.

Tracks a flat set of named project files in a lightweight local commit/branch
model and pushes or pulls them through the GitHub git object API.
"""

__version__ = "0.3.0"

from tracksync.core.github.models import RemoteComparison, RepoInfo
from tracksync.core.local.models import Commit, FileChange, ProjectFile, RepositoryState

__all__ = [
    "Commit",
    "FileChange",
    "ProjectFile",
    "RemoteComparison",
    "RepoInfo",
    "RepositoryState",
    "__version__",
]
