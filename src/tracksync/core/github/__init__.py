"""
Remote sync bridge for GitHub.

Async client over the git object API (refs, blobs, trees, commits) used for
atomic multi-file pushes, full remote listings and hash-based comparison.
"""

from tracksync.core.github.client import GitHubClient, partition_paths
from tracksync.core.github.credentials import (
    TRACKSYNC_TOKEN_ENV,
    CredentialStore,
    find_env_token,
    resolve_auth,
)
from tracksync.core.github.models import (
    FileContent,
    GitHubAuth,
    LocalFileRef,
    PushResult,
    RemoteCommit,
    RemoteComparison,
    RemoteFile,
    RepoInfo,
    TreeEntry,
    git_blob_sha,
    parse_remote_url,
)

__all__ = [
    "CredentialStore",
    "FileContent",
    "GitHubAuth",
    "GitHubClient",
    "LocalFileRef",
    "PushResult",
    "RemoteCommit",
    "RemoteComparison",
    "RemoteFile",
    "RepoInfo",
    "TreeEntry",
    "git_blob_sha",
    "parse_remote_url",
    "partition_paths",
    "TRACKSYNC_TOKEN_ENV",
    "find_env_token",
    "resolve_auth",
]
