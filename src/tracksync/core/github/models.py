"""
GitHub data models for tracksync.

Defines Pydantic models for repository info, git tree entries, remote file
listings, remote commits and push results, plus the git blob hash used to
compare local content with remote tree entries.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

from tracksync.core.errors import InvalidRemoteUrlError

_HTTPS_REMOTE = re.compile(r"^https://([^/\s]+)/([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")


def git_blob_sha(content: str) -> str:
    """
    Hash text content the way git hashes a blob object.

    Example:
        >>> git_blob_sha("")
        'e69de29bb2d1d6434b8b29ae775ad8c2e48c5391'
    """
    data = content.encode("utf-8")
    header = f"blob {len(data)}\0".encode("ascii")
    return hashlib.sha1(header + data).hexdigest()


class RepoInfo(BaseModel):
    """
    Remote repository coordinates.

    Parsed from a remote URL of the form ``https://<host>/<owner>/<repo>[.git]``.

    Example:
        >>> RepoInfo.from_remote_url("https://github.com/user/repo.git").full_name
        'user/repo'
        >>> RepoInfo.from_remote_url("git@github.com:user/repo.git") is None
        True
    """

    host: str = Field(default="github.com", description="Remote host")
    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        """Full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        """Web URL for the repository."""
        return f"https://{self.host}/{self.owner}/{self.repo}"

    @classmethod
    def from_remote_url(cls, remote_url: str) -> RepoInfo | None:
        """
        Parse repository info from a remote URL.

        Handles:
        - https://github.com/user/repo
        - https://github.com/user/repo.git
        - https://github.com/user/repo/

        Args:
            remote_url: Remote URL

        Returns:
            RepoInfo or None if the URL has any other shape
        """
        if not remote_url:
            return None

        match = _HTTPS_REMOTE.match(remote_url.strip())
        if not match:
            return None

        host, owner, repo = match.groups()
        if not repo:
            return None
        return cls(host=host, owner=owner, repo=repo)


def parse_remote_url(remote_url: str) -> RepoInfo:
    """
    Parse a remote URL, raising on anything that is not an https repo URL.

    Raises:
        InvalidRemoteUrlError: If the URL cannot be parsed
    """
    info = RepoInfo.from_remote_url(remote_url)
    if info is None:
        raise InvalidRemoteUrlError(remote_url)
    return info


class GitHubAuth(BaseModel):
    """Bearer credential for the remote API."""

    token: str = Field(..., description="Personal access token")
    username: str = Field(default="", description="Login the token belongs to")


class TreeEntry(BaseModel):
    """One entry of a recursive git tree listing."""

    path: str
    sha: str
    type: Literal["blob", "tree", "commit"] = "blob"
    mode: str | None = None
    size: int | None = None

    @property
    def is_file(self) -> bool:
        return self.type == "blob"


class FileContent(BaseModel):
    """Decoded content of a single remote file."""

    path: str
    content: str
    sha: str


class RemoteFile(BaseModel):
    """A remote file as returned by a full pull listing."""

    path: str
    content: str = ""
    sha: str

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


class LocalFileRef(BaseModel):
    """
    A local file to compare against the remote tree.

    ``sha`` defaults to the git blob hash of ``content``.
    """

    path: str
    content: str = ""
    sha: str | None = None

    def resolved_sha(self) -> str:
        return self.sha or git_blob_sha(self.content)


class RemoteComparison(BaseModel):
    """
    Partition of local and remote paths.

    Every local path lands in exactly one of ``added``, ``modified`` or
    ``unchanged``; every remote-only path lands in ``deleted``.
    """

    added: list[str] = Field(default_factory=list, description="Local only")
    modified: list[str] = Field(default_factory=list, description="Hash mismatch")
    unchanged: list[str] = Field(default_factory=list, description="Hash match")
    deleted: list[str] = Field(default_factory=list, description="Remote only")

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.modified or self.deleted)


class RemoteCommit(BaseModel):
    """A commit from the remote's commit listing."""

    sha: str
    message: str = ""
    author_name: str | None = None
    author_email: str | None = None
    date: str | None = None
    url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteCommit:
        """
        Create a RemoteCommit from a ``GET /repos/{owner}/{repo}/commits`` item.

        Args:
            data: One element of the commits listing

        Returns:
            RemoteCommit instance
        """
        commit = data.get("commit") or {}
        author = commit.get("author") or {}
        return cls(
            sha=str(data.get("sha", "")),
            message=str(commit.get("message") or ""),
            author_name=author.get("name"),
            author_email=author.get("email"),
            date=author.get("date"),
            url=data.get("html_url"),
        )

    @property
    def subject(self) -> str:
        """First line of the message."""
        return self.message.splitlines()[0] if self.message else ""


class PushResult(BaseModel):
    """Objects created by an atomic multi-file push."""

    commit_sha: str
    tree_sha: str
    parent_sha: str
    branch: str
    files: list[str] = Field(default_factory=list)
    url: str | None = None
