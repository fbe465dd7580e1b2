"""
Data models for local repository state.

Defines Pydantic models for project files, change records, shallow commits,
branches, and the per-project repository record that is persisted as JSON.
"""

from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_BRANCH = "main"
INITIAL_COMMIT_MESSAGE = "Initial commit"
SCHEMA_VERSION = 1


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_commit_id() -> str:
    """Generate an opaque unique commit id."""
    return uuid.uuid4().hex


class ProjectFile(BaseModel):
    """A named text file in a project. The name is the file's identity."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique file name within the project")
    content: str = Field(default="", description="Opaque text content")


class ChangeType(str, Enum):
    """Kind of change a file went through since the last commit."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class FileChange(BaseModel):
    """
    One file's change relative to the last commit.

    For deletions ``file`` carries the last committed content and
    ``current_content`` is empty.
    """

    model_config = ConfigDict(frozen=True)

    type: ChangeType
    file: ProjectFile
    previous_content: str = ""
    current_content: str = ""


class Commit(BaseModel):
    """
    An immutable commit recording the changes it captured.

    Commits are *shallow*: they store a change list rather than a tree
    snapshot. The ``kind`` tag leaves room for a content-addressed snapshot
    commit kind later without breaking stored records.

    Example:
        >>> commit = Commit(
        ...     message="Initial commit",
        ...     author="tracksync <tracksync@localhost>",
        ...     branch="main",
        ... )
        >>> commit.kind
        'shallow'
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_commit_id, description="Opaque unique commit id")
    message: str = Field(..., description="Commit message, stored verbatim")
    author: str = Field(..., description="Author as 'Name <email>'")
    timestamp: int = Field(default_factory=now_ms, description="Milliseconds since epoch")
    changes: list[FileChange] = Field(default_factory=list)
    branch: str = Field(..., description="Branch the commit was made on")
    kind: Literal["shallow"] = Field(
        default="shallow",
        description="Commit representation; only change-list commits exist today",
    )


class Branch(BaseModel):
    """A named pointer to a head commit plus the ordered ids it has seen."""

    name: str
    head: str = Field(..., description="Id of the branch tip commit")
    commits: list[str] = Field(default_factory=list, description="Commit ids, oldest first")


class RepoConfig(BaseModel):
    """Per-project repository settings."""

    user_name: str = Field(default="tracksync")
    user_email: str = Field(default="tracksync@localhost")
    remote_url: str | None = Field(
        default=None,
        description="Remote repository URL (https://<host>/<owner>/<repo>[.git])",
    )
    branch: str = Field(default=DEFAULT_BRANCH, min_length=1)
    auto_commit: bool = Field(default=False)
    commit_message_template: str = Field(
        default="feat: {changes}",
        description="Template for generated messages; {changes} is replaced by the summary",
    )

    @property
    def author(self) -> str:
        """Author string recorded on commits."""
        return f"{self.user_name} <{self.user_email}>"


class RepositoryState(BaseModel):
    """
    Persistent repository record for one project.

    Invariants (checked on every validation):
        - ``current_branch`` keys into ``branches`` whenever branches exist
        - every branch head is the id of a commit in ``commits``

    ``commits`` is append-only and is non-empty once ``init`` has run.
    """

    project_id: str
    branches: dict[str, Branch] = Field(default_factory=dict)
    current_branch: str = Field(default=DEFAULT_BRANCH)
    commits: list[Commit] = Field(default_factory=list)
    config: RepoConfig = Field(default_factory=RepoConfig)
    last_push: int | None = Field(default=None, description="Last push, ms since epoch")
    schema_version: int = Field(default=SCHEMA_VERSION)

    @model_validator(mode="after")
    def _check_invariants(self) -> RepositoryState:
        if self.branches and self.current_branch not in self.branches:
            raise ValueError(f"current branch '{self.current_branch}' is not a known branch")
        known = {commit.id for commit in self.commits}
        for branch in self.branches.values():
            if branch.head not in known:
                raise ValueError(
                    f"branch '{branch.name}' head {branch.head} is not a known commit"
                )
        return self

    def get_commit(self, commit_id: str) -> Commit | None:
        """Look up a commit by id."""
        for commit in self.commits:
            if commit.id == commit_id:
                return commit
        return None

    @property
    def last_commit(self) -> Commit | None:
        """The head commit of the current branch."""
        branch = self.branches.get(self.current_branch)
        if branch is None:
            return self.commits[-1] if self.commits else None
        return self.get_commit(branch.head)

    def snapshot(self, branch_name: str | None = None) -> dict[str, str]:
        """
        Rebuild the committed file contents of a branch.

        Replays the change lists of the branch's commits, oldest first.

        Args:
            branch_name: Branch to rebuild (defaults to the current branch)

        Returns:
            Mapping of file name to committed content, in first-commit order
        """
        branch = self.branches.get(branch_name or self.current_branch)
        if branch is None:
            return {}

        by_id = {commit.id: commit for commit in self.commits}
        files: dict[str, str] = {}
        for commit_id in branch.commits:
            commit = by_id.get(commit_id)
            if commit is None:
                continue
            for change in commit.changes:
                if change.type == ChangeType.DELETED:
                    files.pop(change.file.name, None)
                else:
                    files[change.file.name] = change.current_content
        return files


class RepoStatus(BaseModel):
    """Working status of a project relative to its last commit."""

    has_git: bool
    changes: list[FileChange] = Field(default_factory=list)
    current_branch: str = DEFAULT_BRANCH
    branches: list[str] = Field(default_factory=list)
    # Placeholders until a real remote comparison feeds them.
    ahead: int = 0
    behind: int = 0

    @property
    def is_clean(self) -> bool:
        return not self.changes
