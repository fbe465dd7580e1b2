"""
Tracker: the entry point UI and CLI collaborators call.

Combines the local repository service with the remote bridge:

- status / commit go to the local repository
- push writes selected files as one remote commit, then records the push
- pull is split into ``preview_pull`` (list candidate files, compare with
  local state) and ``confirm_pull`` (overlay the selected remote files), so
  no local file is overwritten before the caller confirms
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, Field

from tracksync.core.errors import NoRemoteConfiguredError, NotAuthenticatedError
from tracksync.core.github.client import GitHubClient, partition_paths
from tracksync.core.github.models import (
    LocalFileRef,
    PushResult,
    RemoteComparison,
    RemoteFile,
    RepoInfo,
    parse_remote_url,
)
from tracksync.core.local.models import Commit, ProjectFile, RepositoryState, RepoStatus
from tracksync.core.local.service import (
    LocalRepository,
    detect_changes,
    generate_commit_message,
)

logger = logging.getLogger(__name__)

DEFAULT_PUSH_MESSAGE = "Update files from tracksync"


class PullFileStatus(str, Enum):
    """How a remote file relates to the local file of the same name."""

    NEW = "new"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class PullCandidate(BaseModel):
    """A remote file offered for pulling."""

    path: str
    content: str
    sha: str
    status: PullFileStatus

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


class PullPreview(BaseModel):
    """Everything a pull preview needs to show before anything is written."""

    repo: RepoInfo
    branch: str
    candidates: list[PullCandidate] = Field(default_factory=list)
    comparison: RemoteComparison = Field(default_factory=RemoteComparison)

    @property
    def changed(self) -> list[PullCandidate]:
        return [c for c in self.candidates if c.status != PullFileStatus.UNCHANGED]

    def get(self, path: str) -> PullCandidate | None:
        for candidate in self.candidates:
            if candidate.path == path:
                return candidate
        return None


def _local_refs(files: Iterable[ProjectFile]) -> list[LocalFileRef]:
    return [LocalFileRef(path=f.name, content=f.content) for f in files]


class Tracker:
    """
    Coordinates local commits with remote pushes and pulls.

    Example:
        >>> tracker = Tracker(LocalRepository(store), GitHubClient(auth))
        >>> tracker.commit("site", files)
        >>> await tracker.push("site", files)
        >>> preview = await tracker.preview_pull("site", files)
        >>> files = tracker.confirm_pull(files, preview, ["index.html"])
    """

    def __init__(self, local: LocalRepository, remote: GitHubClient) -> None:
        self.local = local
        self.remote = remote

    def _remote_target(self, project_id: str) -> tuple[RepositoryState, RepoInfo]:
        state = self.local.require_state(project_id)
        if not state.config.remote_url:
            raise NoRemoteConfiguredError(project_id=project_id)
        return state, parse_remote_url(state.config.remote_url)

    def status(self, project_id: str, files: list[ProjectFile]) -> RepoStatus:
        return self.local.get_status(project_id, files)

    def commit(
        self, project_id: str, files: list[ProjectFile], message: str | None = None
    ) -> Commit:
        """
        Commit the current files, generating a message when none is given.

        Raises:
            NoOpCommitError: If nothing changed since the last commit
        """
        state = self.local.require_state(project_id)
        if not message:
            changes = detect_changes(state, files)
            message = generate_commit_message(changes, state.config.commit_message_template)
        return self.local.commit(project_id, message, files)

    async def push(
        self,
        project_id: str,
        files: list[ProjectFile],
        message: str | None = None,
        paths: Iterable[str] | None = None,
    ) -> PushResult:
        """
        Push files to the project's remote branch as one commit.

        Local state (``last_push``) is only updated after the remote ref moved.

        Args:
            project_id: Project identifier
            files: Current project files
            message: Remote commit message
            paths: Names of the files to push (default: all)

        Raises:
            NotAuthenticatedError: If the remote client has no credential
            NoRemoteConfiguredError: If the project has no remote URL
            InvalidRemoteUrlError: If the remote URL cannot be parsed
            ValueError: If ``paths`` names unknown files or selects nothing
            RemoteApiError: If the push fails (StaleTipError when the branch moved)
        """
        if not self.remote.is_authenticated:
            raise NotAuthenticatedError()

        state, repo = self._remote_target(project_id)

        selected = files
        if paths is not None:
            wanted = list(paths)
            by_name = {f.name: f for f in files}
            unknown = [p for p in wanted if p not in by_name]
            if unknown:
                raise ValueError(f"Unknown files: {', '.join(unknown)}")
            selected = [by_name[p] for p in dict.fromkeys(wanted)]
        if not selected:
            raise ValueError("Nothing to push")

        result = await self.remote.push_multiple_files(
            repo.owner,
            repo.repo,
            _local_refs(selected),
            message or DEFAULT_PUSH_MESSAGE,
            state.config.branch,
        )
        self.local.push(project_id)
        return result

    async def compare(self, project_id: str, files: list[ProjectFile]) -> RemoteComparison:
        """Partition local files against the remote branch by blob hash."""
        state, repo = self._remote_target(project_id)
        return await self.remote.compare_with_remote(
            repo.owner, repo.repo, _local_refs(files), state.config.branch
        )

    async def preview_pull(self, project_id: str, files: list[ProjectFile]) -> PullPreview:
        """
        List the remote files that could be pulled.

        Nothing local is modified.

        Returns:
            PullPreview with one candidate per remote file and the full
            local/remote partition
        """
        state, repo = self._remote_target(project_id)
        branch = state.config.branch

        remote_files = await self.remote.pull_changes(repo.owner, repo.repo, branch)
        local_by_name = {f.name: f for f in files}

        candidates = [
            PullCandidate(
                path=rf.path,
                content=rf.content,
                sha=rf.sha,
                status=_pull_status(rf, local_by_name.get(rf.path)),
            )
            for rf in remote_files
        ]
        comparison = partition_paths(
            _local_refs(files), {rf.path: rf.sha for rf in remote_files}
        )

        logger.debug(
            "Pull preview for %s: %d remote files, %d changed",
            project_id,
            len(candidates),
            sum(1 for c in candidates if c.status != PullFileStatus.UNCHANGED),
        )
        return PullPreview(repo=repo, branch=branch, candidates=candidates, comparison=comparison)

    def confirm_pull(
        self,
        files: list[ProjectFile],
        preview: PullPreview,
        selected_paths: Iterable[str] | None = None,
    ) -> list[ProjectFile]:
        """
        Overlay the selected remote files onto the local file list.

        Files are replaced by name in place; new names are appended in
        preview order. The input list is not modified.

        Args:
            files: Current project files
            preview: Result of ``preview_pull``
            selected_paths: Remote paths to take (default: every candidate)

        Returns:
            The new project file list

        Raises:
            ValueError: If a selected path is not in the preview
        """
        if selected_paths is None:
            chosen = list(preview.candidates)
        else:
            chosen = []
            for path in dict.fromkeys(selected_paths):
                candidate = preview.get(path)
                if candidate is None:
                    raise ValueError(f"'{path}' is not in the pull preview")
                chosen.append(candidate)

        incoming = {c.path: ProjectFile(name=c.path, content=c.content) for c in chosen}
        result = [incoming.pop(f.name, f) for f in files]
        result.extend(incoming.values())
        return result


def _pull_status(remote_file: RemoteFile, local: ProjectFile | None) -> PullFileStatus:
    if local is None:
        return PullFileStatus.NEW
    if local.content != remote_file.content:
        return PullFileStatus.MODIFIED
    return PullFileStatus.UNCHANGED
