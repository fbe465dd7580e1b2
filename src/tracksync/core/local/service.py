"""
Local repository service.

Owns per-project commit history, branch pointers and change detection
against the last commit. Every mutating operation loads the record, mutates
it in memory and persists it with a single store write; an operation that
fails writes nothing.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from tracksync.core.errors import (
    BranchExistsError,
    BranchNotFoundError,
    NoOpCommitError,
    NoRemoteConfiguredError,
    RepositoryNotInitializedError,
    SourceBranchNotFoundError,
)
from tracksync.core.local.models import (
    DEFAULT_BRANCH,
    INITIAL_COMMIT_MESSAGE,
    Branch,
    ChangeType,
    Commit,
    FileChange,
    ProjectFile,
    RepoConfig,
    RepositoryState,
    RepoStatus,
    now_ms,
)
from tracksync.core.local.store import StateStore

logger = logging.getLogger(__name__)

CHANGES_PLACEHOLDER = "{changes}"


def detect_changes(state: RepositoryState, files: list[ProjectFile]) -> list[FileChange]:
    """
    Compute the changes of ``files`` against the current branch's last commit.

    Detection is content-aware: unchanged files are not reported. Files are
    reported in input order, followed by deletions in committed order. When a
    name appears more than once in ``files`` the first occurrence wins.

    Args:
        state: Repository record
        files: Current project files

    Returns:
        Ordered list of FileChange records
    """
    committed = state.snapshot()
    changes: list[FileChange] = []
    seen: set[str] = set()

    for file in files:
        if file.name in seen:
            continue
        seen.add(file.name)

        previous = committed.get(file.name)
        if previous is None:
            changes.append(
                FileChange(
                    type=ChangeType.ADDED,
                    file=file,
                    previous_content="",
                    current_content=file.content,
                )
            )
        elif previous != file.content:
            changes.append(
                FileChange(
                    type=ChangeType.MODIFIED,
                    file=file,
                    previous_content=previous,
                    current_content=file.content,
                )
            )

    for name, content in committed.items():
        if name not in seen:
            changes.append(
                FileChange(
                    type=ChangeType.DELETED,
                    file=ProjectFile(name=name, content=content),
                    previous_content=content,
                    current_content="",
                )
            )

    return changes


def summarize_changes(changes: list[FileChange]) -> str:
    """Summarize changes as e.g. 'add 2 files, update 1 file'."""
    counts = Counter(change.type for change in changes)

    parts = []
    for change_type, verb in (
        (ChangeType.ADDED, "add"),
        (ChangeType.MODIFIED, "update"),
        (ChangeType.DELETED, "delete"),
    ):
        count = counts.get(change_type, 0)
        if count > 0:
            parts.append(f"{verb} {count} file{'s' if count > 1 else ''}")
    return ", ".join(parts)


def generate_commit_message(changes: list[FileChange], template: str | None = None) -> str:
    """
    Build a commit message from a change set.

    Args:
        changes: Changes to describe
        template: Optional template; its first ``{changes}`` token is replaced
            by the summary

    Returns:
        The rendered template, or ``chore: <summary>`` without a template or
        when rendering fails

    Example:
        >>> added = FileChange(type="added", file=ProjectFile(name="a.txt"))
        >>> generate_commit_message([added, added])
        'chore: add 2 files'
        >>> generate_commit_message([added], "feat: {changes}")
        'feat: add 1 file'
    """
    summary = summarize_changes(changes)
    default_message = f"chore: {summary}"

    if not template:
        return default_message

    try:
        return template.replace(CHANGES_PLACEHOLDER, summary, 1)
    except (AttributeError, TypeError):
        return default_message


class LocalRepository:
    """
    Service managing local repository records.

    Example:
        >>> repo = LocalRepository(MemoryStateStore())
        >>> state = repo.init("demo")
        >>> len(state.commits)
        1
        >>> files = [ProjectFile(name="index.html", content="<h1>hi</h1>")]
        >>> commit = repo.commit("demo", "add index", files)
        >>> repo.get_status("demo", files).changes
        []
    """

    def __init__(self, store: StateStore, defaults: RepoConfig | None = None) -> None:
        """
        Initialize the service.

        Args:
            store: Where repository records are persisted
            defaults: Repository config used by ``init`` when none is given
        """
        self.store = store
        self.defaults = defaults or RepoConfig()

    def require_state(self, project_id: str) -> RepositoryState:
        state = self.store.load(project_id)
        if state is None:
            raise RepositoryNotInitializedError(project_id)
        return state

    def init(self, project_id: str, config: RepoConfig | None = None) -> RepositoryState:
        """
        Load the project's record, creating it with an initial commit if needed.

        Idempotent: an existing record with commits is returned as is, and
        ``config`` is only applied when the record is created.

        Args:
            project_id: Project identifier
            config: Repository settings for a new record

        Returns:
            The project's repository record
        """
        state = self.store.load(project_id)
        if state is not None and state.commits:
            return state

        if state is None:
            repo_config = (config or self.defaults).model_copy()
            state = RepositoryState(
                project_id=project_id,
                current_branch=repo_config.branch or DEFAULT_BRANCH,
                config=repo_config,
            )

        initial = Commit(
            message=INITIAL_COMMIT_MESSAGE,
            author=state.config.author,
            changes=[],
            branch=state.current_branch,
        )
        state.commits.append(initial)
        state.branches[state.current_branch] = Branch(
            name=state.current_branch,
            head=initial.id,
            commits=[initial.id],
        )

        self.store.save(state)
        logger.info(
            "Initialized repository for %s on branch %s", project_id, state.current_branch
        )
        return state

    def get_status(self, project_id: str, files: list[ProjectFile]) -> RepoStatus:
        """
        Report changes since the last commit.

        Returns a status with ``has_git=False`` when the project has no record.
        """
        state = self.store.load(project_id)
        if state is None:
            return RepoStatus(has_git=False)

        return RepoStatus(
            has_git=True,
            changes=detect_changes(state, files),
            current_branch=state.current_branch,
            branches=list(state.branches),
        )

    def commit(self, project_id: str, message: str, files: list[ProjectFile]) -> Commit:
        """
        Record the current files as a new commit on the current branch.

        Args:
            project_id: Project identifier
            message: Commit message, stored verbatim
            files: Current project files

        Returns:
            The new commit

        Raises:
            RepositoryNotInitializedError: If ``init`` was never run
            NoOpCommitError: If nothing changed since the last commit
        """
        state = self.require_state(project_id)

        changes = detect_changes(state, files)
        if not changes:
            raise NoOpCommitError(project_id=project_id, branch=state.current_branch)

        commit = Commit(
            message=message,
            author=state.config.author,
            changes=changes,
            branch=state.current_branch,
        )
        state.commits.append(commit)

        branch = state.branches.get(state.current_branch)
        if branch is not None:
            branch.head = commit.id
            branch.commits.append(commit.id)

        self.store.save(state)
        logger.info(
            "Committed %s on %s (%d changes): %s",
            commit.id[:8],
            state.current_branch,
            len(changes),
            message,
        )
        return commit

    def generate_commit_message(
        self, changes: list[FileChange], template: str | None = None
    ) -> str:
        """Build a commit message for ``changes``; see ``generate_commit_message``."""
        return generate_commit_message(changes, template)

    def push(self, project_id: str) -> RepositoryState:
        """
        Record a push of the project.

        The remote transfer itself is done by the remote bridge; this marks
        ``last_push`` once it succeeded.

        Raises:
            RepositoryNotInitializedError: If ``init`` was never run
            NoRemoteConfiguredError: If the project has no remote URL
        """
        state = self.require_state(project_id)
        if not state.config.remote_url:
            raise NoRemoteConfiguredError(project_id=project_id)

        state.last_push = now_ms()
        self.store.save(state)
        logger.info("Recorded push of %s to %s", project_id, state.config.remote_url)
        return state

    def pull(self, project_id: str) -> list[FileChange]:
        """
        Local pull placeholder.

        Remote pulls go through ``Tracker.preview_pull`` and ``confirm_pull``;
        this only validates that a remote is configured.

        Raises:
            RepositoryNotInitializedError: If ``init`` was never run
            NoRemoteConfiguredError: If the project has no remote URL
        """
        state = self.require_state(project_id)
        if not state.config.remote_url:
            raise NoRemoteConfiguredError(project_id=project_id)
        return []

    def get_history(self, project_id: str, limit: int = 50) -> list[Commit]:
        """Return up to ``limit`` most recent commits, newest first."""
        state = self.store.load(project_id)
        if state is None or limit <= 0:
            return []
        return list(reversed(state.commits[-limit:]))

    def create_branch(
        self, project_id: str, name: str, from_branch: str | None = None
    ) -> Branch:
        """
        Create a branch copying another branch's head and commit list.

        Args:
            project_id: Project identifier
            name: New branch name
            from_branch: Source branch (defaults to the current branch)

        Returns:
            The new branch

        Raises:
            BranchExistsError: If ``name`` is taken
            SourceBranchNotFoundError: If the source branch has no head
        """
        state = self.require_state(project_id)

        if name in state.branches:
            raise BranchExistsError(name)

        source_name = from_branch or state.current_branch
        source = state.branches.get(source_name)
        if source is None or not source.head:
            raise SourceBranchNotFoundError(source_name)

        branch = Branch(name=name, head=source.head, commits=list(source.commits))
        state.branches[name] = branch

        self.store.save(state)
        logger.info("Created branch %s from %s", name, source_name)
        return branch

    def switch_branch(self, project_id: str, name: str) -> RepositoryState:
        """
        Make ``name`` the current branch.

        Raises:
            BranchNotFoundError: If the branch does not exist
        """
        state = self.require_state(project_id)
        if name not in state.branches:
            raise BranchNotFoundError(name)

        state.current_branch = name
        self.store.save(state)
        logger.info("Switched %s to branch %s", project_id, name)
        return state

    def get_current_branch(self, project_id: str) -> str:
        state = self.store.load(project_id)
        return state.current_branch if state is not None else DEFAULT_BRANCH

    def get_state(self, project_id: str) -> RepositoryState | None:
        return self.store.load(project_id)

    def configure(self, project_id: str, **changes: Any) -> RepositoryState:
        """
        Update repository settings.

        Args:
            project_id: Project identifier
            **changes: RepoConfig fields to set (e.g. ``remote_url=...``)

        Raises:
            RepositoryNotInitializedError: If ``init`` was never run
            ValueError: If a field name is unknown
        """
        state = self.require_state(project_id)

        unknown = set(changes) - set(RepoConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown repository settings: {', '.join(sorted(unknown))}")

        state.config = RepoConfig.model_validate({**state.config.model_dump(), **changes})
        self.store.save(state)
        return state
