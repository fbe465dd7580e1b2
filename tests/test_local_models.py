"""
Tests for local repository data models.

Tests cover:
- Commit immutability and the shallow kind tag
- RepoConfig defaults and author formatting
- RepositoryState invariants
- Snapshot replay across commits and branches
"""

import pytest
from pydantic import ValidationError

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


def _change(kind: ChangeType, name: str, content: str = "", previous: str = "") -> FileChange:
    return FileChange(
        type=kind,
        file=ProjectFile(name=name, content=content),
        previous_content=previous,
        current_content=content,
    )


def _state_with(commits: list[Commit], branch_commits: dict[str, list[str]]) -> RepositoryState:
    return RepositoryState(
        project_id="demo",
        commits=commits,
        branches={
            name: Branch(name=name, head=ids[-1], commits=ids)
            for name, ids in branch_commits.items()
        },
    )


class TestCommit:
    """Tests for the Commit model."""

    def test_defaults(self) -> None:
        """A commit gets an id, a timestamp and the shallow kind."""
        commit = Commit(message="m", author="a <b>", branch="main")

        assert len(commit.id) == 32
        assert commit.timestamp > 0
        assert commit.kind == "shallow"
        assert commit.changes == []

    def test_ids_are_unique(self) -> None:
        first = Commit(message="m", author="a <b>", branch="main")
        second = Commit(message="m", author="a <b>", branch="main")
        assert first.id != second.id

    def test_is_frozen(self) -> None:
        """Commits cannot be modified after creation."""
        commit = Commit(message="m", author="a <b>", branch="main")
        with pytest.raises(ValidationError):
            commit.message = "other"  # type: ignore[misc]

    def test_rejects_unknown_kind(self) -> None:
        with pytest.raises(ValidationError):
            Commit(message="m", author="a <b>", branch="main", kind="snapshot")  # type: ignore[arg-type]


class TestRepoConfig:
    """Tests for RepoConfig."""

    def test_defaults(self) -> None:
        config = RepoConfig()

        assert config.user_name == "tracksync"
        assert config.user_email == "tracksync@localhost"
        assert config.remote_url is None
        assert config.branch == "main"
        assert config.auto_commit is False
        assert config.commit_message_template == "feat: {changes}"

    def test_author(self) -> None:
        config = RepoConfig(user_name="Ada", user_email="ada@example.com")
        assert config.author == "Ada <ada@example.com>"


class TestRepositoryStateInvariants:
    """RepositoryState refuses records that break its invariants."""

    def test_current_branch_must_exist(self) -> None:
        commit = Commit(message="m", author="a <b>", branch="main")
        with pytest.raises(ValidationError, match="current branch"):
            RepositoryState(
                project_id="demo",
                current_branch="dev",
                commits=[commit],
                branches={"main": Branch(name="main", head=commit.id, commits=[commit.id])},
            )

    def test_head_must_be_known_commit(self) -> None:
        with pytest.raises(ValidationError, match="not a known commit"):
            RepositoryState(
                project_id="demo",
                branches={"main": Branch(name="main", head="missing", commits=["missing"])},
            )

    def test_empty_record_is_valid(self) -> None:
        """A record with no branches yet (before init) is accepted."""
        state = RepositoryState(project_id="demo")
        assert state.commits == []
        assert state.last_commit is None

    def test_json_round_trip_keeps_invariants(self) -> None:
        commit = Commit(message="m", author="a <b>", branch="main")
        state = _state_with([commit], {"main": [commit.id]})

        restored = RepositoryState.model_validate_json(state.model_dump_json())

        assert restored == state
        assert restored.last_commit == commit


class TestSnapshot:
    """Tests for snapshot replay."""

    def test_replays_changes_in_order(self) -> None:
        first = Commit(
            message="add",
            author="a <b>",
            branch="main",
            changes=[
                _change(ChangeType.ADDED, "a.txt", "a1"),
                _change(ChangeType.ADDED, "b.txt", "b1"),
            ],
        )
        second = Commit(
            message="edit",
            author="a <b>",
            branch="main",
            changes=[
                _change(ChangeType.MODIFIED, "a.txt", "a2", previous="a1"),
                _change(ChangeType.DELETED, "b.txt", previous="b1"),
            ],
        )
        state = _state_with([first, second], {"main": [first.id, second.id]})

        assert state.snapshot() == {"a.txt": "a2"}

    def test_branch_snapshot_ignores_other_branches(self) -> None:
        """Commits made on another branch do not leak into this branch's snapshot."""
        base = Commit(
            message="base",
            author="a <b>",
            branch="main",
            changes=[_change(ChangeType.ADDED, "a.txt", "a")],
        )
        feature = Commit(
            message="feature",
            author="a <b>",
            branch="dev",
            changes=[_change(ChangeType.ADDED, "f.txt", "f")],
        )
        state = _state_with(
            [base, feature], {"main": [base.id], "dev": [base.id, feature.id]}
        )

        assert state.snapshot("main") == {"a.txt": "a"}
        assert state.snapshot("dev") == {"a.txt": "a", "f.txt": "f"}

    def test_unknown_branch_is_empty(self) -> None:
        assert RepositoryState(project_id="demo").snapshot("nope") == {}


class TestRepoStatus:
    def test_clean_status(self) -> None:
        status = RepoStatus(has_git=True)
        assert status.is_clean
        assert status.ahead == 0
        assert status.behind == 0

    def test_dirty_status(self) -> None:
        status = RepoStatus(has_git=True, changes=[_change(ChangeType.ADDED, "a.txt", "a")])
        assert not status.is_clean
