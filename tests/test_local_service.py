"""
Tests for the LocalRepository service.

Tests cover:
- Idempotent initialization
- Content-aware change detection
- Commits (append, no-op rejection, persistence)
- Commit message generation
- Push/pull bookkeeping
- History, branches and configuration
"""

from __future__ import annotations

import pytest

from tracksync.core.errors import (
    BranchExistsError,
    BranchNotFoundError,
    NoOpCommitError,
    NoRemoteConfiguredError,
    RepositoryNotInitializedError,
    SourceBranchNotFoundError,
)
from tracksync.core.local import (
    ChangeType,
    FileChange,
    LocalRepository,
    MemoryStateStore,
    ProjectFile,
    RepoConfig,
)
from tracksync.core.local.service import generate_commit_message, summarize_changes

REMOTE_URL = "https://github.com/octocat/site"


def _change(kind: ChangeType, name: str = "f.txt") -> FileChange:
    return FileChange(type=kind, file=ProjectFile(name=name))


class TestInit:
    """Tests for LocalRepository.init."""

    def test_creates_initial_commit(self, repo: LocalRepository) -> None:
        state = repo.init("demo")

        assert len(state.commits) == 1
        initial = state.commits[0]
        assert initial.message == "Initial commit"
        assert initial.changes == []
        assert initial.author == "tracksync <tracksync@localhost>"
        assert state.current_branch == "main"
        assert state.branches["main"].head == initial.id
        assert state.branches["main"].commits == [initial.id]

    def test_is_idempotent(self, repo: LocalRepository, sample_files: list[ProjectFile]) -> None:
        """A second init neither adds an initial commit nor drops commits."""
        repo.init("demo")
        repo.commit("demo", "add files", sample_files)

        state = repo.init("demo")

        assert [c.message for c in state.commits] == ["Initial commit", "add files"]

    def test_second_init_does_not_rewrite_record(
        self, repo: LocalRepository, store: MemoryStateStore
    ) -> None:
        repo.init("demo")
        before = store.records["demo"]

        repo.init("demo", RepoConfig(branch="other"))

        assert store.records["demo"] == before

    def test_uses_config_branch(self, repo: LocalRepository) -> None:
        state = repo.init("demo", RepoConfig(branch="trunk", remote_url=REMOTE_URL))

        assert state.current_branch == "trunk"
        assert list(state.branches) == ["trunk"]
        assert state.config.remote_url == REMOTE_URL

    def test_uses_service_defaults(self, store: MemoryStateStore) -> None:
        repo = LocalRepository(store, defaults=RepoConfig(user_name="Ada", user_email="a@x.org"))

        state = repo.init("demo")

        assert state.commits[0].author == "Ada <a@x.org>"

    def test_projects_are_independent(self, repo: LocalRepository) -> None:
        repo.init("one")
        assert repo.get_state("two") is None


class TestGetStatus:
    """Tests for content-aware change detection."""

    def test_uninitialized(self, repo: LocalRepository, sample_files: list[ProjectFile]) -> None:
        status = repo.get_status("demo", sample_files)

        assert status.has_git is False
        assert status.changes == []

    def test_all_files_added_after_init(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        repo.init("demo")

        status = repo.get_status("demo", sample_files)

        assert status.has_git is True
        assert [c.type for c in status.changes] == [ChangeType.ADDED] * 3
        assert [c.file.name for c in status.changes] == [f.name for f in sample_files]
        assert status.current_branch == "main"
        assert status.branches == ["main"]

    def test_clean_after_commit(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        repo.init("demo")
        repo.commit("demo", "add", sample_files)

        assert repo.get_status("demo", sample_files).is_clean

    def test_classifies_added_modified_deleted(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        repo.init("demo")
        repo.commit("demo", "add", sample_files)

        current = [
            ProjectFile(name="index.html", content="<h1>Changed</h1>\n"),
            sample_files[1],
            ProjectFile(name="about.html", content="about\n"),
        ]
        changes = repo.get_status("demo", current).changes

        assert [(c.type, c.file.name) for c in changes] == [
            (ChangeType.MODIFIED, "index.html"),
            (ChangeType.ADDED, "about.html"),
            (ChangeType.DELETED, "js/app.js"),
        ]
        modified, added, deleted = changes
        assert modified.previous_content == "<h1>Hello</h1>\n"
        assert modified.current_content == "<h1>Changed</h1>\n"
        assert added.previous_content == ""
        assert deleted.previous_content == "console.log('hi');\n"
        assert deleted.current_content == ""

    def test_duplicate_names_first_wins(self, repo: LocalRepository) -> None:
        repo.init("demo")
        files = [ProjectFile(name="a.txt", content="1"), ProjectFile(name="a.txt", content="2")]

        changes = repo.get_status("demo", files).changes

        assert len(changes) == 1
        assert changes[0].current_content == "1"


class TestCommit:
    """Tests for LocalRepository.commit."""

    def test_strictly_appends(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        """A non-empty commit adds exactly one commit and moves the branch head."""
        repo.init("demo")
        before = repo.get_state("demo")
        assert before is not None

        commit = repo.commit("demo", "add files", sample_files)

        after = repo.get_state("demo")
        assert after is not None
        assert len(after.commits) == len(before.commits) + 1
        assert after.commits[-1] == commit
        assert after.branches["main"].head == commit.id
        assert after.branches["main"].commits[-1] == commit.id

    def test_stores_message_verbatim(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        repo.init("demo")
        message = "  fix: {changes} stays as typed\n\nbody"

        commit = repo.commit("demo", message, sample_files)

        assert commit.message == message
        assert commit.branch == "main"
        assert len(commit.changes) == 3

    def test_noop_commit_raises_and_leaves_record_unchanged(
        self, repo: LocalRepository, store: MemoryStateStore, sample_files: list[ProjectFile]
    ) -> None:
        """An empty change set fails and the stored record stays byte-identical."""
        repo.init("demo")
        repo.commit("demo", "add", sample_files)
        before = store.records["demo"]

        with pytest.raises(NoOpCommitError):
            repo.commit("demo", "again", sample_files)

        assert store.records["demo"] == before

    def test_noop_right_after_init(self, repo: LocalRepository) -> None:
        repo.init("demo")
        with pytest.raises(NoOpCommitError):
            repo.commit("demo", "nothing", [])

    def test_requires_init(self, repo: LocalRepository, sample_files: list[ProjectFile]) -> None:
        with pytest.raises(RepositoryNotInitializedError):
            repo.commit("demo", "add", sample_files)

    def test_commit_on_branch_does_not_touch_other_branch(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        repo.init("demo")
        repo.commit("demo", "base", sample_files[:1])
        repo.create_branch("demo", "dev")
        repo.switch_branch("demo", "dev")

        commit = repo.commit("demo", "dev work", sample_files)

        state = repo.get_state("demo")
        assert state is not None
        assert state.branches["dev"].head == commit.id
        assert state.branches["main"].head != commit.id
        assert commit.branch == "dev"
        # main still sees the files added on dev as new
        repo.switch_branch("demo", "main")
        added = [c.file.name for c in repo.get_status("demo", sample_files).changes]
        assert added == ["style.css", "js/app.js"]


class TestGenerateCommitMessage:
    """Tests for commit message generation."""

    def test_plural_and_singular(self) -> None:
        changes = [
            _change(ChangeType.ADDED, "a"),
            _change(ChangeType.ADDED, "b"),
            _change(ChangeType.MODIFIED, "c"),
        ]
        assert generate_commit_message(changes) == "chore: add 2 files, update 1 file"

    def test_all_kinds(self) -> None:
        changes = [
            _change(ChangeType.DELETED, "a"),
            _change(ChangeType.MODIFIED, "b"),
            _change(ChangeType.ADDED, "c"),
        ]
        assert summarize_changes(changes) == "add 1 file, update 1 file, delete 1 file"

    def test_template(self) -> None:
        changes = [_change(ChangeType.MODIFIED)]
        assert generate_commit_message(changes, "feat: {changes}") == "feat: update 1 file"

    def test_template_replaces_first_token_only(self) -> None:
        changes = [_change(ChangeType.ADDED)]
        message = generate_commit_message(changes, "{changes} / {changes}")
        assert message == "add 1 file / {changes}"

    def test_template_without_token(self) -> None:
        assert generate_commit_message([_change(ChangeType.ADDED)], "wip") == "wip"

    def test_bad_template_falls_back(self) -> None:
        changes = [_change(ChangeType.ADDED)]
        assert generate_commit_message(changes, 42) == "chore: add 1 file"  # type: ignore[arg-type]

    def test_service_method_delegates(self, repo: LocalRepository) -> None:
        changes = [_change(ChangeType.DELETED)] * 4
        assert repo.generate_commit_message(changes) == "chore: delete 4 files"


class TestPushPull:
    """Tests for push/pull bookkeeping."""

    def test_push_requires_remote(self, repo: LocalRepository) -> None:
        repo.init("demo")
        with pytest.raises(NoRemoteConfiguredError):
            repo.push("demo")

    def test_push_records_last_push(self, repo: LocalRepository) -> None:
        repo.init("demo", RepoConfig(remote_url=REMOTE_URL))

        state = repo.push("demo")

        assert state.last_push is not None
        stored = repo.get_state("demo")
        assert stored is not None
        assert stored.last_push == state.last_push

    def test_pull_requires_remote(self, repo: LocalRepository) -> None:
        repo.init("demo")
        with pytest.raises(NoRemoteConfiguredError):
            repo.pull("demo")

    def test_pull_is_a_placeholder(self, repo: LocalRepository) -> None:
        repo.init("demo", RepoConfig(remote_url=REMOTE_URL))
        assert repo.pull("demo") == []


class TestHistory:
    """Tests for get_history."""

    def test_newest_first(self, repo: LocalRepository) -> None:
        repo.init("demo")
        for i in range(3):
            repo.commit("demo", f"c{i}", [ProjectFile(name="a.txt", content=str(i))])

        history = repo.get_history("demo")

        assert [c.message for c in history] == ["c2", "c1", "c0", "Initial commit"]

    def test_limit(self, repo: LocalRepository) -> None:
        repo.init("demo")
        for i in range(3):
            repo.commit("demo", f"c{i}", [ProjectFile(name="a.txt", content=str(i))])

        assert [c.message for c in repo.get_history("demo", limit=2)] == ["c2", "c1"]

    def test_uninitialized(self, repo: LocalRepository) -> None:
        assert repo.get_history("demo") == []


class TestBranches:
    """Tests for branch creation and switching."""

    def test_create_copies_source(
        self, repo: LocalRepository, sample_files: list[ProjectFile]
    ) -> None:
        repo.init("demo")
        commit = repo.commit("demo", "add", sample_files)

        branch = repo.create_branch("demo", "dev")

        assert branch.head == commit.id
        state = repo.get_state("demo")
        assert state is not None
        assert state.branches["dev"].commits == state.branches["main"].commits
        assert state.current_branch == "main"

    @pytest.mark.parametrize("from_branch", [None, "main", "missing"])
    def test_existing_name_always_fails(
        self, repo: LocalRepository, from_branch: str | None
    ) -> None:
        """BranchExistsError wins regardless of the source branch."""
        repo.init("demo")
        repo.create_branch("demo", "dev")

        with pytest.raises(BranchExistsError):
            repo.create_branch("demo", "dev", from_branch)

    def test_missing_source(self, repo: LocalRepository) -> None:
        repo.init("demo")
        with pytest.raises(SourceBranchNotFoundError):
            repo.create_branch("demo", "dev", "missing")

    def test_switch(self, repo: LocalRepository) -> None:
        repo.init("demo")
        repo.create_branch("demo", "dev")

        state = repo.switch_branch("demo", "dev")

        assert state.current_branch == "dev"
        assert repo.get_current_branch("demo") == "dev"

    def test_switch_unknown_leaves_current_branch(
        self, repo: LocalRepository, store: MemoryStateStore
    ) -> None:
        repo.init("demo")
        before = store.records["demo"]

        with pytest.raises(BranchNotFoundError):
            repo.switch_branch("demo", "nope")

        assert repo.get_current_branch("demo") == "main"
        assert store.records["demo"] == before

    def test_current_branch_default(self, repo: LocalRepository) -> None:
        assert repo.get_current_branch("demo") == "main"


class TestConfigure:
    """Tests for configure."""

    def test_sets_remote(self, repo: LocalRepository) -> None:
        repo.init("demo")

        state = repo.configure("demo", remote_url=REMOTE_URL, branch="gh-pages")

        assert state.config.remote_url == REMOTE_URL
        assert state.config.branch == "gh-pages"
        # the local current branch is unaffected
        assert state.current_branch == "main"

    def test_rejects_unknown_field(self, repo: LocalRepository) -> None:
        repo.init("demo")
        with pytest.raises(ValueError, match="Unknown repository settings"):
            repo.configure("demo", colour="blue")

    def test_requires_init(self, repo: LocalRepository) -> None:
        with pytest.raises(RepositoryNotInitializedError):
            repo.configure("demo", remote_url=REMOTE_URL)
