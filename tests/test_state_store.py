"""
Tests for repository record stores.
"""

import json
from pathlib import Path

import pytest

from tracksync.core.errors import StateStoreError
from tracksync.core.local import (
    JsonStateStore,
    LocalRepository,
    MemoryStateStore,
    ProjectFile,
)


class TestMemoryStateStore:
    """Tests for the in-memory store."""

    def test_missing_record(self) -> None:
        assert MemoryStateStore().load("demo") is None

    def test_round_trip_returns_copies(self) -> None:
        """Loaded records never share state with the store."""
        store = MemoryStateStore()
        state = LocalRepository(store).init("demo")

        loaded = store.load("demo")
        assert loaded == state
        assert loaded is not state

        loaded.current_branch = "elsewhere"
        assert store.load("demo").current_branch == "main"

    def test_corrupt_record(self) -> None:
        store = MemoryStateStore({"demo": "{not json"})
        with pytest.raises(StateStoreError, match="Corrupt repository record"):
            store.load("demo")


class TestJsonStateStore:
    """Tests for the file-backed store."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = JsonStateStore(tmp_path / "repos")
        repo = LocalRepository(store)
        repo.init("demo")
        repo.commit("demo", "add", [ProjectFile(name="a.txt", content="a")])

        fresh = JsonStateStore(tmp_path / "repos").load("demo")

        assert fresh is not None
        assert [c.message for c in fresh.commits] == ["Initial commit", "add"]

    def test_writes_readable_json(self, tmp_path: Path) -> None:
        store = JsonStateStore(tmp_path)
        LocalRepository(store).init("demo")

        data = json.loads((tmp_path / "demo.json").read_text())

        assert data["project_id"] == "demo"
        assert data["schema_version"] == 1
        assert data["commits"][0]["kind"] == "shallow"

    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        store = JsonStateStore(tmp_path)
        repo = LocalRepository(store)
        repo.init("demo")
        repo.create_branch("demo", "dev")

        assert sorted(p.name for p in tmp_path.iterdir()) == ["demo.json"]

    def test_missing_record(self, tmp_path: Path) -> None:
        assert JsonStateStore(tmp_path / "nothing-here").load("demo") is None

    def test_corrupt_record(self, tmp_path: Path) -> None:
        (tmp_path / "demo.json").write_text('{"project_id": "demo", "branches": 3}')
        with pytest.raises(StateStoreError):
            JsonStateStore(tmp_path).load("demo")

    def test_init_does_not_overwrite_corrupt_record(self, tmp_path: Path) -> None:
        """A corrupt record is reported, never silently replaced."""
        record = tmp_path / "demo.json"
        record.write_text("garbage")

        with pytest.raises(StateStoreError):
            LocalRepository(JsonStateStore(tmp_path)).init("demo")

        assert record.read_text() == "garbage"

    @pytest.mark.parametrize(
        "project_id",
        ["my site", "../escape", "a/b", "..", "ünïcode"],
    )
    def test_unsafe_ids_stay_inside_state_dir(self, tmp_path: Path, project_id: str) -> None:
        store = JsonStateStore(tmp_path)

        path = store.path_for(project_id)

        assert path.parent == tmp_path
        assert path.name.endswith(".json")

    def test_sanitized_ids_do_not_collide(self, tmp_path: Path) -> None:
        store = JsonStateStore(tmp_path)
        assert store.path_for("a b") != store.path_for("a_b")
        assert store.path_for("a b") != store.path_for("a/b")
