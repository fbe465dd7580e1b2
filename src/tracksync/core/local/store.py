"""
Persistence for repository records.

Each project has exactly one serialized ``RepositoryState`` record, keyed by
project id. Records are always written and read wholesale; the JSON store
writes through a temp file and ``os.replace`` so readers never observe a
partial record.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from tracksync.core.errors import StateStoreError
from tracksync.core.local.models import RepositoryState

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class StateStore(Protocol):
    """Protocol for repository record storage."""

    def load(self, project_id: str) -> RepositoryState | None:
        """Return the stored record, or None if the project has none."""
        ...

    def save(self, state: RepositoryState) -> None:
        """Replace the stored record for ``state.project_id``."""
        ...


def serialize_state(state: RepositoryState) -> str:
    """Serialize a record to the JSON form used by every store."""
    return state.model_dump_json(indent=2)


def deserialize_state(raw: str, project_id: str) -> RepositoryState:
    """
    Parse a stored record.

    Raises:
        StateStoreError: If the record is not valid JSON or violates the schema
    """
    try:
        return RepositoryState.model_validate_json(raw)
    except ValidationError as e:
        raise StateStoreError(
            f"Corrupt repository record for project '{project_id}': {e}",
            project_id=project_id,
        ) from e


class MemoryStateStore:
    """
    In-process store holding serialized records.

    Records go through the same JSON round trip as the file store, so callers
    never share mutable state with the store.
    """

    def __init__(self, records: dict[str, str] | None = None) -> None:
        self.records: dict[str, str] = records if records is not None else {}

    def load(self, project_id: str) -> RepositoryState | None:
        raw = self.records.get(project_id)
        if raw is None:
            return None
        return deserialize_state(raw, project_id)

    def save(self, state: RepositoryState) -> None:
        self.records[state.project_id] = serialize_state(state)


class JsonStateStore:
    """
    Store for repository records as one JSON file per project.

    Example:
        >>> store = JsonStateStore(Path("~/.local/share/tracksync/repos").expanduser())
        >>> state = store.load("my-project")
    """

    def __init__(self, state_dir: Path) -> None:
        """
        Initialize JsonStateStore.

        Args:
            state_dir: Directory holding the per-project records
        """
        self.state_dir = state_dir

    def path_for(self, project_id: str) -> Path:
        """
        Path of the record file for a project.

        Project ids with characters outside ``[A-Za-z0-9._-]`` are sanitized
        and suffixed with a short hash so distinct ids never share a file.
        """
        safe = _UNSAFE_CHARS.sub("_", project_id)
        if safe != project_id or not safe.strip("."):
            digest = hashlib.sha1(project_id.encode("utf-8")).hexdigest()[:8]
            safe = f"{safe}-{digest}"
        return self.state_dir / f"{safe}.json"

    def load(self, project_id: str) -> RepositoryState | None:
        path = self.path_for(project_id)
        if not path.exists():
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateStoreError(
                f"Failed to read repository record {path}: {e}",
                project_id=project_id,
            ) from e
        return deserialize_state(raw, project_id)

    def save(self, state: RepositoryState) -> None:
        path = self.path_for(state.project_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: temp file + replace
        fd, temp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.stem}_",
            suffix=".json.tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(serialize_state(state))
                f.write("\n")
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StateStoreError(
                f"Failed to write repository record {path}: {e}",
                project_id=state.project_id,
            ) from e

        logger.debug("Saved repository record for %s to %s", state.project_id, path)
