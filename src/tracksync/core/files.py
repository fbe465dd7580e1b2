"""
Workspace file loading.

Turns a directory into the flat list of named project files tracksync works
on, and writes pulled files back. Names are POSIX paths relative to the root.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from pathlib import Path

import pathspec

from tracksync.core.local.models import ProjectFile

logger = logging.getLogger(__name__)

_DEFAULT_IGNORE_PATTERNS = (
    ".git/",
    ".tracksync/",
    ".tracksync.json",
    ".env",
    ".env.local",
    "__pycache__/",
    "node_modules/",
    ".DS_Store",
)


def load_ignore_spec(root: Path, extra_patterns: Iterable[str] = ()) -> pathspec.PathSpec:
    """Build a gitignore matcher from defaults, ``root/.gitignore`` and extras."""
    patterns = list(_DEFAULT_IGNORE_PATTERNS)
    gitignore = root / ".gitignore"
    if gitignore.is_file():
        try:
            patterns.extend(gitignore.read_text().splitlines())
        except OSError:
            logger.debug("Could not read %s", gitignore, exc_info=True)
    patterns.extend(extra_patterns)
    return pathspec.PathSpec.from_lines("gitignore", patterns)


def load_project_files(root: Path, ignore_patterns: Iterable[str] = ()) -> list[ProjectFile]:
    """
    Read every tracked text file under ``root``.

    Skips ignored paths, symlinks and files that are not valid UTF-8.

    Args:
        root: Workspace directory
        ignore_patterns: Extra gitignore-style patterns

    Returns:
        Project files sorted by name
    """
    root = root.resolve()
    spec = load_ignore_spec(root, ignore_patterns)

    files: list[ProjectFile] = []
    for path in sorted(root.rglob("*")):
        if path.is_symlink() or not path.is_file():
            continue
        name = path.relative_to(root).as_posix()
        if spec.match_file(name):
            continue
        try:
            content = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping non-text file %s", name)
            continue
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", name, e)
            continue
        files.append(ProjectFile(name=name, content=content))

    files.sort(key=lambda f: f.name)
    return files


def write_project_files(
    root: Path,
    files: Iterable[ProjectFile],
    tracked: Collection[str] | None = None,
) -> list[Path]:
    """
    Write files under ``root``, creating parent directories.

    Every target is checked before anything is written.

    Args:
        root: Workspace directory
        files: Files to write
        tracked: Names loaded from the workspace. When given, an existing
            file whose name is not in it is never overwritten (binary or
            ignored files that ``load_project_files`` skipped)

    Raises:
        ValueError: If a file name escapes ``root`` or would overwrite an
            untracked file
    """
    root = root.resolve()
    targets: list[tuple[Path, ProjectFile]] = []
    for file in files:
        target = (root / file.name).resolve()
        if not target.is_relative_to(root):
            raise ValueError(f"Refusing to write outside the workspace: {file.name}")
        if tracked is not None and file.name not in tracked and target.exists():
            raise ValueError(f"Refusing to overwrite untracked file: {file.name}")
        targets.append((target, file))

    written: list[Path] = []
    for target, file in targets:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(file.content.encode("utf-8"))
        written.append(target)
    return written
