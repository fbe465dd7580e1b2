"""
Layered .env loading.

Files are applied in order: ``$XDG_CONFIG_HOME/tracksync/.env``, then the
project's ``.env``, then ``.env.local``. A later file replaces values set by
an earlier one; none of them replaces a variable already exported in the
shell. The result records which file each applied key came from, so
``tracksync auth status`` can report where a token was found.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

PROJECT_ENV_FILES = (".env", ".env.local")


@dataclass
class EnvLayers:
    """Keys applied from .env files, mapped to the file that set them."""

    applied: dict[str, Path] = field(default_factory=dict)

    def source_of(self, key: str) -> Path | None:
        return self.applied.get(key)


def get_user_env_path() -> Path:
    return get_xdg_config_home() / "tracksync" / ".env"


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one .env file; a missing file yields nothing."""
    if not path.is_file():
        return {}
    return {
        str(key): str(value)
        for key, value in dotenv_values(path).items()
        if key and value is not None
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> EnvLayers:
    """
    Export variables from the user and project .env files.

    Args:
        project_dir: Directory holding the project .env files (default: cwd)
        user_env_paths: Override the user .env locations
        project_env_paths: Override the project .env locations

    Returns:
        EnvLayers naming the file behind each exported key
    """
    if user_env_paths is None:
        user_env_paths = [get_user_env_path()]
    if project_env_paths is None:
        base = project_dir if project_dir is not None else Path.cwd()
        project_env_paths = [base / name for name in PROJECT_ENV_FILES]

    shell_keys = set(os.environ)
    layers = EnvLayers()
    for path in [*user_env_paths, *project_env_paths]:
        for key, value in read_env_file(Path(path)).items():
            if key in shell_keys:
                continue
            os.environ[key] = value
            layers.applied[key] = Path(path)

    if layers.applied:
        # Values can be tokens; only names are logged
        logger.debug("Loaded from .env files: %s", ", ".join(sorted(layers.applied)))
    return layers
