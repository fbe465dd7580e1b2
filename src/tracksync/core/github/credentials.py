"""
Bearer credential storage.

Stores the GitHub token in ``auth.json`` under the user config directory with
owner-only permissions. Token resolution order is: explicit token, then the
environment variable named by ``github.token_env_var``, then
``TRACKSYNC_TOKEN``, then the stored file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from tracksync.core.github.models import GitHubAuth

logger = logging.getLogger(__name__)

TRACKSYNC_TOKEN_ENV = "TRACKSYNC_TOKEN"


class CredentialStore:
    """
    File-backed store for a single GitHub credential.

    Example:
        >>> store = CredentialStore(Path("~/.config/tracksync/auth.json").expanduser())
        >>> store.save(GitHubAuth(token="ghp_...", username="octocat"))
        >>> store.load().username
        'octocat'
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> GitHubAuth | None:
        """Return the stored credential, or None if absent or unreadable."""
        if not self.path.exists():
            return None
        try:
            return GitHubAuth.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable credentials at %s: %s", self.path, e)
            return None

    def save(self, auth: GitHubAuth) -> None:
        """Write the credential atomically with 0600 permissions."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".auth_", suffix=".tmp")
        try:
            os.chmod(temp_path, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(auth.model_dump(), f, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def clear(self) -> bool:
        """Remove the stored credential. Returns True if one was removed."""
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


def find_env_token(token_env_var: str = "GITHUB_TOKEN") -> tuple[str, str] | None:
    """Return ``(variable, token)`` for the first token variable that is set."""
    for name in dict.fromkeys((token_env_var, TRACKSYNC_TOKEN_ENV)):
        if token := os.environ.get(name):
            return name, token
    return None


def resolve_auth(
    token: str | None = None,
    *,
    token_env_var: str = "GITHUB_TOKEN",
    store: CredentialStore | None = None,
) -> GitHubAuth | None:
    """
    Pick the credential to use.

    Args:
        token: Explicit token (highest precedence)
        token_env_var: Environment variable holding a token, checked before
            ``TRACKSYNC_TOKEN``
        store: Stored credential fallback

    Returns:
        GitHubAuth or None when no credential is available
    """
    if token:
        return GitHubAuth(token=token)
    if found := find_env_token(token_env_var):
        return GitHubAuth(token=found[1])
    if store is not None:
        return store.load()
    return None
