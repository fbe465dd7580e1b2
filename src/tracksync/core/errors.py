"""
Exception hierarchy for tracksync.

Local repository errors are deterministic and meant to be checked by the
caller. Remote errors carry the remote's own message unmodified and are never
retried by the library.

Exception Hierarchy:
    TrackSyncError (base)
    ├── LocalStateError (local repository state)
    │   ├── RepositoryNotInitializedError
    │   ├── NoOpCommitError
    │   ├── BranchExistsError
    │   ├── BranchNotFoundError
    │   ├── SourceBranchNotFoundError
    │   └── StateStoreError
    ├── NoRemoteConfiguredError
    ├── InvalidRemoteUrlError
    └── RemoteError (remote object API)
        ├── NotAuthenticatedError
        ├── BinaryContentError
        └── RemoteApiError
            └── StaleTipError

Example:
    >>> from tracksync.core.errors import RemoteApiError
    >>> try:
    ...     raise RemoteApiError(404, "Not Found", path="/repos/o/r")
    ... except RemoteApiError as e:
    ...     print(e.status, e)
    404 [404] Not Found
"""


class TrackSyncError(Exception):
    """
    Base exception for all tracksync errors.

    Attributes:
        message: Human-readable error message
        context: Additional context supplied by the raiser
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class LocalStateError(TrackSyncError):
    """Base exception for local repository state errors."""


class RepositoryNotInitializedError(LocalStateError):
    """Raised when an operation needs a repository record that does not exist yet."""

    def __init__(self, project_id: str) -> None:
        super().__init__(
            f"Repository not initialized for project '{project_id}'",
            project_id=project_id,
        )
        self.project_id = project_id


class NoOpCommitError(LocalStateError):
    """Raised when a commit is requested but nothing changed since the last commit."""

    def __init__(self, message: str = "No changes to commit", **context: object) -> None:
        super().__init__(message, **context)


class BranchExistsError(LocalStateError):
    """Raised when creating a branch whose name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Branch '{name}' already exists", branch=name)
        self.name = name


class BranchNotFoundError(LocalStateError):
    """Raised when switching to a branch that does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Branch '{name}' not found", branch=name)
        self.name = name


class SourceBranchNotFoundError(LocalStateError):
    """Raised when the branch to copy from has no head."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Source branch '{name}' not found", branch=name)
        self.name = name


class StateStoreError(LocalStateError):
    """Raised when a persisted repository record cannot be read or written."""


class NoRemoteConfiguredError(TrackSyncError):
    """Raised when a push or pull is requested without a remote URL."""

    def __init__(self, message: str = "No remote URL configured", **context: object) -> None:
        super().__init__(message, **context)


class InvalidRemoteUrlError(TrackSyncError):
    """Raised when a remote URL does not look like https://<host>/<owner>/<repo>."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid remote URL: {url}", url=url)
        self.url = url


class RemoteError(TrackSyncError):
    """Base exception for remote object API errors."""


class NotAuthenticatedError(RemoteError):
    """Raised before any request is sent when no credential is set."""

    def __init__(self, message: str = "Not authenticated with GitHub", **context: object) -> None:
        super().__init__(message, **context)


class BinaryContentError(RemoteError):
    """Raised when a remote file is not valid UTF-8 text."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Remote file is not UTF-8 text: {path}", path=path)
        self.path = path


class RemoteApiError(RemoteError):
    """
    Error response from the remote API.

    The message is the remote's own ``message`` field when it sent one, else
    the HTTP reason phrase. Status 0 means the request never got a response.

    Attributes:
        status: HTTP status code (0 for transport failures)
        retryable: Whether re-running the whole operation is expected to help
    """

    retryable = False

    def __init__(self, status: int, message: str, **context: object) -> None:
        super().__init__(message, status=status, **context)
        self.status = status

    def __str__(self) -> str:
        return f"[{self.status}] {self.message}"


class StaleTipError(RemoteApiError):
    """
    The branch ref moved on the remote between reading its tip and updating it.

    Raised by the non-forced ref update at the end of a multi-file push. The
    objects created by the push are orphaned but harmless; re-running the push
    recomputes the base tree from the new tip.
    """

    retryable = True


__all__ = [
    "TrackSyncError",
    "LocalStateError",
    "RepositoryNotInitializedError",
    "NoOpCommitError",
    "BranchExistsError",
    "BranchNotFoundError",
    "SourceBranchNotFoundError",
    "StateStoreError",
    "NoRemoteConfiguredError",
    "InvalidRemoteUrlError",
    "RemoteError",
    "NotAuthenticatedError",
    "BinaryContentError",
    "RemoteApiError",
    "StaleTipError",
]
