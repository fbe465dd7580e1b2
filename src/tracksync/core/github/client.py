"""
Async client for the GitHub git object API.

Wraps the REST endpoints tracksync needs: refs, blobs, trees, commits,
recursive tree listings, commit listings and file contents. Multi-file pushes
are built from git objects and published with a single non-forced ref update,
so a push that fails before that last call leaves the branch untouched.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from tracksync.core.errors import (
    BinaryContentError,
    NotAuthenticatedError,
    RemoteApiError,
    StaleTipError,
)
from tracksync.core.github.models import (
    FileContent,
    GitHubAuth,
    LocalFileRef,
    PushResult,
    RemoteCommit,
    RemoteComparison,
    RemoteFile,
    TreeEntry,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONCURRENCY = 8

FILE_MODE = "100644"


def _quote_path(path: str) -> str:
    return quote(path, safe="/")


def _is_stale_tip(error: RemoteApiError) -> bool:
    """Whether a failed ref update was rejected because the remote moved."""
    if error.status == 409:
        return True
    return error.status == 422 and "fast forward" in error.message.lower()


class GitHubClient:
    """
    Client for the GitHub REST API using bearer-token auth.

    The client is explicitly constructed and owns its ``httpx.AsyncClient``
    unless one is injected. Every request fails with ``NotAuthenticatedError``
    before any I/O when no token is set, and every error response surfaces as
    ``RemoteApiError`` carrying the remote's own message.

    Example:
        >>> async with GitHubClient(GitHubAuth(token="ghp_...")) as client:
        ...     tree = await client.get_repository_tree("octocat", "hello", "main")
        ...     result = await client.push_multiple_files(
        ...         "octocat", "hello",
        ...         [LocalFileRef(path="README.md", content="# hi\\n")],
        ...         "Update README",
        ...     )
    """

    def __init__(
        self,
        auth: GitHubAuth | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        concurrency: int = DEFAULT_CONCURRENCY,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize GitHubClient.

        Args:
            auth: Bearer credential (can be set later with ``set_auth``)
            api_url: API base URL
            timeout: Request timeout in seconds
            concurrency: Maximum concurrent blob creations / content fetches
            transport: Optional transport for the owned httpx client
            http_client: Optional preconfigured client; not closed by ``aclose``
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self._auth = auth
        self.api_url = api_url.rstrip("/")
        self.concurrency = concurrency
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.api_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def auth(self) -> GitHubAuth | None:
        return self._auth

    def set_auth(self, token: str, username: str = "") -> None:
        """Set the bearer credential used for subsequent requests."""
        self._auth = GitHubAuth(token=token, username=username)

    def clear_auth(self) -> None:
        self._auth = None

    @property
    def is_authenticated(self) -> bool:
        return self._auth is not None and len(self._auth.token) > 0

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        }

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send one authenticated request and return the decoded JSON body.

        Raises:
            NotAuthenticatedError: If no token is set
            RemoteApiError: On error responses or transport failures
        """
        if self._auth is None or not self._auth.token:
            raise NotAuthenticatedError()
        token = self._auth.token

        logger.debug("GitHub %s %s", method, path)
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            raise RemoteApiError(
                0, str(e) or e.__class__.__name__, method=method, path=path
            ) from e

        if response.is_error:
            raise self._error_from_response(response, method, path)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise RemoteApiError(
                response.status_code,
                "Invalid JSON in GitHub API response",
                method=method,
                path=path,
            ) from e

    @staticmethod
    def _error_from_response(
        response: httpx.Response, method: str, path: str
    ) -> RemoteApiError:
        message = ""
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("message"):
                message = str(body["message"])
        except ValueError:
            pass
        if not message:
            message = response.reason_phrase or f"GitHub API error: {response.status_code}"
        return RemoteApiError(response.status_code, message, method=method, path=path)

    async def _bounded_gather(
        self, items: Sequence[T], func: Callable[[T], Awaitable[R]]
    ) -> list[R]:
        """
        Run ``func`` over ``items`` concurrently, at most ``concurrency`` at a time.

        Waits for every call to settle, then re-raises the first failure in
        input order. Results keep input order.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(item: T) -> R:
            async with semaphore:
                return await func(item)

        results = await asyncio.gather(*(run(item) for item in items), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def get_authenticated_user(self) -> dict[str, Any]:
        """Fetch the user the token belongs to (validates the credential)."""
        data: dict[str, Any] = await self._request("GET", "/user")
        return data

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        data: dict[str, Any] = await self._request("GET", f"/repos/{owner}/{repo}")
        return data

    async def get_latest_commit(self, owner: str, repo: str, branch: str = "main") -> str:
        """
        Resolve a branch to its tip commit SHA.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Branch name

        Returns:
            Commit SHA the branch ref points at
        """
        data = await self._request(
            "GET", f"/repos/{owner}/{repo}/git/ref/heads/{_quote_path(branch)}"
        )
        return str(data["object"]["sha"])

    async def get_file_content(
        self, owner: str, repo: str, path: str, branch: str = "main"
    ) -> FileContent | None:
        """
        Fetch and decode one file.

        Returns:
            FileContent, or None if the path does not exist (or is a directory)

        Raises:
            BinaryContentError: If the file is not valid UTF-8 text
            RemoteApiError: For errors other than 404
        """
        try:
            data = await self._request(
                "GET",
                f"/repos/{owner}/{repo}/contents/{_quote_path(path)}",
                params={"ref": branch},
            )
        except RemoteApiError as e:
            if e.status == 404:
                return None
            raise

        if not isinstance(data, dict) or data.get("type", "file") != "file":
            return None

        sha = str(data.get("sha", ""))
        encoded = data.get("content") or ""
        if data.get("encoding") == "none" and sha:
            # Files over 1 MB come back without inline content
            blob = await self._request("GET", f"/repos/{owner}/{repo}/git/blobs/{sha}")
            encoded = blob.get("content") or ""

        try:
            content = base64.b64decode(encoded).decode("utf-8")
        except UnicodeDecodeError as e:
            raise BinaryContentError(path) from e
        return FileContent(path=str(data.get("path", path)), content=content, sha=sha)

    async def get_repository_tree(
        self, owner: str, repo: str, branch: str = "main"
    ) -> list[TreeEntry]:
        """
        List every entry of the branch tip's tree, recursively.

        Returns:
            Flat list of tree entries (blobs and trees)
        """
        commit_sha = await self.get_latest_commit(owner, repo, branch)
        data = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/git/trees/{commit_sha}",
            params={"recursive": "1"},
        )
        if data.get("truncated"):
            logger.warning(
                "Tree listing for %s/%s@%s was truncated by the remote", owner, repo, branch
            )
        return [TreeEntry.model_validate(item) for item in data.get("tree", [])]

    async def get_commits(
        self, owner: str, repo: str, branch: str = "main", per_page: int = 10
    ) -> list[RemoteCommit]:
        """Fetch the most recent commits of a branch."""
        data = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/commits",
            params={"sha": branch, "per_page": per_page},
        )
        return [RemoteCommit.from_api(item) for item in data or []]

    # ------------------------------------------------------------------
    # Single-file writes (contents API)
    # ------------------------------------------------------------------

    async def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        sha: str | None = None,
        branch: str = "main",
    ) -> dict[str, Any]:
        """
        Create or update one file with its own commit.

        Args:
            sha: Current blob SHA; required when the file already exists
        """
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        data: dict[str, Any] = await self._request(
            "PUT", f"/repos/{owner}/{repo}/contents/{_quote_path(path)}", json=body
        )
        return data

    async def delete_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        sha: str,
        branch: str = "main",
    ) -> dict[str, Any]:
        """Delete one file with its own commit."""
        data: dict[str, Any] = await self._request(
            "DELETE",
            f"/repos/{owner}/{repo}/contents/{_quote_path(path)}",
            json={"message": message, "sha": sha, "branch": branch},
        )
        return data

    # ------------------------------------------------------------------
    # Atomic multi-file push
    # ------------------------------------------------------------------

    async def push_multiple_files(
        self,
        owner: str,
        repo: str,
        files: Sequence[LocalFileRef],
        message: str,
        branch: str = "main",
    ) -> PushResult:
        """
        Write several files as one commit on ``branch``.

        Steps:
        1. resolve the branch tip commit
        2. resolve that commit's tree
        3. create one blob per file (concurrently)
        4. create a tree layering the blobs over the base tree
        5. create a commit with the new tree and the old tip as parent
        6. move the branch ref to the new commit without forcing

        Steps 1-5 only create objects, so a failure there leaves the branch
        untouched. Step 6 is the only pointer update.

        Args:
            owner: Repository owner
            repo: Repository name
            files: Files to write (path + content)
            message: Commit message
            branch: Target branch

        Returns:
            PushResult with the new commit and tree SHAs

        Raises:
            ValueError: If ``files`` is empty
            StaleTipError: If the branch moved on the remote before step 6
            RemoteApiError: If any other call fails
        """
        if not files:
            raise ValueError("push_multiple_files requires at least one file")

        base = f"/repos/{owner}/{repo}"

        parent_sha = await self.get_latest_commit(owner, repo, branch)
        logger.debug("Push %s/%s@%s: tip %s", owner, repo, branch, parent_sha)

        commit_data = await self._request("GET", f"{base}/git/commits/{parent_sha}")
        base_tree_sha = str(commit_data["tree"]["sha"])
        logger.debug("Push %s/%s@%s: base tree %s", owner, repo, branch, base_tree_sha)

        async def create_blob(file: LocalFileRef) -> dict[str, str]:
            blob = await self._request(
                "POST",
                f"{base}/git/blobs",
                json={"content": file.content, "encoding": "utf-8"},
            )
            return {"path": file.path, "mode": FILE_MODE, "type": "blob", "sha": blob["sha"]}

        tree_items = await self._bounded_gather(list(files), create_blob)
        logger.debug("Push %s/%s@%s: created %d blobs", owner, repo, branch, len(tree_items))

        tree_data = await self._request(
            "POST",
            f"{base}/git/trees",
            json={"base_tree": base_tree_sha, "tree": tree_items},
        )
        tree_sha = str(tree_data["sha"])

        new_commit = await self._request(
            "POST",
            f"{base}/git/commits",
            json={"message": message, "tree": tree_sha, "parents": [parent_sha]},
        )
        commit_sha = str(new_commit["sha"])
        logger.debug("Push %s/%s@%s: commit %s", owner, repo, branch, commit_sha)

        try:
            await self._request(
                "PATCH",
                f"{base}/git/refs/heads/{_quote_path(branch)}",
                json={"sha": commit_sha, "force": False},
            )
        except RemoteApiError as e:
            if _is_stale_tip(e):
                raise StaleTipError(
                    e.status,
                    e.message,
                    branch=branch,
                    expected_tip=parent_sha,
                    commit_sha=commit_sha,
                ) from e
            raise

        logger.info(
            "Pushed %d files to %s/%s@%s as %s",
            len(tree_items),
            owner,
            repo,
            branch,
            commit_sha[:8],
        )
        return PushResult(
            commit_sha=commit_sha,
            tree_sha=tree_sha,
            parent_sha=parent_sha,
            branch=branch,
            files=[item["path"] for item in tree_items],
            url=new_commit.get("html_url"),
        )

    # ------------------------------------------------------------------
    # Pull and compare
    # ------------------------------------------------------------------

    async def pull_changes(
        self, owner: str, repo: str, branch: str = "main"
    ) -> list[RemoteFile]:
        """
        Fetch every text file of the branch tip with its content.

        Files that are not UTF-8 text, or that vanished between the tree
        listing and the content fetch, are left out. No filtering against
        local state happens here; see ``compare_with_remote``.
        """
        tree = await self.get_repository_tree(owner, repo, branch)
        entries = [entry for entry in tree if entry.is_file]

        async def fetch(entry: TreeEntry) -> RemoteFile | None:
            try:
                content = await self.get_file_content(owner, repo, entry.path, branch)
            except BinaryContentError:
                logger.info("Skipping binary remote file %s", entry.path)
                return None
            if content is None:
                logger.warning("Remote file %s vanished during pull; skipping", entry.path)
                return None
            return RemoteFile(path=entry.path, content=content.content, sha=entry.sha)

        fetched = await self._bounded_gather(entries, fetch)
        return [remote_file for remote_file in fetched if remote_file is not None]

    async def compare_with_remote(
        self,
        owner: str,
        repo: str,
        local_files: Sequence[LocalFileRef],
        branch: str = "main",
    ) -> RemoteComparison:
        """
        Partition local and remote paths by blob hash.

        Returns:
            RemoteComparison; buckets keep the order of their input lists
        """
        tree = await self.get_repository_tree(owner, repo, branch)
        remote = {entry.path: entry.sha for entry in tree if entry.is_file}
        return partition_paths(local_files, remote)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def create_branch(
        self, owner: str, repo: str, new_branch: str, from_branch: str = "main"
    ) -> dict[str, Any]:
        """Create ``new_branch`` pointing at the tip of ``from_branch``."""
        sha = await self.get_latest_commit(owner, repo, from_branch)
        data: dict[str, Any] = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/refs",
            json={"ref": f"refs/heads/{new_branch}", "sha": sha},
        )
        logger.info("Created remote branch %s from %s (%s)", new_branch, from_branch, sha[:8])
        return data


def partition_paths(
    local_files: Sequence[LocalFileRef], remote: dict[str, str]
) -> RemoteComparison:
    """
    Split paths into added / modified / unchanged / deleted.

    Args:
        local_files: Local files; a missing sha is computed from content
        remote: Remote blob path -> sha, in listing order

    Returns:
        RemoteComparison that is exhaustive and disjoint
    """
    comparison = RemoteComparison()
    remaining = dict(remote)
    seen: set[str] = set()

    for local in local_files:
        if local.path in seen:
            continue
        seen.add(local.path)

        remote_sha = remaining.pop(local.path, None)
        if remote_sha is None:
            comparison.added.append(local.path)
        elif local.resolved_sha() != remote_sha:
            comparison.modified.append(local.path)
        else:
            comparison.unchanged.append(local.path)

    comparison.deleted.extend(remaining)
    return comparison
