"""
GitHub REST API client for try-merge branch operations.

Each public method performs exactly one logical unit of work against the
GitHub REST API. The client does not retry, cache or rate-limit; failures are
raised as the typed errors in ``app.integrations.github.errors``.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from app.core.logging import get_logger
from app.integrations.github.errors import (
    GitHubAuthError,
    GitHubError,
    GitHubMalformedResponseError,
    GitHubMergeConflictError,
    GitHubNotFoundError,
    GitHubRateLimitedError,
    GitHubRequestError,
    GitHubTimeoutError,
    GitHubTransportError,
)
from app.schemas.pull_request import PullRequest, TryBranch

logger = get_logger(__name__)


class GitHubClient:
    """Client for interacting with GitHub REST API."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub Personal Access Token or GitHub App token
            base_url: API root, overridable for GitHub Enterprise
            timeout: Per-request deadline in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "try-merge-bot/1.0",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    # ------------------------------------------------------------------
    # Pull requests / comments
    # ------------------------------------------------------------------
    async def fetch_pull_request(self, full_name: str, pr_number: int) -> PullRequest:
        """
        Get pull request details.

        Args:
            full_name: Repository full name (e.g., "acme/widgets")
            pr_number: Pull request number

        Returns:
            PullRequest snapshot with head/base branch names.
        """
        path = f"/repos/{full_name}/pulls/{pr_number}"
        data = self._json(await self._request("GET", path), path)

        try:
            return PullRequest(
                id=data["id"],
                number=data["number"],
                title=data.get("title") or "",
                head_branch=data["head"]["ref"],
                base_branch=data["base"]["ref"],
                state=data.get("state") or "",
                mergeable=data.get("mergeable"),
            )
        except (KeyError, TypeError) as e:
            raise GitHubMalformedResponseError(
                f"Unexpected pull request payload for {full_name}#{pr_number}: missing {e}"
            ) from e

    async def post_comment(self, full_name: str, pr_number: int, body: str) -> None:
        """Post a comment on a pull request (through the issues endpoint)."""
        path = f"/repos/{full_name}/issues/{pr_number}/comments"
        await self._request("POST", path, json={"body": body})

    # ------------------------------------------------------------------
    # Branches / refs
    # ------------------------------------------------------------------
    async def get_branch_sha(self, full_name: str, branch: str) -> str:
        """Return the commit SHA at the head of ``branch``."""
        path = f"/repos/{full_name}/branches/{_ref_path(branch)}"
        data = self._json(await self._request("GET", path), path)

        sha = (data.get("commit") or {}).get("sha")
        if not isinstance(sha, str) or not sha:
            raise GitHubMalformedResponseError(f"No SHA found for branch {branch}")
        return sha

    async def delete_branch(self, full_name: str, branch: str) -> None:
        """Delete ``refs/heads/<branch>``."""
        await self._request(
            "DELETE", f"/repos/{full_name}/git/refs/heads/{_ref_path(branch)}"
        )

    async def create_branch(self, full_name: str, branch: str, sha: str) -> None:
        """Create ``refs/heads/<branch>`` pointing at ``sha``."""
        await self._request(
            "POST",
            f"/repos/{full_name}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    async def merge_into_branch(
        self, full_name: str, branch: str, head_sha: str
    ) -> Optional[str]:
        """
        Merge ``head_sha`` into ``branch`` server-side.

        Returns:
            The merge commit SHA, or None when there was nothing to merge
            (GitHub answers 204 when head is already contained in branch).

        Raises:
            GitHubMergeConflictError: head and branch have conflicting changes.
        """
        path = f"/repos/{full_name}/merges"
        response = await self._request(
            "POST",
            path,
            json={
                "base": branch,
                "head": head_sha,
                "commit_message": f"Try merge into {branch}",
            },
        )
        if response.status_code == 204:
            return None
        return self._json(response, path).get("sha")

    async def synthesize_try_branch(
        self, full_name: str, base_branch: str, head_branch: str, try_branch: str
    ) -> TryBranch:
        """
        Build ``try_branch`` as "head merged into base" without touching either.

        Steps:
        1. Resolve the base branch head SHA
        2. Resolve the head branch head SHA
        3. Best-effort delete of a leftover try-branch
        4. Create the try-branch at the base SHA
        5. Merge the head SHA into the try-branch

        Any failure other than step 3 aborts the whole operation.
        """
        base_sha = await self.get_branch_sha(full_name, base_branch)
        head_sha = await self.get_branch_sha(full_name, head_branch)

        try:
            await self.delete_branch(full_name, try_branch)
        except GitHubError as e:
            # Missing branch and failed delete are both fine starting points
            logger.debug("Pre-delete of %s on %s skipped: %s", try_branch, full_name, e)

        await self.create_branch(full_name, try_branch, base_sha)
        merge_sha = await self.merge_into_branch(full_name, try_branch, head_sha)

        logger.info(
            "Synthesized %s on %s (base %s, head %s)",
            try_branch,
            full_name,
            base_sha[:7],
            head_sha[:7],
        )
        return TryBranch(
            name=try_branch, base_sha=base_sha, head_sha=head_sha, merge_sha=merge_sha
        )

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------
    async def get_commit_status(self, full_name: str, sha: str) -> str:
        """Return the combined status state (success/pending/failure/error) of ``sha``."""
        path = f"/repos/{full_name}/commits/{sha}/status"
        data = self._json(await self._request("GET", path), path)

        state = data.get("state")
        if not isinstance(state, str):
            raise GitHubMalformedResponseError(f"No combined state for commit {sha}")
        return state

    async def poll_combined_status(self, full_name: str, branch: str) -> str:
        """Return the combined status state of the current head of ``branch``."""
        sha = await self.get_branch_sha(full_name, branch)
        return await self.get_commit_status(full_name, sha)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    async def _request(
        self, method: str, path: str, json: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(
                    method, url, headers=self.headers, json=json
                )
        except httpx.TimeoutException as e:
            raise GitHubTimeoutError(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            raise GitHubTransportError(f"{method} {path} failed: {e}") from e

        if response.is_success:
            return response
        raise self._error_for(method, path, response)

    @staticmethod
    def _error_for(method: str, path: str, response: httpx.Response) -> GitHubError:
        status = response.status_code
        message = f"{method} {path} failed: {_error_detail(response)}"

        rate_limited = status == 429 or (
            status == 403 and response.headers.get("x-ratelimit-remaining") == "0"
        )
        if rate_limited:
            retry_after = response.headers.get("retry-after")
            return GitHubRateLimitedError(
                message,
                status,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if status in (401, 403):
            return GitHubAuthError(message, status)
        if status == 404:
            return GitHubNotFoundError(message, status)
        if status == 409 and path.endswith("/merges"):
            return GitHubMergeConflictError(message, status)
        return GitHubRequestError(message, status)

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise GitHubMalformedResponseError(
                f"Invalid JSON from {path}", response.status_code
            ) from e
        if not isinstance(data, dict):
            raise GitHubMalformedResponseError(
                f"Expected a JSON object from {path}", response.status_code
            )
        return data


def _ref_path(branch: str) -> str:
    """Percent-encode a branch name for a URL path, keeping its slashes."""
    return quote(branch, safe="/")


def _error_detail(response: httpx.Response) -> str:
    """Best human-readable reason for a failed response."""
    try:
        message = response.json().get("message")
    except (ValueError, AttributeError):
        message = None
    return message or response.reason_phrase or f"HTTP {response.status_code}"
