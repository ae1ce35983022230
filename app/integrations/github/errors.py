"""
GitHub API error taxonomy.

Every failure of a GitHub REST call is raised as one of these, so callers
can tell transport problems from auth problems from a real merge conflict.
"""

from typing import Optional


class GitHubError(Exception):
    """Base class for GitHub API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class GitHubTransportError(GitHubError):
    """Network-level failure: connection refused, reset, DNS..."""


class GitHubTimeoutError(GitHubTransportError):
    """The request did not complete within the client timeout."""


class GitHubAuthError(GitHubError):
    """401/403: the token is missing, invalid or lacks permission."""


class GitHubNotFoundError(GitHubError):
    """404: repository, branch, ref or pull request does not exist."""


class GitHubRateLimitedError(GitHubError):
    """429, or 403 with an exhausted rate limit."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, status_code)
        self.retry_after = retry_after


class GitHubMalformedResponseError(GitHubError):
    """The response body was not the JSON shape we expected."""


class GitHubMergeConflictError(GitHubError):
    """409 from the merges endpoint: head and base have conflicting changes."""


class GitHubRequestError(GitHubError):
    """Any other non-2xx response."""
