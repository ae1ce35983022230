"""
GitHub integration package.
"""

from app.integrations.github.client import GitHubClient
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

__all__ = [
    "GitHubClient",
    "GitHubAuthError",
    "GitHubError",
    "GitHubMalformedResponseError",
    "GitHubMergeConflictError",
    "GitHubNotFoundError",
    "GitHubRateLimitedError",
    "GitHubRequestError",
    "GitHubTimeoutError",
    "GitHubTransportError",
]
