"""
Schema and DTO package.
"""

from app.schemas.pull_request import PullRequest, TryBranch

__all__ = [
    "PullRequest",
    "TryBranch",
]
