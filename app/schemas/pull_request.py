"""
Pull request DTOs returned by the GitHub client.
"""

from typing import Optional
from sqlmodel import SQLModel


class PullRequest(SQLModel):
    """
    Fresh snapshot of a pull request, read at orchestration time.
    Never cached.
    """

    id: int
    number: int
    title: str
    head_branch: str
    base_branch: str
    state: str
    # None while GitHub is still computing mergeability
    mergeable: Optional[bool] = None


class TryBranch(SQLModel):
    """Result of synthesizing a try-branch: the commits it was built from."""

    name: str
    base_sha: str
    head_sha: str
    merge_sha: Optional[str] = None
