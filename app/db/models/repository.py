"""
Repository Model

Snapshot of the repository a try-merge command was issued on.
Key: id (GitHub numeric id), full_name unique.
"""

from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import BigInteger, Column, DateTime

if TYPE_CHECKING:
    from app.db.models.try_merge_job import TryMergeJob


class RepositoryBase(SQLModel):
    """Shared fields for Repository."""

    name: str = Field(description="Repository name, e.g. 'widgets'")
    full_name: str = Field(
        unique=True, index=True, description="Repository full name, e.g. 'acme/widgets'"
    )
    owner: str = Field(description="Owner login")
    default_branch: str = Field(
        default="main", description="Branch try-merges are synthesized against"
    )


class Repository(RepositoryBase, table=True):
    """
    Repository table.

    Rows are written from the triggering webhook payload and only exist so
    that try-merge jobs have a foreign key target.
    """

    __tablename__ = "repositories"

    id: int = Field(
        sa_column=Column(BigInteger, primary_key=True, autoincrement=False),
        description="GitHub repository id",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    jobs: List["TryMergeJob"] = Relationship(back_populates="repository")


class RepositoryRef(RepositoryBase):
    """
    Immutable repository snapshot taken from a webhook event.

    This is what the orchestrator receives; it is never re-fetched from GitHub.
    """

    id: int

    def to_row(self) -> Repository:
        return Repository(
            id=self.id,
            name=self.name,
            full_name=self.full_name,
            owner=self.owner,
            default_branch=self.default_branch,
        )

    @classmethod
    def from_payload(cls, repo_data: dict) -> Optional["RepositoryRef"]:
        """Build a snapshot from the ``repository`` object of a webhook payload."""
        full_name = repo_data.get("full_name") or ""
        if not repo_data.get("id") or not full_name:
            return None

        owner = (repo_data.get("owner") or {}).get("login") or full_name.split("/")[0]
        return cls(
            id=int(repo_data["id"]),
            name=repo_data.get("name") or full_name.split("/")[-1],
            full_name=full_name,
            owner=owner,
            default_branch=repo_data.get("default_branch") or "main",
        )
