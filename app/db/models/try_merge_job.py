"""
Try-Merge Job Model and Enums

One row per attempt to validate a pull request through a try-branch.
Key: id (UUID). Looked up by (repository_id, pr_number).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, String, Text

if TYPE_CHECKING:
    from app.db.models.repository import Repository


class JobStatus(str, Enum):
    """Try-merge job status enum."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


ACTIVE_STATUSES = (JobStatus.PENDING, JobStatus.RUNNING)


def build_branch_name(prefix: str, pr_number: int) -> str:
    """Try-branch name for a PR, e.g. ``automation/bot/try/42``."""
    return f"{prefix.rstrip('/')}/{pr_number}"


class JobTransitionError(ValueError):
    """Raised when a finished job is asked to change state again."""


# -----------------------------------------------------------------------------
# Base
# -----------------------------------------------------------------------------
class TryMergeJobBase(SQLModel):
    """Shared fields for TryMergeJob."""

    pr_number: int = Field(description="Pull request number (repository scoped)")
    branch_name: str = Field(description="Synthesized try-branch name")
    status: str = Field(
        default=JobStatus.PENDING,
        sa_column=Column(String, nullable=False, default=JobStatus.PENDING.value),
        description="pending | running | completed | failed",
    )
    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Failure cause. Only set when status is failed.",
    )


# -----------------------------------------------------------------------------
# ORM Model (Database layer)
# -----------------------------------------------------------------------------
class TryMergeJob(TryMergeJobBase, table=True):
    """
    Try-merge job table.

    A job is written at most twice: once when it is created in ``running``
    state, and once when it reaches ``completed`` or ``failed``. Finished
    jobs are never modified; a new command creates a new job.
    """

    __tablename__ = "try_merge_jobs"
    __table_args__ = (
        Index("idx_try_merge_jobs_repo_pr", "repository_id", "pr_number"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        nullable=False,
    )
    repository_id: int = Field(
        sa_column=Column(
            BigInteger,
            ForeignKey("repositories.id", name="fk_repository"),
            nullable=False,
        )
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    repository: Optional["Repository"] = Relationship(back_populates="jobs")

    @property
    def job_status(self) -> JobStatus:
        return JobStatus(self.status)

    def finish(self, status: JobStatus, error_message: Optional[str] = None) -> None:
        """
        Move the job to a terminal state.

        ``error_message`` is kept only for ``failed`` and must be non-empty there.
        """
        if self.job_status.is_terminal:
            raise JobTransitionError(
                f"Job {self.id} is already {self.status}, cannot move to {status.value}"
            )
        if not status.is_terminal:
            raise JobTransitionError(f"{status.value} is not a terminal status")

        if status is JobStatus.FAILED:
            self.error_message = error_message or "Try merge failed"
        else:
            self.error_message = None
        self.status = status.value
        self.updated_at = datetime.now(timezone.utc)

    def to_public(self) -> "TryMergeJobPublic":
        """Convert to render-safe public DTO."""
        return TryMergeJobPublic(
            id=self.id,
            repository_id=self.repository_id,
            pr_number=self.pr_number,
            branch_name=self.branch_name,
            status=self.status,
            error_message=self.error_message,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


# -----------------------------------------------------------------------------
# Public (Response/Read layer)
# -----------------------------------------------------------------------------
class TryMergeJobPublic(TryMergeJobBase):
    """
    Public DTO for TryMergeJob responses.
    """

    id: uuid.UUID
    repository_id: int
    created_at: datetime
    updated_at: datetime
