"""
Database models package.

Import all models here so Alembic can discover them.
"""

from app.db.models.repository import Repository, RepositoryRef
from app.db.models.try_merge_job import (
    ACTIVE_STATUSES,
    JobStatus,
    JobTransitionError,
    TryMergeJob,
    TryMergeJobPublic,
    build_branch_name,
)

__all__ = [
    "ACTIVE_STATUSES",
    "JobStatus",
    "JobTransitionError",
    "Repository",
    "RepositoryRef",
    "TryMergeJob",
    "TryMergeJobPublic",
    "build_branch_name",
]
