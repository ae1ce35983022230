"""
Persistence for try-merge jobs.

Jobs are written with plain point writes: one insert when the job starts and
one update when it finishes. The store is not a concurrency control point;
deduplication happens in the in-memory registry.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import col, select

from app.core.logging import get_logger
from app.db.models.repository import Repository, RepositoryRef
from app.db.models.try_merge_job import ACTIVE_STATUSES, JobStatus, TryMergeJob
from app.services.try_merge.errors import JobStoreError

logger = get_logger(__name__)

ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


class TryMergeJobStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def upsert_repository(self, repository: RepositoryRef) -> None:
        """
        Insert or refresh the repository row a job will reference.

        Jobs for different PRs of one repository may race here; losing the
        insert race falls back to an update.
        """
        try:
            try:
                await self._save_repository(repository)
            except IntegrityError:
                await self._save_repository(repository)
        except SQLAlchemyError as e:
            raise JobStoreError(
                f"Failed to store repository {repository.full_name}: {e}"
            ) from e

    async def _save_repository(self, repository: RepositoryRef) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Repository)
                    .where(col(Repository.id) == repository.id)
                    .values(
                        name=repository.name,
                        full_name=repository.full_name,
                        owner=repository.owner,
                        default_branch=repository.default_branch,
                        updated_at=datetime.now(timezone.utc),
                    )
                )
                if result.rowcount == 0:
                    session.add(repository.to_row())

    async def create(self, job: TryMergeJob) -> TryMergeJob:
        """Insert a new job row."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(job)
        except SQLAlchemyError as e:
            raise JobStoreError(f"Failed to create try-merge job {job.id}: {e}") from e

        logger.info(
            "Created try-merge job %s (%s for PR #%s)",
            job.id,
            job.branch_name,
            job.pr_number,
        )
        return job

    async def update(self, job: TryMergeJob) -> None:
        """
        Persist the job's status, error message and updated_at.

        Idempotent by id: writing the same terminal state twice is harmless.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(TryMergeJob)
                        .where(col(TryMergeJob.id) == job.id)
                        .values(
                            status=job.status,
                            updated_at=job.updated_at,
                            error_message=job.error_message,
                        )
                    )
        except SQLAlchemyError as e:
            raise JobStoreError(f"Failed to update try-merge job {job.id}: {e}") from e

        if result.rowcount == 0:
            raise JobStoreError(f"Try-merge job {job.id} does not exist")

    async def get(self, job_id: uuid.UUID) -> Optional[TryMergeJob]:
        try:
            async with self.session_factory() as session:
                return await session.get(TryMergeJob, job_id)
        except SQLAlchemyError as e:
            raise JobStoreError(f"Failed to load try-merge job {job_id}: {e}") from e

    async def list_active(self, repository_id: Optional[int] = None) -> List[TryMergeJob]:
        """
        Fetch pending/running jobs, newest first.
        """
        return await self.list_jobs(repository_id=repository_id, active_only=True)

    async def list_jobs(
        self,
        repository_id: Optional[int] = None,
        pr_number: Optional[int] = None,
        active_only: bool = False,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[TryMergeJob]:
        """
        Fetch jobs with optional filters and pagination, newest first.
        """
        statement = select(TryMergeJob)
        if repository_id is not None:
            statement = statement.where(TryMergeJob.repository_id == repository_id)
        if pr_number is not None:
            statement = statement.where(TryMergeJob.pr_number == pr_number)
        if active_only:
            statement = statement.where(col(TryMergeJob.status).in_(ACTIVE_VALUES))
        statement = statement.order_by(desc(TryMergeJob.created_at)).offset(skip)
        if limit is not None:
            statement = statement.limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise JobStoreError(f"Failed to list try-merge jobs: {e}") from e

    async def fail_stale_running(self, reason: str) -> int:
        """
        Startup reconciliation: mark every pending/running job as failed.

        Only safe before any new job is dispatched, since in-flight jobs from
        this process would be caught too.

        Returns:
            Number of jobs moved to ``failed``.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(TryMergeJob)
                        .where(col(TryMergeJob.status).in_(ACTIVE_VALUES))
                        .values(
                            status=JobStatus.FAILED.value,
                            error_message=reason,
                            updated_at=datetime.now(timezone.utc),
                        )
                    )
        except SQLAlchemyError as e:
            raise JobStoreError(f"Failed to reconcile stale try-merge jobs: {e}") from e

        count = result.rowcount or 0
        if count:
            logger.warning("Marked %d stale try-merge job(s) as failed", count)
        return count
