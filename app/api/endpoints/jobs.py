from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from app.db.models.try_merge_job import TryMergeJobPublic
from app.dependencies.services import get_job_store
from app.services.try_merge.store import TryMergeJobStore

router = APIRouter()

StoreDep = Annotated[TryMergeJobStore, Depends(get_job_store)]


@router.get("", response_model=List[TryMergeJobPublic])
async def list_jobs(
    store: StoreDep,
    repository_id: Optional[int] = Query(None),
    pr_number: Optional[int] = Query(None, ge=1),
    active_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    """List try-merge jobs, newest first."""
    jobs = await store.list_jobs(
        repository_id=repository_id,
        pr_number=pr_number,
        active_only=active_only,
        skip=skip,
        limit=limit,
    )
    return [job.to_public() for job in jobs]
