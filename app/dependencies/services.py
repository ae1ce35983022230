"""
Try-Merge Bot service dependencies.

The orchestrator (and the job store it owns) are built once in the
application lifespan and stored on ``app.state``.
"""

from fastapi import Request

from app.services.try_merge.orchestrator import TryMergeOrchestrator
from app.services.try_merge.store import TryMergeJobStore


def get_orchestrator(request: Request) -> TryMergeOrchestrator:
    """Get the application's try-merge orchestrator"""
    return request.app.state.orchestrator


def get_job_store(request: Request) -> TryMergeJobStore:
    """Get the try-merge job store"""
    return request.app.state.orchestrator.store
