"""
Try-merge orchestration package.
"""

from app.services.try_merge.errors import (
    ChecksNotPassedError,
    JobStoreError,
    StatusPollTimeoutError,
    TryMergeError,
    TryMergeTimeoutError,
)
from app.services.try_merge.orchestrator import (
    COMMAND_BRANCHES,
    StatusPollPolicy,
    TryMergeOrchestrator,
    format_result_comment,
)
from app.services.try_merge.registry import JobRegistry, job_key
from app.services.try_merge.store import TryMergeJobStore

__all__ = [
    "COMMAND_BRANCHES",
    "ChecksNotPassedError",
    "JobRegistry",
    "JobStoreError",
    "StatusPollPolicy",
    "StatusPollTimeoutError",
    "TryMergeError",
    "TryMergeJobStore",
    "TryMergeOrchestrator",
    "TryMergeTimeoutError",
    "format_result_comment",
    "job_key",
]
