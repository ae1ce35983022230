"""
Try-merge orchestration.

Turns a recognised PR comment command into a try-merge job:

1. Deduplicate per pull request through the in-memory ``JobRegistry``
2. Persist the job as ``running``
3. Synthesize the try-branch (base + head merged) on GitHub
4. Wait for the try-branch's combined status
5. Persist ``completed``/``failed`` and report back on the PR
6. Release the registry slot, whatever happened above

Open question: the head is resolved by branch name (``head.ref``) in the
base repository. For a PR from a fork that name may not exist there, or may
name a different branch (a fork's ``main``). Merging ``head.sha`` instead would
always validate the PR's own code.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Set

from app.core.logging import get_logger
from app.db.models.repository import RepositoryRef
from app.db.models.try_merge_job import JobStatus, TryMergeJob, build_branch_name
from app.integrations.github.client import GitHubClient
from app.integrations.github.errors import GitHubError, GitHubMergeConflictError
from app.services.try_merge.errors import (
    ChecksNotPassedError,
    JobStoreError,
    StatusPollTimeoutError,
    TryMergeError,
    TryMergeTimeoutError,
)
from app.services.try_merge.registry import JobRegistry, job_key
from app.services.try_merge.store import TryMergeJobStore

logger = get_logger(__name__)

# Command token -> branch prefix suffix under the bot's branch namespace
COMMAND_BRANCHES: Dict[str, str] = {
    "try": "try",
    "try-merge": "try-merge",
}

PENDING_STATE = "pending"
SUCCESS_STATE = "success"


@dataclass(frozen=True)
class StatusPollPolicy:
    """
    How long and how often to poll the try-branch's combined status.

    The first check happens after ``initial_delay``. While the state is
    ``pending`` the poller sleeps ``interval``, multiplied by
    ``backoff_factor`` after every check and capped at ``max_interval``,
    until the total time waited reaches ``timeout``.
    """

    initial_delay: float = 5.0
    interval: float = 10.0
    backoff_factor: float = 2.0
    max_interval: float = 60.0
    timeout: float = 1800.0

    def __post_init__(self) -> None:
        # Each pending poll must move the accumulated wait toward the timeout
        if self.initial_delay < 0:
            raise ValueError("initial_delay must not be negative")
        if self.interval <= 0 or self.max_interval <= 0 or self.timeout <= 0:
            raise ValueError("interval, max_interval and timeout must be positive")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be at least 1")


class TryMergeOrchestrator:
    """
    Runs try-merge jobs.

    Owns its ``JobRegistry``; two orchestrators never share in-flight state.
    """

    def __init__(
        self,
        github: GitHubClient,
        store: TryMergeJobStore,
        branch_namespace: str = "automation/bot",
        poll_policy: Optional[StatusPollPolicy] = None,
        run_timeout: Optional[float] = None,
        report_results: bool = True,
        registry: Optional[JobRegistry] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.github = github
        self.store = store
        self.branch_namespace = branch_namespace.rstrip("/")
        self.poll_policy = poll_policy or StatusPollPolicy()
        self.run_timeout = run_timeout
        self.report_results = report_results
        self.registry = registry or JobRegistry()
        self._sleep = sleep
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def branch_prefix(self, command: str) -> Optional[str]:
        """Branch prefix for a command token, or None if the command is unknown."""
        suffix = COMMAND_BRANCHES.get(command)
        if suffix is None:
            return None
        return f"{self.branch_namespace}/{suffix}"

    def dispatch(self, repository: RepositoryRef, pr_number: int, command: str) -> bool:
        """
        Schedule a try-merge run in the background and return immediately.

        The caller only learns whether the event was accepted; the outcome is
        visible through the stored job and the PR comment.

        Returns:
            True if a task was scheduled, False for unknown commands.
        """
        if self.branch_prefix(command) is None:
            logger.info(
                "Ignoring unknown command %r on %s#%s",
                command,
                repository.full_name,
                pr_number,
            )
            return False

        task = asyncio.create_task(
            self.run(repository, pr_number, command),
            name=f"try-merge:{job_key(repository.full_name, pr_number)}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return True

    async def run(
        self, repository: RepositoryRef, pr_number: int, command: str
    ) -> Optional[TryMergeJob]:
        """
        Run one try-merge attempt to completion.

        Returns:
            The finished job, or None when the command is unknown or another
            attempt for the same PR is already in flight.

        Raises:
            JobStoreError: the job could not be persisted. The registry slot
                is released before this propagates.
        """
        prefix = self.branch_prefix(command)
        if prefix is None:
            logger.info("Ignoring unknown command %r", command)
            return None

        key = job_key(repository.full_name, pr_number)
        if not self.registry.try_acquire(key):
            logger.info(
                "Try merge already running for %s (job %s), ignoring %r",
                key,
                self.registry.owner_of(key),
                command,
            )
            return None

        try:
            job = TryMergeJob(
                repository_id=repository.id,
                pr_number=pr_number,
                branch_name=build_branch_name(prefix, pr_number),
                status=JobStatus.RUNNING.value,
            )
            self.registry.attach(key, str(job.id))

            try:
                await self._execute(repository, pr_number, key, job)
            except asyncio.CancelledError:
                await self._record_cancellation(job)
                raise
            return job
        finally:
            self.registry.release(key)

    async def _execute(
        self, repository: RepositoryRef, pr_number: int, key: str, job: TryMergeJob
    ) -> None:
        try:
            await self.store.upsert_repository(repository)
            await self.store.create(job)
        except JobStoreError:
            logger.error("Could not record try-merge job for %s", key, exc_info=True)
            raise

        error = await self._attempt(repository, pr_number, job.branch_name)

        if error is None:
            job.finish(JobStatus.COMPLETED)
            logger.info("Try merge completed successfully for %s", key)
        else:
            job.finish(JobStatus.FAILED, error)
            logger.warning("Try merge failed for %s: %s", key, error)

        try:
            await self.store.update(job)
        except JobStoreError:
            logger.error(
                "Could not record outcome of try-merge job %s", job.id, exc_info=True
            )
            raise

        await self._report(repository, pr_number, job)

    async def reconcile(self) -> int:
        """
        Fail jobs left ``running`` by a previous process.

        Must run before the first dispatch.
        """
        return await self.store.fail_stale_running(
            "Interrupted: the service restarted before this try merge finished"
        )

    async def aclose(self, grace: float = 10.0) -> None:
        """Wait up to ``grace`` seconds for in-flight runs, then cancel the rest."""
        if not self._tasks:
            return

        pending = set(self._tasks)
        logger.info("Waiting for %d in-flight try merge(s)", len(pending))
        _, still_running = await asyncio.wait(pending, timeout=grace)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("Cancelled %d unfinished try merge(s)", len(still_running))
            await asyncio.gather(*still_running, return_exceptions=True)

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------
    async def _attempt(
        self, repository: RepositoryRef, pr_number: int, branch: str
    ) -> Optional[str]:
        """
        Run the branch-synthesis protocol.

        Returns:
            None on success, otherwise the failure message for the job.
        """
        try:
            if self.run_timeout is None:
                await self._synthesize_and_check(repository, pr_number, branch)
            else:
                try:
                    await asyncio.wait_for(
                        self._synthesize_and_check(repository, pr_number, branch),
                        timeout=self.run_timeout,
                    )
                except asyncio.TimeoutError as e:
                    raise TryMergeTimeoutError(
                        f"Try merge did not finish within {self.run_timeout:.0f}s"
                    ) from e
        except GitHubMergeConflictError:
            return (
                f"Try merge failed due to conflicting changes between "
                f"PR #{pr_number} and {repository.default_branch}"
            )
        except (TryMergeError, GitHubError) as e:
            return str(e)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception(
                "Unexpected error during try merge of %s#%s",
                repository.full_name,
                pr_number,
            )
            return f"Unexpected error: {e}"
        return None

    async def _synthesize_and_check(
        self, repository: RepositoryRef, pr_number: int, branch: str
    ) -> None:
        pr = await self.github.fetch_pull_request(repository.full_name, pr_number)

        await self.github.synthesize_try_branch(
            repository.full_name,
            base_branch=repository.default_branch,
            head_branch=pr.head_branch,
            try_branch=branch,
        )

        state = await self._wait_for_status(repository.full_name, branch)
        if state != SUCCESS_STATE:
            raise ChecksNotPassedError(state)
        logger.info("Try merge successful for %s#%s", repository.full_name, pr_number)

    async def _wait_for_status(self, full_name: str, branch: str) -> str:
        """
        Poll the combined status until it leaves ``pending``.

        Raises:
            StatusPollTimeoutError: still pending after ``poll_policy.timeout``.
        """
        policy = self.poll_policy
        waited = policy.initial_delay
        interval = policy.interval
        await self._sleep(policy.initial_delay)

        while True:
            state = await self.github.poll_combined_status(full_name, branch)
            if state != PENDING_STATE:
                return state

            if waited >= policy.timeout:
                raise StatusPollTimeoutError(branch, waited, state)

            delay = min(interval, policy.max_interval, policy.timeout - waited)
            logger.debug("Checks pending on %s, next poll in %.1fs", branch, delay)
            await self._sleep(delay)
            waited += delay
            interval *= policy.backoff_factor

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    async def _report(
        self, repository: RepositoryRef, pr_number: int, job: TryMergeJob
    ) -> None:
        """Best-effort comment with the outcome; never changes the job."""
        if not self.report_results:
            return

        try:
            await self.github.post_comment(
                repository.full_name, pr_number, format_result_comment(job)
            )
        except GitHubError as e:
            logger.warning(
                "Failed to comment on %s#%s: %s", repository.full_name, pr_number, e
            )

    async def _record_cancellation(self, job: TryMergeJob) -> None:
        """
        Best-effort write for a run cancelled at shutdown.

        A run cancelled before its outcome was known is recorded as ``failed``;
        one cancelled while writing a known outcome writes that outcome again.
        If the row was never committed the write fails and is only logged.
        """
        if not job.job_status.is_terminal:
            job.finish(JobStatus.FAILED, "Cancelled: the service shut down mid-run")
        try:
            await self.store.update(job)
        except JobStoreError as e:
            # Startup reconciliation will catch the stale row instead
            logger.warning("Could not record cancellation of job %s: %s", job.id, e)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        # Persistence failures were already logged by run()
        if exc is not None and not isinstance(exc, JobStoreError):
            logger.error("Try-merge task %s crashed", task.get_name(), exc_info=exc)


def format_result_comment(job: TryMergeJob) -> str:
    """Markdown comment body describing a finished job."""
    if job.job_status is JobStatus.COMPLETED:
        return (
            f":white_check_mark: Try merge succeeded. `{job.branch_name}` "
            "passed all checks."
        )
    return (
        f":x: Try merge failed on `{job.branch_name}`.\n\n"
        f"```\n{job.error_message}\n```"
    )
