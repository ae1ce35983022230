from contextlib import asynccontextmanager
from fastapi import FastAPI

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.db.session import AsyncSessionLocal, engine
from app.integrations.github.client import GitHubClient
from app.services.try_merge.orchestrator import StatusPollPolicy, TryMergeOrchestrator
from app.services.try_merge.store import TryMergeJobStore

logger = get_logger(__name__)


def build_orchestrator() -> TryMergeOrchestrator:
    """Wire the orchestrator from settings."""
    github = GitHubClient(
        settings.GITHUB_TOKEN,
        base_url=settings.GITHUB_API_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    return TryMergeOrchestrator(
        github=github,
        store=TryMergeJobStore(AsyncSessionLocal),
        branch_namespace=settings.BRANCH_NAMESPACE,
        poll_policy=StatusPollPolicy(
            initial_delay=settings.STATUS_POLL_INITIAL_DELAY_SECONDS,
            interval=settings.STATUS_POLL_INTERVAL_SECONDS,
            backoff_factor=settings.STATUS_POLL_BACKOFF_FACTOR,
            max_interval=settings.STATUS_POLL_MAX_INTERVAL_SECONDS,
            timeout=settings.STATUS_POLL_TIMEOUT_SECONDS,
        ),
        run_timeout=settings.TRY_MERGE_TIMEOUT_SECONDS,
        report_results=settings.REPORT_RESULTS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan function for the FastAPI application.
    Handles startup and shutdown events for application services.
    """
    # 1. Logging
    setup_logging(settings.LOG_LEVEL)

    # 2. Build orchestrator (owns the in-flight registry)
    orchestrator = build_orchestrator()
    app.state.orchestrator = orchestrator

    # 3. Fail jobs a previous process left running
    if settings.RECONCILE_STALE_JOBS:
        await orchestrator.reconcile()

    logger.info("%s started", settings.PROJECT_NAME)

    yield

    # 4. Drain in-flight try merges
    await orchestrator.aclose(grace=settings.SHUTDOWN_GRACE_SECONDS)

    # 5. Dispose Database Engine
    await engine.dispose()
