"""GitHub webhook handling: authenticity check, payload parsing and event routing."""

import json
from typing import Optional

from fastapi import HTTPException

from app.core.config import settings
from app.core.logging import get_logger
from app.db.models.repository import RepositoryRef
from app.services.github.commands import CommandParser
from app.services.github.security import verify_signature
from app.services.try_merge.orchestrator import TryMergeOrchestrator

logger = get_logger(__name__)

PR_ACTIVITY_ACTIONS = ("opened", "synchronize", "reopened")


async def handle_github_webhook(
    event_type: str,
    raw_body: bytes,
    signature_header: Optional[str],
    orchestrator: TryMergeOrchestrator,
    parser: Optional[CommandParser] = None,
) -> dict:
    """
    Process a GitHub webhook: verify, parse and route by event type.

    - Verifies HMAC SHA-256 signature.
    - issue_comment: extracts a bot command and hands it to the orchestrator
      as a background task. The webhook is acknowledged without waiting.
    - pull_request: logged only.
    - Other events: logged and ignored.

    Args:
        event_type: The X-GitHub-Event header value (e.g. "issue_comment").
        raw_body: The raw body bytes for signature verification.
        signature_header: The X-Hub-Signature-256 header.
        orchestrator: Receives recognised try-merge commands.
        parser: Command extractor; defaults to one for ``settings.BOT_NAME``.

    Returns:
        A dict to be returned as the JSON response.
    """
    # 1. Verify Signature
    if not verify_signature(raw_body, settings.GITHUB_WEBHOOK_SECRET, signature_header):
        logger.warning("Rejected %s webhook with invalid signature", event_type)
        raise HTTPException(status_code=403, detail="Invalid signature")

    # 2. Parse Payload
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    # 3. Route
    if event_type == "ping":
        return {"message": "pong"}

    if event_type == "issue_comment":
        return _handle_issue_comment(payload, orchestrator, parser)

    if event_type == "pull_request":
        action = payload.get("action")
        if action in PR_ACTIVITY_ACTIONS:
            logger.info(
                "PR %s %s", (payload.get("pull_request") or {}).get("number"), action
            )
        return {"message": "Event ignored", "event": event_type}

    logger.info("Unhandled webhook event: %s", event_type)
    return {"message": "Event ignored", "event": event_type}


def _handle_issue_comment(
    payload: dict,
    orchestrator: TryMergeOrchestrator,
    parser: Optional[CommandParser],
) -> dict:
    if payload.get("action") != "created":
        return {"message": "Comment action ignored", "action": payload.get("action")}

    issue = payload.get("issue") or {}
    if not issue.get("pull_request"):
        # Plain issues share this event with PRs
        return {"message": "Not a pull request comment"}

    parser = parser or CommandParser(settings.BOT_NAME)
    command = parser.parse((payload.get("comment") or {}).get("body"))
    if command is None:
        return {"message": "No command found"}

    repository = RepositoryRef.from_payload(payload.get("repository") or {})
    pr_number = issue.get("number")
    if repository is None or not isinstance(pr_number, int):
        raise HTTPException(status_code=400, detail="Missing repository or PR number")

    logger.info(
        "Processing command %r for %s#%s", command, repository.full_name, pr_number
    )
    accepted = orchestrator.dispatch(repository, pr_number, command)
    return {
        "message": "Command accepted" if accepted else "Command ignored",
        "command": command,
    }
