from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request

from app.dependencies.services import get_orchestrator
from app.services.github.webhook_service import handle_github_webhook
from app.services.try_merge.orchestrator import TryMergeOrchestrator

router = APIRouter()


@router.post("/webhook")
async def github_webhook(
    request: Request,
    orchestrator: Annotated[TryMergeOrchestrator, Depends(get_orchestrator)],
    x_github_event: str = Header(...),
    x_hub_signature_256: Optional[str] = Header(None),
):
    """
    Handle GitHub webhook requests.

    The request is acknowledged as soon as the signature is verified and the
    payload parsed; try merges run in the background.

    Args:
        request: The incoming HTTP request (raw body is needed for the HMAC).
        x_github_event: The GitHub event type (e.g., 'issue_comment').
        x_hub_signature_256: The HMAC SHA-256 signature of the body.
    """
    raw_body = await request.body()
    return await handle_github_webhook(
        event_type=x_github_event,
        raw_body=raw_body,
        signature_header=x_hub_signature_256,
        orchestrator=orchestrator,
    )
