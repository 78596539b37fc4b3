"""Public unsubscribe endpoint reached from links in marketing email."""

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from unsubscribe_service.core.deps import Codec, DBSession, Limiter, Renderer
from unsubscribe_service.core.rate_limit import get_client_ip
from unsubscribe_service.schemas.unsubscribe import UnsubscribeOutcome, UnsubscribeResult
from unsubscribe_service.services.unsubscribe_store import SqlUnsubscribeStore
from unsubscribe_service.services.unsubscribe_workflow import UnsubscribeWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["unsubscribe"])


@router.get("/unsubscribe", response_class=HTMLResponse)
async def unsubscribe(
    request: Request,
    db: DBSession,
    codec: Codec,
    limiter: Limiter,
    renderer: Renderer,
    token: str | None = Query(None),
    confirm: str | None = Query(None),
) -> HTMLResponse:
    """Show the confirmation page, or apply the user's yes/no answer."""
    client_ip = get_client_ip(request)

    if not await limiter.allow(client_ip):
        result = UnsubscribeResult(outcome=UnsubscribeOutcome.RATE_LIMITED)
    else:
        workflow = UnsubscribeWorkflow(codec, SqlUnsubscribeStore(db))
        result = await workflow.handle(
            token,
            confirm,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
        )

    logger.info("Unsubscribe request finished: outcome=%s", result.outcome.value)
    html, status_code = renderer.render(result)
    return HTMLResponse(html, status_code=status_code)
