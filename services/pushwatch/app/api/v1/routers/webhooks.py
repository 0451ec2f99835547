from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from ....core.config import Settings, get_settings
from ....core.exceptions import PushwatchError
from ....core.logging import get_logger
from ....core.observability import WEBHOOK_DELIVERIES
from ....schemas.pushes import MessageOut
from ....services.ingestion import decode_payload, extract_push, record_push
from ....services.store import run_with_timeout
from ...deps import get_db_session, require_github_signature

router = APIRouter(tags=["webhooks"])
logger = get_logger(__name__)

ACCEPTED = {"message": "cool"}


# /github kept for hooks registered under the old path
@router.post("/webhook", response_model=MessageOut)
@router.post("/github", response_model=MessageOut, include_in_schema=False)
async def github_webhook(
    body: bytes = Depends(require_github_signature),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    x_github_event: str | None = Header(None, alias="X-GitHub-Event"),
    x_github_delivery: str | None = Header(None, alias="X-GitHub-Delivery"),
) -> dict:
    """
    GitHub push webhook.

    The signature has already been checked by ``require_github_signature``.
    Deliveries that carry no pusher or head commit (``ping``, non-push
    events) are acknowledged without being stored.

    See: https://docs.github.com/en/webhooks/webhook-events-and-payloads#push
    """
    log = logger.bind(event_type=x_github_event or "unknown", delivery_id=x_github_delivery)

    try:
        payload = decode_payload(body)
    except PushwatchError:
        WEBHOOK_DELIVERIES.labels(outcome="invalid").inc()
        raise

    push = extract_push(payload)
    if push is None:
        WEBHOOK_DELIVERIES.labels(outcome="skipped").inc()
        log.info("webhook.acknowledged_without_record")
        return ACCEPTED

    try:
        await run_with_timeout(
            record_push,
            session,
            push,
            timeout=settings.store_timeout_seconds,
            operation="insert github event",
        )
    except PushwatchError:
        WEBHOOK_DELIVERIES.labels(outcome="failed").inc()
        raise

    WEBHOOK_DELIVERIES.labels(outcome="recorded").inc()
    return ACCEPTED
