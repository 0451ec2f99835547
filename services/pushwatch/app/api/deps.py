from collections.abc import Generator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.exceptions import PayloadTooLargeError, SignatureError
from ..core.logging import get_logger
from ..core.observability import WEBHOOK_DELIVERIES
from ..core.security import verify_signature
from ..db import get_sessionmaker

logger = get_logger(__name__)


def get_db_session() -> Generator[Session, None, None]:
    SessionLocal = get_sessionmaker()
    with SessionLocal() as session:
        yield session


async def read_body_limited(request: Request, limit: int) -> bytes:
    """Read the request body, giving up as soon as it exceeds ``limit`` bytes.

    A declared Content-Length over the limit is refused before anything is
    read; chunked or mis-declared bodies are cut off mid-stream.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(f"payload exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"payload exceeds {limit} bytes")
    return bytes(body)


async def require_github_signature(
    request: Request,
    settings: Settings = Depends(get_settings),
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
) -> bytes:
    """
    Gate a route on a valid GitHub HMAC signature.

    Returns the raw body; routes take it from this dependency rather than
    reading the request stream again.

    Raises:
        PayloadTooLargeError: 413 if the body exceeds MAX_PAYLOAD_BYTES
        SignatureError: 401 if the signature is missing or does not match
    """
    try:
        body = await read_body_limited(request, settings.max_payload_bytes)
    except PayloadTooLargeError:
        WEBHOOK_DELIVERIES.labels(outcome="invalid").inc()
        raise

    try:
        if not settings.github_webhook_secret:
            raise SignatureError("webhook secret not set")
        verify_signature(settings.github_webhook_secret, body, x_hub_signature_256)
    except SignatureError as exc:
        WEBHOOK_DELIVERIES.labels(outcome="rejected").inc()
        logger.warning(
            "webhook.signature_rejected",
            reason=exc.message,
            delivery_id=request.headers.get("X-GitHub-Delivery"),
        )
        raise
    return body
