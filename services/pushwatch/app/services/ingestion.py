"""Turn verified GitHub push deliveries into GithubEvent rows."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import InvalidPayloadError, StoreTimeoutError, StoreUnavailableError
from ..core.logging import get_logger
from ..models.github_events import GithubEvent
from ..utils.timestamps import ZERO_TIME, parse_rfc3339
from .store import raise_if_expired

logger = get_logger(__name__)


@dataclass(frozen=True)
class PushRecord:
    pusher_name: str
    pusher_email: str
    commit_at: datetime
    payload: dict[str, Any]


def decode_payload(body: bytes) -> dict[str, Any]:
    """Decode the raw body, raising InvalidPayloadError when it is not a JSON object."""
    try:
        data = json.loads(body)
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise InvalidPayloadError(f"invalid JSON body: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidPayloadError(
            f"invalid JSON body: expected an object, got {type(data).__name__}"
        )
    return data


def _commit_time(head_commit: dict[str, Any]) -> datetime:
    timestamp = head_commit.get("timestamp")
    if not isinstance(timestamp, str):
        logger.warning("webhook.invalid_timestamp", raw_timestamp=repr(timestamp))
        return ZERO_TIME
    try:
        return parse_rfc3339(timestamp)
    except ValueError as exc:
        logger.warning("webhook.invalid_timestamp", raw_timestamp=timestamp, error=str(exc))
        return ZERO_TIME


def extract_push(payload: dict[str, Any]) -> PushRecord | None:
    """Pull pusher identity and commit time out of a push payload.

    Returns None when the payload lacks the pieces a row needs; deliveries
    such as ``ping`` or ``issues`` land here and are acknowledged without
    being stored. A present but unparseable timestamp still yields a record,
    stamped with ZERO_TIME.
    """
    pusher = payload.get("pusher")
    if not isinstance(pusher, dict):
        logger.warning("webhook.push_skipped", reason="missing pusher")
        return None

    name = pusher.get("name")
    email = pusher.get("email")
    if not isinstance(name, str) or not name:
        logger.warning("webhook.push_skipped", reason="missing pusher.name")
        return None
    if not isinstance(email, str):
        logger.warning("webhook.push_skipped", reason="missing pusher.email")
        return None

    head_commit = payload.get("head_commit")
    if not isinstance(head_commit, dict):
        logger.warning("webhook.push_skipped", reason="missing head_commit", pusher_name=name)
        return None

    return PushRecord(
        pusher_name=name,
        pusher_email=email,
        commit_at=_commit_time(head_commit),
        payload=payload,
    )


def record_push(session: Session, push: PushRecord) -> GithubEvent:
    """Insert a new event row.

    Store failures become StoreUnavailableError. If the request budget has
    expired by the time the row is flushed, the transaction is rolled back
    and StoreTimeoutError is raised, so nothing is committed.
    """
    evt = GithubEvent(
        pusher_name=push.pusher_name,
        pusher_email=push.pusher_email,
        payload=push.payload,
        commit_at=push.commit_at,
    )
    try:
        session.add(evt)
        session.flush()
        raise_if_expired()
        session.commit()
    except StoreTimeoutError:
        session.rollback()
        logger.error("webhook.insert_abandoned", pusher_name=push.pusher_name)
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("webhook.insert_failed", pusher_name=push.pusher_name, error=str(exc))
        raise StoreUnavailableError("event could not be recorded, retry later") from exc

    logger.info(
        "webhook.event_recorded",
        id=evt.id,
        pusher_name=evt.pusher_name,
        commit_at=push.commit_at.isoformat(),
    )
    return evt
