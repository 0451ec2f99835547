from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import StoreUnavailableError
from ..core.logging import get_logger
from ..models.github_events import GithubEvent
from .store import raise_if_expired

logger = get_logger(__name__)


def find_last_push(session: Session, pusher_name: str) -> GithubEvent | None:
    """Return the event with the latest commit_at for ``pusher_name``, if any."""
    stmt = (
        select(GithubEvent)
        .where(GithubEvent.pusher_name == pusher_name)
        .order_by(GithubEvent.commit_at.desc(), GithubEvent.id.desc())
        .limit(1)
    )
    try:
        evt = session.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.error("last_push.query_failed", pusher_name=pusher_name, error=str(exc))
        raise StoreUnavailableError() from exc
    raise_if_expired()
    return evt
