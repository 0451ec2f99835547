from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....core.config import Settings, get_settings
from ....core.exceptions import PushNotFoundError
from ....schemas.pushes import LastPushOut
from ....services.last_push import find_last_push
from ....services.store import run_with_timeout
from ....utils.timestamps import format_rfc3339, hours_since
from ...deps import get_db_session

router = APIRouter(tags=["pushes"])


@router.get("/last_push", response_model=LastPushOut)
async def last_push(
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> LastPushOut:
    """Report the monitored user's most recent push and how many hours ago it was."""
    name = settings.monitored_username or ""
    evt = await run_with_timeout(
        find_last_push,
        session,
        name,
        timeout=settings.store_timeout_seconds,
        operation="select last push",
    )
    if evt is None:
        raise PushNotFoundError(name)

    return LastPushOut(
        pusher_name=evt.pusher_name,
        pusher_email=evt.pusher_email,
        commit_at=format_rfc3339(evt.commit_at),
        old=hours_since(evt.commit_at),
    )
