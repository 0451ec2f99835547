from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from ....core.config import Settings, get_settings
from ....core.exceptions import StoreTimeoutError
from ....db import check_database_health
from ....services.store import run_with_timeout

router = APIRouter(tags=["ops"])


@router.get("/ping")
def ping() -> dict:
    return {"message": "pong"}


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> JSONResponse:
    try:
        db = await run_with_timeout(
            check_database_health,
            timeout=settings.store_timeout_seconds,
            operation="database health check",
        )
    except StoreTimeoutError as exc:
        db = {"ok": False, "details": exc.message}

    return JSONResponse(
        {"status": "ok" if db["ok"] else "degraded", "db": db},
        status_code=200 if db["ok"] else 503,
    )
