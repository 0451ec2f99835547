import math
import time
from typing import Any, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .core.config import get_settings
from .core.logging import get_logger

logger = get_logger(__name__)

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker[Session]] = None


def _normalize_database_url(url: str) -> str:
    """Ensure SQLAlchemy uses psycopg driver explicitly.

    Hosting platforms provide postgresql://... or postgres://...; prefer
    postgresql+psycopg://...
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://") and "+" not in url:
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _engine_kwargs(database_url: str, statement_timeout_seconds: float) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"future": True}
    kwargs: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 5,
        "future": True,
    }
    if database_url.startswith("postgresql"):
        # Bound every way a store call can block to the per-request budget,
        # so a worker flagged by run_with_timeout still returns promptly
        timeout_ms = int(statement_timeout_seconds * 1000)
        kwargs["pool_timeout"] = statement_timeout_seconds
        kwargs["connect_args"] = {
            "options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}",
            # libpq treats values below 2 as 2
            "connect_timeout": max(2, math.ceil(statement_timeout_seconds)),
        }
    return kwargs


def install_query_logging(engine: Engine, level: int) -> None:
    """Log SQL through structlog.

    level 1 logs failed statements only, level 2 logs every statement.
    """
    if level <= 0:
        return

    @event.listens_for(engine, "handle_error")
    def _log_failed_query(context) -> None:
        logger.warning(
            "db.query_failed",
            statement=context.statement,
            error=str(context.original_exception),
        )

    if level < 2:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany) -> None:
        conn.info.setdefault("query_start", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _log_query(conn, cursor, statement, parameters, context, executemany) -> None:
        started = conn.info["query_start"].pop()
        logger.info(
            "db.query",
            statement=statement,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )


def get_engine() -> Engine:
    global _engine
    if _engine is not None:
        return _engine

    settings = get_settings()
    database_url = _normalize_database_url(settings.database_url)

    _engine = create_engine(
        database_url, **_engine_kwargs(database_url, settings.store_timeout_seconds)
    )
    install_query_logging(_engine, settings.db_debug)
    return _engine


class Base(DeclarativeBase):
    pass


def get_sessionmaker() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is not None:
        return _SessionLocal

    engine = get_engine()
    _SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    return _SessionLocal


def check_database_health() -> dict:
    """Run a lightweight health check against the database."""
    engine = get_engine()
    try:
        with engine.connect() as connection:
            result = connection.execute(text("SELECT 1")).scalar()
            ok = bool(result == 1)
            return {"ok": ok, "details": "ok" if ok else "unexpected result"}
    except (
        Exception
    ) as exc:  # noqa: BLE001 - include error details for operator visibility
        return {"ok": False, "details": str(exc)}
