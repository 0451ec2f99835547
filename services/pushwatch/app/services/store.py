import asyncio
import threading
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from ..core.exceptions import StoreTimeoutError
from ..core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class _Budget:
    timeout: float
    operation: str
    expired: threading.Event = field(default_factory=threading.Event)


# Copied into the worker thread by asyncio.to_thread
_current_budget: ContextVar[Optional[_Budget]] = ContextVar("store_budget", default=None)


def raise_if_expired() -> None:
    """Checkpoint for store work running under ``run_with_timeout``.

    Call it right before the point of no return (a commit, handing back a
    result). Raises StoreTimeoutError once the caller's budget has run out;
    outside ``run_with_timeout`` it does nothing.
    """
    budget = _current_budget.get()
    if budget is not None and budget.expired.is_set():
        raise StoreTimeoutError(
            f"{budget.operation} timed out after {budget.timeout:g}s"
        )


async def run_with_timeout(
    fn: Callable[..., T], *args, timeout: float, operation: str
) -> T:
    """Run a blocking store call in a worker thread under a time budget.

    When the budget runs out the worker is flagged and then awaited, so the
    session is never released while the thread still uses it. The outcome is
    whatever the worker reports: work that reaches ``raise_if_expired`` after
    expiry rolls back and surfaces as StoreTimeoutError; work that had already
    passed its last checkpoint returns normally. Never retried.
    """
    budget = _Budget(timeout=timeout, operation=operation)
    token = _current_budget.set(budget)
    try:
        worker = asyncio.ensure_future(asyncio.to_thread(fn, *args))
    finally:
        _current_budget.reset(token)

    try:
        return await asyncio.wait_for(asyncio.shield(worker), timeout=timeout)
    except asyncio.TimeoutError:
        budget.expired.set()
        logger.error("store.timeout", operation=operation, timeout_s=timeout)

    result = await worker
    logger.warning("store.completed_after_timeout", operation=operation, timeout_s=timeout)
    return result
