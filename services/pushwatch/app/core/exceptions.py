"""Application error hierarchy.

Every error carries the HTTP status it maps to; the handlers registered in
``main.create_app`` render them as ``{"error": message}``.
"""

from typing import Optional


class PushwatchError(Exception):
    """Base class for errors surfaced to HTTP callers."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(message)


class SignatureError(PushwatchError):
    """Missing or invalid webhook signature (401)."""

    status_code = 401


class InvalidPayloadError(PushwatchError):
    """Request body could not be decoded (400)."""

    status_code = 400


class PayloadTooLargeError(PushwatchError):
    status_code = 413


class PushNotFoundError(PushwatchError):
    """No event recorded yet for the monitored pusher (404)."""

    status_code = 404

    def __init__(self, pusher_name: str):
        self.pusher_name = pusher_name
        super().__init__(f"no push recorded for {pusher_name}")


class StoreUnavailableError(PushwatchError):
    """The event store rejected or failed an operation (503)."""

    status_code = 503

    def __init__(self, message: str = "event store unavailable, retry later", retry_after: int = 5):
        super().__init__(message, headers={"Retry-After": str(retry_after)})


class StoreTimeoutError(PushwatchError):
    """A store operation exceeded its time budget (504)."""

    status_code = 504
