"""Tests for logging configuration and redaction."""

import json

import pytest
import structlog

from services.pushwatch.app.core.logging import configure_structlog, get_logger


@pytest.fixture
def rendered(capsys):
    """Configure logging and return a helper that parses the last JSON line."""
    structlog.reset_defaults()
    configure_structlog()

    def _last_line() -> dict:
        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        return json.loads(lines[-1])

    yield _last_line
    configure_structlog()


class TestLoggingRedaction:
    def test_redacts_signature_header_key(self, rendered):
        get_logger("test").info("test message", **{"x-hub-signature-256": "sha256=abc123"})

        assert rendered()["x-hub-signature-256"] == "[REDACTED]"

    def test_redacts_webhook_secret_key(self, rendered):
        get_logger("test").info("test message", github_webhook_secret="hunter2")

        assert rendered()["github_webhook_secret"] == "[REDACTED]"

    def test_redacts_signature_inside_strings(self, rendered):
        get_logger("test").info("test message", header="X-Hub-Signature-256: sha256=deadbeef01")

        assert rendered()["header"] == "X-Hub-Signature-256: sha256=[REDACTED]"

    def test_normal_messages_not_affected(self, rendered):
        get_logger("test").info("webhook.event_recorded", pusher_name="alice", id=3)

        line = rendered()
        assert line["event"] == "webhook.event_recorded"
        assert line["pusher_name"] == "alice"
        assert line["level"] == "info"
        assert "timestamp" in line

    def test_bound_request_id_is_merged(self, rendered):
        structlog.contextvars.bind_contextvars(request_id="req-1")
        try:
            get_logger("test").info("test message")
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        assert rendered()["request_id"] == "req-1"
