import logging
import re
from typing import Any, Dict

import structlog


def _configure_stdlib_logging() -> None:
    logging.basicConfig(
        format="%(message)s",
        level=logging.INFO,
    )


def configure_structlog() -> None:
    _configure_stdlib_logging()

    # Redaction processor for secrets and signatures
    secret_keys = {
        "authorization",
        "x-hub-signature-256",
        "signature",
        "github_webhook_secret",
        "secret",
    }

    def _redact_event_logger(_logger, _name, event_dict: Dict[str, Any]):  # type: ignore[override]
        # redact obvious keys
        for k in list(event_dict.keys()):
            lk = str(k).lower()
            if lk in secret_keys:
                event_dict[k] = "[REDACTED]"
        # redact signatures embedded in strings
        for k, v in list(event_dict.items()):
            if isinstance(v, str) and "sha256=" in v:
                event_dict[k] = re.sub(r"sha256=[A-Fa-f0-9]+", "sha256=[REDACTED]", v)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _redact_event_logger,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
