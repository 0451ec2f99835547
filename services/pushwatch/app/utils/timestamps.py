"""RFC3339 helpers shared by ingestion and reporting."""

import re
from datetime import UTC, datetime

# What a failed timestamp parse stores, mirroring an unset time value
ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)

_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp and convert it to UTC.

    Only the RFC3339 profile is accepted: ``YYYY-MM-DDTHH:MM:SS[.frac]``
    followed by ``Z`` or ``+hh:mm``. Other ISO-8601 spellings (space
    separator, basic format, week dates, truncated times) raise ValueError,
    as do out-of-range fields.
    """
    match = _RFC3339.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"not an RFC3339 timestamp: {value!r}")
    day, clock, fraction, offset = match.groups()
    # datetime keeps microseconds; longer fractions are truncated
    micros = (fraction or "").ljust(6, "0")[:6]
    if offset in ("Z", "z"):
        offset = "+00:00"
    parsed = datetime.fromisoformat(f"{day}T{clock}.{micros}{offset}")
    return parsed.astimezone(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach or convert to UTC; SQLite hands back naive datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_rfc3339(value: datetime) -> str:
    """Render at second precision with a ``Z`` suffix, e.g. 2024-01-01T00:00:00Z."""
    return as_utc(value).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def hours_since(value: datetime, now: datetime | None = None) -> float:
    now = now or datetime.now(UTC)
    return (as_utc(now) - as_utc(value)).total_seconds() / 3600
