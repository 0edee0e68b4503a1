"""Timestamp encoding shared by every table.

All timestamps are written by the application as UTC ISO-8601 strings with
microsecond precision. A fixed-width encoding keeps ``ORDER BY created_at``
and range predicates correct as plain string comparisons.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_db(value: datetime) -> str:
    """Encode an aware datetime for storage.

    Raises:
        ValueError: If ``value`` is naive.
    """
    if value.tzinfo is None:
        raise ValueError("timestamps must be timezone-aware")
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db(value: str | None) -> datetime | None:
    """Decode a stored timestamp; ``None`` passes through."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
