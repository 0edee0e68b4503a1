"""Event Recorder: best-effort audit trail.

Ledger and membership writes must either succeed or fail loudly. Audit writes
are the opposite: :func:`record` never raises. Any failure (storage, encoding,
anything) is logged as a warning and the caller carries on; only the audit
row is lost.

A failed audit insert is never retried: it gets a single attempt so a locked
store cannot add backoff delays to the ledger write that triggered it.

Usage::

    from impulse_ledger.ledger import recorder

    recorder.record("entry_created", {"delta": 1}, room_code="TESTA", user_id="u-1")
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from impulse_ledger.db import events_repo
from impulse_ledger.db.constants import DEFAULT_EVENT_LIMIT, MAX_EVENT_LIMIT
from impulse_ledger.db.timestamps import utc_now
from impulse_ledger.db.types import EventRecord
from impulse_ledger.ledger.errors import ValidationError

logger = logging.getLogger(__name__)

# Payload keys dropped from the public events listing.
PRIVATE_PAYLOAD_KEYS = frozenset({"userId", "label"})


def record(
    event_type: str,
    payload: dict[str, Any] | None = None,
    *,
    room_code: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> str | None:
    """Append one audit event.

    Returns:
        The new event id, or None when the write failed.
    """
    event_id = uuid.uuid4().hex
    try:
        events_repo.insert_event(
            event_id,
            event_type,
            dict(payload or {}),
            room_code=room_code,
            user_id=user_id,
            now=now or utc_now(),
            max_attempts=1,
        )
    except Exception:
        logger.warning(
            "Audit event %r for room %r was not recorded", event_type, room_code, exc_info=True
        )
        return None
    return event_id


def clamp_limit(limit: Any) -> int:
    """Clamp an events listing limit to 1..200, defaulting to 50."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_EVENT_LIMIT
    return max(1, min(MAX_EVENT_LIMIT, value))


def list_events(
    *,
    room_code: str | None = None,
    event_type: str | None = None,
    limit: Any = DEFAULT_EVENT_LIMIT,
) -> list[EventRecord]:
    """Return newest-first audit events with optional room/type filters."""
    room = room_code.strip().upper() if room_code and room_code.strip() else None
    kind = event_type.strip() if event_type and event_type.strip() else None
    return events_repo.list_events(room_code=room, event_type=kind, limit=clamp_limit(limit))


def public_payload(data: dict[str, Any]) -> dict[str, Any]:
    """Return ``data`` without member identifiers or entry labels."""
    return {key: value for key, value in data.items() if key not in PRIVATE_PAYLOAD_KEYS}


def record_manual(
    event_type: Any,
    data: Any = None,
    *,
    room_code: str | None = None,
    user_id: str | None = None,
) -> str:
    """Record an event submitted through the events endpoint.

    Unlike :func:`record` the caller asked for this write explicitly, so a
    failed insert is reported rather than swallowed.

    Raises:
        ValidationError: When ``event_type`` is missing or ``data`` is not an object.
    """
    if not isinstance(event_type, str) or not event_type.strip():
        raise ValidationError("type is required", error_code="EVENT_TYPE_REQUIRED")
    if data is not None and not isinstance(data, dict):
        raise ValidationError("data must be an object", error_code="INVALID_EVENT_DATA")
    event_id = uuid.uuid4().hex
    events_repo.insert_event(
        event_id,
        event_type.strip(),
        dict(data or {}),
        room_code=room_code.strip().upper() if room_code else None,
        user_id=user_id,
        now=utc_now(),
    )
    return event_id
