"""Entry Ledger: append, undo and read a room's signed entries.

Entries are append-only. The one exception is :func:`undo_last`, which may
retract the acting member's own most recent entry in the room, and only
within fifteen minutes of that entry being written. It can never reach an
older entry while a newer one exists, nor another member's entry.

Each entry carries a snapshot of the member's display name taken at write
time; renaming later does not rewrite history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from impulse_ledger.db import entries_repo, members_repo, rooms_repo
from impulse_ledger.db.timestamps import utc_now
from impulse_ledger.db.types import EntryRecord
from impulse_ledger.ledger import recorder
from impulse_ledger.ledger.admission import clean_room_code
from impulse_ledger.ledger.errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    room_not_found,
)
from impulse_ledger.ledger.membership import require_member

logger = logging.getLogger(__name__)

UNDO_WINDOW = timedelta(minutes=15)

DEFAULT_HISTORY_MONTHS = 12
MIN_HISTORY_MONTHS = 1
MAX_HISTORY_MONTHS = 24


@dataclass(slots=True)
class RoomLog:
    """
    Every entry in a room with the plain sum of their deltas.

    Attributes:
        room_code: Room read.
        balance: Sum of all deltas, whatever their value.
        entries: Chronological entries.
    """

    room_code: str
    balance: int
    entries: list[EntryRecord]


def _require_user_id(user_id: Any) -> str:
    value = str(user_id or "").strip()
    if not value:
        raise AuthorizationError("userId required", error_code="AUTH_REQUIRED", status_code=401)
    return value


def coerce_delta(delta: Any) -> int:
    """Accept an integer (or integral float) delta; booleans are rejected."""
    if isinstance(delta, bool):
        raise ValidationError("delta must be an integer", error_code="INVALID_DELTA")
    if isinstance(delta, int):
        return delta
    if isinstance(delta, float) and delta.is_integer():
        return int(delta)
    raise ValidationError("delta must be an integer", error_code="INVALID_DELTA")


def append(
    room_code: Any,
    user_id: Any,
    delta: Any,
    label: str | None = None,
    *,
    now: datetime | None = None,
) -> int:
    """Append one entry for a member and return its id.

    The member's last-seen time is refreshed after the insert; the two writes
    are not atomic and last-seen is advisory only.

    Raises:
        AuthorizationError: ``AUTH_REQUIRED`` (401) or ``JOIN_REQUIRED`` (403).
        ValidationError: ``INVALID_DELTA``.
    """
    code = clean_room_code(room_code)
    uid = _require_user_id(user_id)
    value = coerce_delta(delta)
    member = require_member(code, uid)
    now = now or utc_now()
    clean_label = (label or "").strip() or None

    entry_id = entries_repo.insert_entry(code, uid, member.name, value, clean_label, now=now)
    recorder.record(
        "entry_created",
        {
            "roomCode": code,
            "userId": uid,
            "playerName": member.name,
            "delta": value,
            "label": clean_label,
            "entryId": entry_id,
        },
        room_code=code,
        user_id=uid,
        now=now,
    )
    members_repo.touch_last_seen(code, uid, now=now)
    return entry_id


def undo_last(room_code: Any, user_id: Any, *, now: datetime | None = None) -> EntryRecord:
    """Delete the member's most recent entry if it is inside the undo window.

    Returns:
        The entry that was removed.

    Raises:
        NotFoundError: ``NOTHING_TO_UNDO``.
        ValidationError: ``UNDO_WINDOW_ELAPSED``; the entry is kept.
    """
    code = clean_room_code(room_code)
    uid = _require_user_id(user_id)
    require_member(code, uid)
    now = now or utc_now()

    latest = entries_repo.get_latest_entry(code, uid)
    if latest is None:
        raise NotFoundError("Nothing to undo", error_code="NOTHING_TO_UNDO")
    if now - latest.created_at > UNDO_WINDOW:
        raise ValidationError("Undo window elapsed (15 min)", error_code="UNDO_WINDOW_ELAPSED")

    entries_repo.delete_entry(latest.id)
    recorder.record(
        "entry_deleted",
        {
            "roomCode": code,
            "userId": uid,
            "entryId": latest.id,
            "delta": latest.delta,
            "createdAt": latest.created_at.isoformat(),
        },
        room_code=code,
        user_id=uid,
        now=now,
    )
    return latest


def clamp_months(months: Any) -> int:
    """Clamp a lookback to 1..24 months; unparseable input means 12."""
    try:
        value = int(months)
    except (TypeError, ValueError):
        return DEFAULT_HISTORY_MONTHS
    return max(MIN_HISTORY_MONTHS, min(MAX_HISTORY_MONTHS, value))


def months_before(moment: datetime, months: int) -> datetime:
    """Return ``moment`` shifted back by whole calendar months (day clamped)."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Day 28 exists in every month; walk forward to the original day if possible.
    day = moment.day
    while day > 28:
        try:
            return moment.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1
    return moment.replace(year=year, month=month, day=day)


def history(
    room_code: Any,
    user_id: Any,
    since_months: Any = DEFAULT_HISTORY_MONTHS,
    *,
    now: datetime | None = None,
) -> list[EntryRecord]:
    """Return the caller's own entries in the room, oldest first."""
    code = clean_room_code(room_code)
    uid = _require_user_id(user_id)
    require_member(code, uid)
    since = months_before(now or utc_now(), clamp_months(since_months))
    return entries_repo.list_entries(code, user_id=uid, since=since)


def room_log(room_code: Any) -> RoomLog:
    """Return every entry in the room and their arbitrary-integer sum."""
    code = clean_room_code(room_code)
    if rooms_repo.get_room(code) is None:
        raise room_not_found(code)
    rows = entries_repo.list_entries(code)
    return RoomLog(room_code=code, balance=sum(row.delta for row in rows), entries=rows)
