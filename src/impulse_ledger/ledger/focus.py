"""Weekly focus: two or three areas a member commits to for one week.

A focus is written once per ``(room, member, week key)`` and locked. A second
write for the same week is rejected with 409 and the first value stands.
All input validation happens before anything touches the store.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any

from impulse_ledger.db import focus_repo, members_repo
from impulse_ledger.db.errors import DatabaseWriteError
from impulse_ledger.db.timestamps import utc_now
from impulse_ledger.db.types import FocusRecord
from impulse_ledger.ledger import recorder
from impulse_ledger.ledger.admission import clean_room_code
from impulse_ledger.ledger.errors import ConflictError, ValidationError
from impulse_ledger.ledger.membership import require_member

logger = logging.getLogger(__name__)

WEEK_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MIN_AREAS = 2
MAX_AREAS = 3


def validate_week_key(week_key: Any) -> str:
    """Return ``week_key`` if it is a real ``YYYY-MM-DD`` date."""
    if not isinstance(week_key, str) or not WEEK_KEY_PATTERN.match(week_key.strip()):
        raise ValidationError(
            "valid weekKey (YYYY-MM-DD) required", error_code="INVALID_WEEK_KEY"
        )
    key = week_key.strip()
    try:
        date.fromisoformat(key)
    except ValueError as exc:
        raise ValidationError(
            "valid weekKey (YYYY-MM-DD) required", error_code="INVALID_WEEK_KEY"
        ) from exc
    return key


def clean_areas(areas: Any) -> list[str]:
    """Trim, drop empties and de-duplicate while keeping submission order."""
    if not isinstance(areas, list):
        raise ValidationError("areas must be an array", error_code="INVALID_AREAS")
    cleaned: list[str] = []
    for area in areas:
        if not isinstance(area, str):
            continue
        text = area.strip()
        if text and text not in cleaned:
            cleaned.append(text)
    if not MIN_AREAS <= len(cleaned) <= MAX_AREAS:
        raise ValidationError("Select 2–3 areas", error_code="INVALID_AREAS")
    return cleaned


def _already_set() -> ConflictError:
    return ConflictError(
        "Weekly focus already set for this week", error_code="FOCUS_ALREADY_SET"
    )


def set_focus(
    room_code: Any,
    user_id: Any,
    week_key: Any,
    areas: Any,
    *,
    now: datetime | None = None,
) -> FocusRecord:
    """Lock the member's focus areas for ``week_key``.

    Raises:
        ValidationError: ``INVALID_WEEK_KEY`` or ``INVALID_AREAS``.
        AuthorizationError: ``JOIN_REQUIRED``.
        ConflictError: ``FOCUS_ALREADY_SET``.
    """
    code = clean_room_code(room_code)
    key = validate_week_key(week_key)
    cleaned = clean_areas(areas)
    uid = str(user_id or "").strip()
    if not uid:
        raise ValidationError("userId required", error_code="USER_ID_REQUIRED")
    member = require_member(code, uid)
    now = now or utc_now()

    if focus_repo.get_focus(code, uid, key) is not None:
        raise _already_set()
    try:
        focus_repo.insert_focus(code, uid, member.name, key, cleaned, now=now)
    except DatabaseWriteError as exc:
        if exc.violates_unique("week_key"):
            raise _already_set() from exc
        raise

    recorder.record(
        "focus_set",
        {"roomCode": code, "userId": uid, "weekKey": key, "areas": cleaned},
        room_code=code,
        user_id=uid,
        now=now,
    )
    members_repo.touch_last_seen(code, uid, now=now)
    return FocusRecord(
        room_code=code,
        user_id=uid,
        player_name=member.name,
        week_key=key,
        areas=cleaned,
        locked=True,
        created_at=now,
    )


def get_focus(room_code: Any, user_id: Any, week_key: Any) -> tuple[list[str], bool]:
    """Return ``(areas, locked)``; ``([], False)`` when nothing is set."""
    code = clean_room_code(room_code)
    key = validate_week_key(week_key)
    uid = str(user_id or "").strip()
    if not uid:
        raise ValidationError("userId required", error_code="USER_ID_REQUIRED")
    require_member(code, uid)
    record = focus_repo.get_focus(code, uid, key)
    if record is None:
        return [], False
    return record.areas, record.locked
