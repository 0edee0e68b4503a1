"""Membership checks and the confirmation-gated leave flow.

``require_member`` is the precondition for every member-only write. It
answers "join required" rather than "not found" so clients can tell
"you must join first" apart from a missing resource.

Leaving is a two-step flow. ``leave_preview`` shows the member what they
are walking away from; ``leave`` deletes the membership only when the
caller explicitly confirms. Entries and weekly focus rows stay behind.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from impulse_ledger.db import entries_repo, focus_repo, members_repo
from impulse_ledger.db.timestamps import utc_now
from impulse_ledger.db.types import EntryStats, MemberRecord
from impulse_ledger.ledger import recorder
from impulse_ledger.ledger.admission import clean_room_code
from impulse_ledger.ledger.errors import ValidationError, join_required, not_a_member

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(slots=True)
class ActivityStats:
    """
    A member's footprint in one room.

    Attributes:
        entries: Entry count, delta sum and first/last entry times.
        focus_weeks_count: Number of weeks with a focus set.
    """

    entries: EntryStats
    focus_weeks_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "entryCount": self.entries.entry_count,
            "totalDelta": self.entries.total_delta,
            "firstEntry": self.entries.first_entry.isoformat() if self.entries.first_entry else None,
            "lastEntry": self.entries.last_entry.isoformat() if self.entries.last_entry else None,
            "focusWeeksCount": self.focus_weeks_count,
        }


@dataclass(slots=True)
class LeavePreview:
    """
    What a member would leave behind.

    Attributes:
        room_code: Room being left.
        member: The membership row.
        days_since_joined: Whole days since joining, rounded up.
        stats: Activity in the room.
        confirmation_message: Human-readable summary shown before confirming.
    """

    room_code: str
    member: MemberRecord
    days_since_joined: int
    stats: ActivityStats
    confirmation_message: str


def _clean_user_id(user_id: Any) -> str:
    value = str(user_id or "").strip()
    if not value:
        raise ValidationError("userId required", error_code="USER_ID_REQUIRED")
    return value


def require_member(room_code: str, user_id: str | None) -> MemberRecord:
    """Return the caller's membership or raise ``JOIN_REQUIRED``."""
    member = members_repo.get_member(room_code, (user_id or "").strip())
    if member is None:
        raise join_required()
    return member


def remove_member(room_code: str, user_id: str) -> bool:
    """Delete a membership unconditionally; returns True when a row was removed."""
    return members_repo.delete_member(room_code, user_id) > 0


def activity_stats(room_code: str, user_id: str) -> ActivityStats:
    return ActivityStats(
        entries=entries_repo.get_member_stats(room_code, user_id),
        focus_weeks_count=focus_repo.count_focus_weeks(room_code, user_id),
    )


def days_since(joined_at: datetime, now: datetime) -> int:
    """Whole days between two instants, rounded up."""
    elapsed = (now - joined_at).total_seconds()
    return max(0, math.ceil(elapsed / SECONDS_PER_DAY))


def build_leave_message(name: str, stats: ActivityStats, days: int) -> str:
    parts = [f"{name}, you've been part of this room for {days} days."]
    if stats.entries.entry_count > 0:
        parts.append(
            f"You've made {stats.entries.entry_count} entries with a total delta of "
            f"{stats.entries.total_delta}."
        )
    if stats.focus_weeks_count > 0:
        parts.append(f"You've set your focus for {stats.focus_weeks_count} weeks.")
    parts.append("Are you sure you want to leave? This action cannot be undone.")
    return " ".join(parts)


def leave_preview(room_code: Any, user_id: Any, *, now: datetime | None = None) -> LeavePreview:
    """Describe the caller's membership before they confirm leaving.

    Raises:
        NotFoundError: ``NOT_A_MEMBER``.
    """
    code = clean_room_code(room_code)
    uid = _clean_user_id(user_id)
    member = members_repo.get_member(code, uid)
    if member is None:
        raise not_a_member()

    stats = activity_stats(code, uid)
    days = days_since(member.created_at, now or utc_now())
    return LeavePreview(
        room_code=code,
        member=member,
        days_since_joined=days,
        stats=stats,
        confirmation_message=build_leave_message(member.name, stats, days),
    )


def leave(room_code: Any, user_id: Any, confirmed: Any) -> str:
    """Remove the caller from the room once they confirm.

    Only the literal ``True`` counts as confirmation.

    Returns:
        The normalized room code that was left.

    Raises:
        ValidationError: ``CONFIRMATION_REQUIRED``.
        NotFoundError: ``NOT_A_MEMBER``.
    """
    code = clean_room_code(room_code)
    uid = _clean_user_id(user_id)
    if confirmed is not True:
        raise ValidationError(
            "You must confirm leaving the room", error_code="CONFIRMATION_REQUIRED"
        )

    member = members_repo.get_member(code, uid)
    if member is None:
        raise not_a_member()

    stats = activity_stats(code, uid)
    remove_member(code, uid)
    logger.info("Member %s left room %s", uid, code)
    recorder.record(
        "user_left_room",
        {
            "roomCode": code,
            "userId": uid,
            "playerName": member.name,
            "memberSince": member.created_at.isoformat(),
            "finalStats": stats.to_dict(),
        },
        room_code=code,
        user_id=uid,
    )
    return code
