"""Shared DB-layer dataclasses for repository contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class RoomRecord:
    """
    One row of the ``rooms`` table.

    Attributes:
        code: Normalized room code (uppercase alphanumeric, 3-12 chars).
        created_at: Creation time (UTC).
        created_by: Member identifier of the creator, or ``"anonymous"`` for a
            room first created by a peek (such a room has no creator).
        is_locked: Stored and reported only; carries no admission rule.
        invite_only: When True, non-creators need the invite code to join.
        invite_code: Reserved 8-char token; ``None`` only for legacy rows.
        max_members: Capacity, 1-200.
    """

    code: str
    created_at: datetime
    created_by: str
    is_locked: bool
    invite_only: bool
    invite_code: str | None
    max_members: int


@dataclass(slots=True)
class MemberRecord:
    """
    One row of the ``members`` table.

    Attributes:
        room_code: Room the membership belongs to.
        user_id: Caller-supplied opaque member identifier.
        name: Display name as last supplied.
        name_norm: Trimmed, casefolded name used for uniqueness.
        created_at: First join time.
        last_seen_at: Last write activity.
    """

    room_code: str
    user_id: str
    name: str
    name_norm: str
    created_at: datetime
    last_seen_at: datetime


@dataclass(slots=True)
class EntryRecord:
    """
    One ledger entry.

    Attributes:
        id: Store-assigned identifier (monotonic within the store).
        room_code: Owning room.
        user_id: Member who wrote the entry.
        player_name: Display-name snapshot taken at write time.
        delta: Signed integer, normally +1 or -1.
        label: Optional free-text label.
        created_at: Server-assigned write time (UTC).
    """

    id: int
    room_code: str
    user_id: str
    player_name: str
    delta: int
    label: str | None
    created_at: datetime


@dataclass(slots=True)
class EntryStats:
    """
    Aggregate of a member's entries in one room.

    Attributes:
        entry_count: Number of entries.
        total_delta: Sum of deltas.
        first_entry: Oldest entry time, if any.
        last_entry: Newest entry time, if any.
    """

    entry_count: int
    total_delta: int
    first_entry: datetime | None
    last_entry: datetime | None


@dataclass(slots=True)
class FocusRecord:
    """
    A member's locked focus areas for one week.

    Attributes:
        room_code: Owning room.
        user_id: Member identifier.
        player_name: Display-name snapshot taken at write time.
        week_key: ``YYYY-MM-DD`` date of the week's Monday.
        areas: Two or three cleaned labels in submission order.
        locked: Always True once written.
        created_at: Write time (UTC).
    """

    room_code: str
    user_id: str
    player_name: str
    week_key: str
    areas: list[str]
    locked: bool
    created_at: datetime


@dataclass(slots=True)
class EventRecord:
    """
    One audit event.

    Attributes:
        id: Random hex identifier.
        type: Event type (``entry_created``, ``user_joined_room``...).
        room_code: Room the event concerns, when known.
        user_id: Member the event concerns, when known.
        data: Free-form JSON payload.
        created_at: Write time (UTC).
    """

    id: str
    type: str
    room_code: str | None
    user_id: str | None
    created_at: datetime
    data: dict[str, Any] = field(default_factory=dict)
