"""Room Admission Gate.

Decides who may enter a room and owns the room's lifecycle:

    nonexistent -> public          first admit() creates the room
    public <-> invite-only         creator-only toggle via update_settings()

A room's invite code is generated once, when the room is created, and held in
reserve. Toggling invite-only on and off never replaces it, so links shared
earlier keep working.

``admit`` without a display name is a peek: it creates the room if needed and
returns it, with no membership rules applied. With a display name it joins
(or re-joins) the caller, enforcing in order: invite code, capacity and
display-name ownership.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from impulse_ledger.db import members_repo, rooms_repo
from impulse_ledger.db.constants import (
    ANONYMOUS_CREATOR,
    INVITE_CODE_LENGTH,
    MAX_MAX_MEMBERS,
    MIN_MAX_MEMBERS,
    ROOM_CODE_MAX_LENGTH,
    ROOM_CODE_MIN_LENGTH,
)
from impulse_ledger.db.errors import DatabaseWriteError
from impulse_ledger.db.timestamps import utc_now
from impulse_ledger.db.types import MemberRecord, RoomRecord
from impulse_ledger.ledger import recorder
from impulse_ledger.ledger.errors import (
    AuthorizationError,
    ConflictError,
    ValidationError,
    room_not_found,
)

logger = logging.getLogger(__name__)

RESERVED_ROOM_CODES = frozenset({"ADMIN", "API", "TEST", "DEBUG", "NULL", "UNDEFINED", "ERROR"})
CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(slots=True)
class RoomManageInfo:
    """
    Creator-only view of a room.

    Attributes:
        room: Current room settings, invite code included.
        members: Roster ordered by join time.
    """

    room: RoomRecord
    members: list[MemberRecord]

    @property
    def member_count(self) -> int:
        return len(self.members)


# ============================================================================
# ROOM CODES
# ============================================================================


def clean_room_code(raw: Any) -> str:
    """Trim and uppercase a room code; empty input is rejected."""
    code = str(raw or "").strip().upper()
    if not code:
        raise ValidationError("roomCode required", error_code="ROOM_CODE_REQUIRED")
    return code


def normalize_room_code(raw: Any) -> str:
    """Return the canonical room code or raise a ValidationError naming the rule broken."""
    code = clean_room_code(raw)
    if len(code) < ROOM_CODE_MIN_LENGTH:
        raise ValidationError(
            f"Room code must be at least {ROOM_CODE_MIN_LENGTH} characters",
            error_code="ROOM_CODE_TOO_SHORT",
        )
    if len(code) > ROOM_CODE_MAX_LENGTH:
        raise ValidationError(
            f"Room code must be at most {ROOM_CODE_MAX_LENGTH} characters",
            error_code="ROOM_CODE_TOO_LONG",
        )
    if code in RESERVED_ROOM_CODES:
        raise ValidationError(
            f"Room code {code} is reserved", error_code="ROOM_CODE_RESERVED"
        )
    if not all(ch in CODE_ALPHABET for ch in code):
        raise ValidationError(
            "Room code may only contain letters and digits", error_code="ROOM_CODE_INVALID"
        )
    return code


def is_valid_room_code(code: str) -> bool:
    """True when ``code`` is already canonical and acceptable as a room code."""
    try:
        return normalize_room_code(code) == code
    except ValidationError:
        return False


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Return a random uppercase alphanumeric token."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


# ============================================================================
# ADMISSION
# ============================================================================


def admit(
    room_code: Any,
    display_name: str | None = None,
    user_id: str | None = None,
    invite_code: str | None = None,
    *,
    now: datetime | None = None,
) -> RoomRecord:
    """Ensure the room exists and, when a display name is given, join it.

    Raises:
        ValidationError: Bad room code, or a display name without ``user_id``.
        AuthorizationError: ``ROOM_INVITE_ONLY`` or ``ROOM_FULL``.
        ConflictError: ``DUPLICATE_NAME`` when another member owns the name.
    """
    code = normalize_room_code(room_code)
    user_id = (user_id or "").strip() or None
    now = now or utc_now()

    created = rooms_repo.create_room_if_absent(
        code,
        created_by=user_id or ANONYMOUS_CREATOR,
        invite_code=generate_invite_code(),
        now=now,
    )
    room = rooms_repo.get_room(code)
    if room is None:
        raise room_not_found(code)
    if created:
        logger.info("Room %s created by %s", code, room.created_by)
    recorder.record(
        "room_accessed",
        {"roomCode": code, "created": created},
        room_code=code,
        user_id=user_id,
    )

    name = (display_name or "").strip()
    if not name:
        return room

    if user_id is None:
        raise ValidationError("userId required to join a room", error_code="USER_ID_REQUIRED")

    if room.invite_only and not is_creator(room, user_id):
        supplied = (invite_code or "").strip().upper()
        if not supplied or room.invite_code is None or supplied != room.invite_code:
            raise AuthorizationError(
                "This room is invite-only; a valid invite code is required",
                error_code="ROOM_INVITE_ONLY",
            )

    if members_repo.count_members(code) >= room.max_members:
        raise AuthorizationError(
            f"Room {code} is full ({room.max_members} members)", error_code="ROOM_FULL"
        )

    _ensure_name_available(code, name, user_id)

    was_member = members_repo.get_member(code, user_id) is not None
    try:
        members_repo.upsert_member(code, user_id, name, now=now)
    except DatabaseWriteError as exc:
        if exc.violates_unique("name_norm"):
            raise _duplicate_name(name) from exc
        raise

    recorder.record(
        "user_joined_room",
        {"roomCode": code, "userId": user_id, "playerName": name, "isNewMember": not was_member},
        room_code=code,
        user_id=user_id,
    )
    return room


def _duplicate_name(name: str) -> ConflictError:
    return ConflictError(
        f"The name {name!r} is already taken in this room", error_code="DUPLICATE_NAME"
    )


def _ensure_name_available(room_code: str, name: str, user_id: str) -> None:
    owner = members_repo.find_member_by_name(room_code, members_repo.normalize_name(name))
    if owner is not None and owner.user_id != user_id:
        raise _duplicate_name(name)


def check_name_available(room_code: Any, display_name: str, user_id: str) -> None:
    """Raise ``DUPLICATE_NAME`` when another member already owns ``display_name``."""
    code = clean_room_code(room_code)
    name = (display_name or "").strip()
    if name and user_id:
        _ensure_name_available(code, name, user_id.strip())


def get_room(room_code: Any) -> RoomRecord:
    """Return an existing room or raise ``ROOM_NOT_FOUND``."""
    code = clean_room_code(room_code)
    room = rooms_repo.get_room(code)
    if room is None:
        raise room_not_found(code)
    return room


# ============================================================================
# CREATOR-ONLY SETTINGS
# ============================================================================


def is_creator(room: RoomRecord, user_id: str | None) -> bool:
    """True when ``user_id`` created ``room``.

    Rooms first created by an anonymous peek have no creator: the placeholder
    recorded for them never matches a caller.
    """
    user_id = (user_id or "").strip()
    if not user_id or room.created_by == ANONYMOUS_CREATOR:
        return False
    return room.created_by == user_id


def _require_creator(room_code: Any, user_id: str | None) -> RoomRecord:
    if not (user_id or "").strip():
        raise ValidationError("userId required", error_code="USER_ID_REQUIRED")
    room = get_room(room_code)
    if not is_creator(room, user_id):
        raise AuthorizationError(
            "Only the room creator can manage room settings", error_code="NOT_CREATOR"
        )
    return room


def _valid_max_members(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_MAX_MEMBERS <= value <= MAX_MAX_MEMBERS
    )


def update_settings(
    room_code: Any,
    user_id: str | None,
    *,
    is_locked: Any = None,
    invite_only: Any = None,
    max_members: Any = None,
) -> RoomRecord:
    """Apply the valid subset of the requested settings.

    Booleans are required for ``is_locked``/``invite_only`` and an integer in
    1..200 for ``max_members``; anything else is ignored. When nothing valid
    remains the request is rejected.

    Raises:
        AuthorizationError: ``NOT_CREATOR``.
        NotFoundError: ``ROOM_NOT_FOUND``.
        ValidationError: ``NO_VALID_SETTINGS``.
    """
    room = _require_creator(room_code, user_id)

    changes: dict[str, Any] = {}
    if isinstance(is_locked, bool):
        changes["is_locked"] = is_locked
    if isinstance(invite_only, bool):
        changes["invite_only"] = invite_only
    if _valid_max_members(max_members):
        changes["max_members"] = max_members
    if not changes:
        raise ValidationError("No valid settings provided", error_code="NO_VALID_SETTINGS")

    invite_code = None
    if changes.get("invite_only") and not room.invite_code:
        # Rooms created before invite codes existed get one exactly once.
        invite_code = generate_invite_code()

    rooms_repo.update_room_settings(room.code, invite_code=invite_code, **changes)
    recorder.record(
        "room_settings_changed",
        {"roomCode": room.code, "userId": room.created_by, "changes": changes},
        room_code=room.code,
        user_id=room.created_by,
    )
    return get_room(room.code)


def manage_info(room_code: Any, user_id: str | None) -> RoomManageInfo:
    """Return settings, invite code and roster for the room's creator."""
    room = _require_creator(room_code, user_id)
    return RoomManageInfo(room=room, members=members_repo.list_members(room.code))
