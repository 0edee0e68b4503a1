"""
Pydantic models for API requests and responses.

The wire format is camelCase JSON (``roomCode``, ``userId``...). Models use
snake_case attributes with a camelCase alias generator, so handlers read
``request.room_code`` while clients send ``roomCode``. Responses are
serialized by alias.

Several request fields are typed ``Any`` on purpose: the ledger services
decide what counts as valid (for example only a literal ``true`` confirms a
leave, and a non-boolean ``inviteOnly`` is ignored rather than coerced).

Models are organized into two categories:
1. Request models: data sent FROM the client TO the server
2. Response models: data sent FROM the server TO the client
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class JoinRoomRequest(ApiModel):
    """
    Create a room, or join it when a display name is supplied.

    Attributes:
        room_code: Room code; normalized to uppercase.
        display_name: Name to join under; omit to only create/peek.
        user_id: Caller's opaque member identifier; required to join.
        invite_code: Required when the room is invite-only and the caller
            is not its creator.
    """

    room_code: str | None = None
    display_name: str | None = None
    user_id: str | None = None
    invite_code: str | None = None


class RoomSettingsRequest(ApiModel):
    """
    Creator-only settings change. Fields left out are unchanged.

    Attributes:
        room_code: Room to update.
        user_id: Must be the room's creator.
        is_locked: Boolean lock flag (stored and reported only).
        invite_only: Boolean; the existing invite code is reused.
        max_members: Integer capacity between 1 and 200.
    """

    room_code: str | None = None
    user_id: str | None = None
    is_locked: Any = None
    invite_only: Any = None
    max_members: Any = None


class LeaveRoomRequest(ApiModel):
    """
    Leave a room.

    Attributes:
        room_code: Room to leave.
        user_id: Leaving member.
        confirmed: Must be literally ``true``.
    """

    room_code: str | None = None
    user_id: str | None = None
    confirmed: Any = None


class EntryPayload(ApiModel):
    """
    One ledger entry as posted by a client.

    Attributes:
        delta: Signed integer, +1 deposit or -1 withdrawal in the normal flow.
        label: Optional free-text label.
        user_id: Member writing the entry.
    """

    delta: Any = None
    label: str | None = None
    user_id: str | None = None


class PostEntryRequest(ApiModel):
    """Append an entry to a room's ledger."""

    room_code: str | None = None
    entry: EntryPayload | None = None


class SetFocusRequest(ApiModel):
    """
    Lock a member's focus areas for a week.

    Attributes:
        room_code: Room the focus belongs to.
        user_id: Member setting the focus.
        week_key: ``YYYY-MM-DD`` Monday of the week.
        areas: Two or three labels; blanks and duplicates are dropped.
    """

    room_code: str | None = None
    user_id: str | None = None
    week_key: Any = None
    areas: Any = None


class CheckRoomCodesRequest(ApiModel):
    """Room codes to check for availability (1 to 20)."""

    room_codes: Any = None


class RecordEventRequest(ApiModel):
    """
    Manually recorded audit event.

    Attributes:
        type: Event type name.
        data: JSON object payload.
        room_code: Optional room the event concerns.
        user_id: Optional member the event concerns.
    """

    type: Any = None
    data: Any = None
    room_code: str | None = None
    user_id: str | None = None


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class RoomView(ApiModel):
    """
    Public room fields.

    Neither the creator's identifier nor the invite code is published;
    ``is_creator`` tells the caller whether the ``userId`` they sent owns the
    room.
    """

    code: str
    created_at: datetime
    is_creator: bool = False
    is_locked: bool
    invite_only: bool
    max_members: int


class RoomResponse(ApiModel):
    ok: bool = True
    room: RoomView


class RoomSettingsView(RoomView):
    """Room fields as seen by its creator."""

    invite_code: str | None = None


class MemberView(ApiModel):
    """Roster row; member identifiers stay private to their owners."""

    name: str
    joined_at: datetime
    last_seen: datetime


class RoomManageResponse(ApiModel):
    """
    Creator view of a room.

    Attributes:
        room: Settings including the invite code.
        members: Roster ordered by join time.
        member_count: Number of members.
        is_creator: Always true; non-creators receive 403.
    """

    ok: bool = True
    room: RoomSettingsView
    members: list[MemberView]
    member_count: int
    is_creator: bool = True


class MemberInfoView(ApiModel):
    name: str
    joined_date: datetime
    last_seen: datetime
    days_since_joined: int


class ActivityStatsView(ApiModel):
    entry_count: int
    total_delta: int
    first_entry: datetime | None = None
    last_entry: datetime | None = None
    focus_weeks_count: int


class LeavePreviewResponse(ApiModel):
    ok: bool = True
    room_code: str
    user_id: str
    member_info: MemberInfoView
    activity_stats: ActivityStatsView
    confirmation_message: str


class LeaveResponse(ApiModel):
    ok: bool = True
    message: str
    room_code: str
    user_id: str


class EntryCreatedResponse(ApiModel):
    ok: bool = True
    id: int


class RoomLogEntryView(ApiModel):
    """One row of the room log; ``player`` is the name snapshot."""

    player: str
    delta: int
    label: str | None = None
    created_at: datetime


class RoomLogResponse(ApiModel):
    ok: bool = True
    room_code: str
    balance: int
    history: list[RoomLogEntryView]


class EntryView(ApiModel):
    id: int
    delta: int
    label: str | None = None
    created_at: datetime


class UndoResponse(ApiModel):
    ok: bool = True
    undone: EntryView


class HistoryResponse(ApiModel):
    ok: bool = True
    room_code: str
    user_id: str
    months: int
    entries: list[EntryView]


class MemberStandingView(ApiModel):
    """
    One member's weekly figures.

    Attributes:
        deposit_rate: deposits / total, 0 when there are no entries.
        longest_streak: Longest run of consecutive +1 entries this week.
        is_me: True on the caller's own row.
    """

    name: str
    balance: int
    deposits: int
    total: int
    deposit_rate: float
    streak: int
    longest_streak: int
    is_me: bool = False


class WeeklyStateResponse(ApiModel):
    """
    Weekly standings for a room.

    Attributes:
        week_key: Monday of the week (``YYYY-MM-DD``).
        window_start: Inclusive start of the week (UTC).
        window_end: Exclusive end of the week (UTC).
        milestone: ``win``, ``loss`` or ``none`` for the caller.
        me: The caller's standing.
        per_member: Standings keyed by display-name snapshot.
        leaderboard: Standings in ranking order.
    """

    ok: bool = True
    room_code: str
    week_key: str
    window_start: datetime
    window_end: datetime
    milestone: str
    me: MemberStandingView
    per_member: dict[str, MemberStandingView]
    leaderboard: list[MemberStandingView]


class FocusResponse(ApiModel):
    room_code: str
    user_id: str
    week_key: str
    areas: list[str]
    locked: bool


class SuggestionsResponse(ApiModel):
    ok: bool = True
    suggestions: list[str]
    base_name: str
    count: int


class AvailabilityView(ApiModel):
    code: str
    available: bool


class AvailabilityResponse(ApiModel):
    ok: bool = True
    results: list[AvailabilityView]


class EventView(ApiModel):
    """Audit event with member identifiers and entry labels removed."""

    id: str
    type: str
    room_code: str | None = None
    data: dict[str, Any]
    created_at: datetime


class EventsResponse(ApiModel):
    ok: bool = True
    events: list[EventView]
    count: int


class EventCreatedResponse(ApiModel):
    ok: bool = True
    id: str


class HealthResponse(ApiModel):
    ok: bool
    db: str
