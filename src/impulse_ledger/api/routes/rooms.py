"""Room endpoints: admission, creator settings, leaving and code suggestions."""

from fastapi import APIRouter, Query

from impulse_ledger.api.models import (
    ActivityStatsView,
    AvailabilityResponse,
    AvailabilityView,
    CheckRoomCodesRequest,
    JoinRoomRequest,
    LeavePreviewResponse,
    LeaveResponse,
    LeaveRoomRequest,
    MemberInfoView,
    MemberView,
    RoomManageResponse,
    RoomResponse,
    RoomSettingsRequest,
    RoomSettingsView,
    RoomView,
    SuggestionsResponse,
)
from impulse_ledger.db.types import RoomRecord
from impulse_ledger.ledger import admission, membership, suggestions

router = APIRouter()


def room_view(room: RoomRecord, user_id: str | None = None) -> RoomView:
    return RoomView(
        code=room.code,
        created_at=room.created_at,
        is_creator=admission.is_creator(room, user_id),
        is_locked=room.is_locked,
        invite_only=room.invite_only,
        max_members=room.max_members,
    )


def room_settings_view(room: RoomRecord) -> RoomSettingsView:
    return RoomSettingsView(
        **room_view(room, room.created_by).model_dump(), invite_code=room.invite_code
    )


# ============================================================================
# ADMISSION
# ============================================================================


@router.post("/room", response_model=RoomResponse)
def join_room(request: JoinRoomRequest):
    """Create the room if needed and, when ``displayName`` is given, join it."""
    room = admission.admit(
        request.room_code,
        display_name=request.display_name,
        user_id=request.user_id,
        invite_code=request.invite_code,
    )
    return RoomResponse(room=room_view(room, request.user_id))


@router.get("/room", response_model=RoomResponse)
def get_room(
    room_code: str | None = Query(None, alias="roomCode"),
    display_name: str | None = Query(None, alias="displayName"),
    user_id: str | None = Query(None, alias="userId"),
):
    """Return public room fields; optionally pre-check a display name."""
    room = admission.get_room(room_code)
    if display_name and user_id:
        admission.check_name_available(room.code, display_name, user_id)
    return RoomResponse(room=room_view(room, user_id))


# ============================================================================
# CREATOR SETTINGS
# ============================================================================


@router.post("/room-manage", response_model=RoomResponse)
def update_room_settings(request: RoomSettingsRequest):
    """Creator-only update of lock, invite-only and capacity settings."""
    room = admission.update_settings(
        request.room_code,
        request.user_id,
        is_locked=request.is_locked,
        invite_only=request.invite_only,
        max_members=request.max_members,
    )
    return RoomResponse(room=room_view(room, request.user_id))


@router.get("/room-manage", response_model=RoomManageResponse)
def get_room_management(
    room_code: str | None = Query(None, alias="roomCode"),
    user_id: str | None = Query(None, alias="userId"),
):
    """Creator-only settings, invite code and member roster."""
    info = admission.manage_info(room_code, user_id)
    return RoomManageResponse(
        room=room_settings_view(info.room),
        members=[
            MemberView(
                name=member.name,
                joined_at=member.created_at,
                last_seen=member.last_seen_at,
            )
            for member in info.members
        ],
        member_count=info.member_count,
    )


# ============================================================================
# LEAVING
# ============================================================================


@router.get("/room-leave", response_model=LeavePreviewResponse)
def preview_leave(
    room_code: str | None = Query(None, alias="roomCode"),
    user_id: str | None = Query(None, alias="userId"),
):
    """Show what leaving would walk away from."""
    preview = membership.leave_preview(room_code, user_id)
    entries = preview.stats.entries
    return LeavePreviewResponse(
        room_code=preview.room_code,
        user_id=preview.member.user_id,
        member_info=MemberInfoView(
            name=preview.member.name,
            joined_date=preview.member.created_at,
            last_seen=preview.member.last_seen_at,
            days_since_joined=preview.days_since_joined,
        ),
        activity_stats=ActivityStatsView(
            entry_count=entries.entry_count,
            total_delta=entries.total_delta,
            first_entry=entries.first_entry,
            last_entry=entries.last_entry,
            focus_weeks_count=preview.stats.focus_weeks_count,
        ),
        confirmation_message=preview.confirmation_message,
    )


@router.post("/room-leave", response_model=LeaveResponse)
def leave_room(request: LeaveRoomRequest):
    """Leave the room; requires ``confirmed: true``."""
    code = membership.leave(request.room_code, request.user_id, request.confirmed)
    return LeaveResponse(
        message=f"Successfully left room {code}",
        room_code=code,
        user_id=(request.user_id or "").strip(),
    )


# ============================================================================
# SUGGESTIONS
# ============================================================================


@router.get("/room-suggestions", response_model=SuggestionsResponse)
def suggest_room_codes(
    base_name: str = Query("", alias="baseName"),
    count: str | None = Query(None),
):
    """Suggest up to ``count`` (max 10) unused room codes."""
    codes = suggestions.suggest(
        base_name, count if count is not None else suggestions.DEFAULT_SUGGESTION_COUNT
    )
    return SuggestionsResponse(suggestions=codes, base_name=base_name, count=len(codes))


@router.post("/room-suggestions", response_model=AvailabilityResponse)
def check_room_codes(request: CheckRoomCodesRequest):
    """Report availability for up to 20 caller-supplied codes."""
    results = suggestions.check_availability(request.room_codes)
    return AvailabilityResponse(
        results=[AvailabilityView(code=item.code, available=item.available) for item in results]
    )
