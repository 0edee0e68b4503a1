"""Weekly focus endpoints."""

from fastapi import APIRouter, Query

from impulse_ledger.api.models import FocusResponse, SetFocusRequest
from impulse_ledger.ledger import focus

router = APIRouter()


@router.post("/focus", response_model=FocusResponse, status_code=201)
def set_focus(request: SetFocusRequest):
    """Lock 2-3 focus areas for a week; a second write for the week is a 409."""
    record = focus.set_focus(request.room_code, request.user_id, request.week_key, request.areas)
    return FocusResponse(
        room_code=record.room_code,
        user_id=record.user_id,
        week_key=record.week_key,
        areas=record.areas,
        locked=record.locked,
    )


@router.get("/focus", response_model=FocusResponse)
def get_focus(
    room_code: str | None = Query(None, alias="roomCode"),
    user_id: str | None = Query(None, alias="userId"),
    week_key: str | None = Query(None, alias="weekKey"),
):
    """Return the week's focus, or no areas and ``locked: false`` when unset."""
    areas, locked = focus.get_focus(room_code, user_id, week_key)
    return FocusResponse(
        room_code=(room_code or "").strip().upper(),
        user_id=(user_id or "").strip(),
        week_key=(week_key or "").strip(),
        areas=areas,
        locked=locked,
    )
