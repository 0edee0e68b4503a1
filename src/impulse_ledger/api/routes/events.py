"""Audit event endpoints."""

from fastapi import APIRouter, Query

from impulse_ledger.api.models import (
    EventCreatedResponse,
    EventsResponse,
    EventView,
    RecordEventRequest,
)
from impulse_ledger.ledger import recorder

router = APIRouter()


@router.get("/events", response_model=EventsResponse)
def list_events(
    room_code: str | None = Query(None, alias="roomCode"),
    event_type: str | None = Query(None, alias="type"),
    limit: str | None = Query(None),
):
    """Newest-first events filtered by room and/or type (limit 1-200, default 50).

    The listing is public, so member identifiers and entry labels are left out.
    """
    rows = recorder.list_events(
        room_code=room_code,
        event_type=event_type,
        limit=limit if limit is not None else recorder.DEFAULT_EVENT_LIMIT,
    )
    return EventsResponse(
        events=[
            EventView(
                id=row.id,
                type=row.type,
                room_code=row.room_code,
                data=recorder.public_payload(row.data),
                created_at=row.created_at,
            )
            for row in rows
        ],
        count=len(rows),
    )


@router.post("/events", response_model=EventCreatedResponse, status_code=201)
def record_event(request: RecordEventRequest):
    """Record an event by hand."""
    event_id = recorder.record_manual(
        request.type,
        request.data,
        room_code=request.room_code,
        user_id=request.user_id,
    )
    return EventCreatedResponse(id=event_id)
