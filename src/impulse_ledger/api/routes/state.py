"""Ledger endpoints: post, undo, room log, weekly standings and history."""

from collections.abc import Iterable

from fastapi import APIRouter, Query

from impulse_ledger.api.models import (
    EntryCreatedResponse,
    EntryView,
    HistoryResponse,
    MemberStandingView,
    PostEntryRequest,
    RoomLogEntryView,
    RoomLogResponse,
    UndoResponse,
    WeeklyStateResponse,
)
from impulse_ledger.db.types import EntryRecord
from impulse_ledger.ledger import aggregator, entries
from impulse_ledger.ledger.aggregator import MemberAggregate
from impulse_ledger.ledger.errors import ValidationError

router = APIRouter()


def entry_view(entry: EntryRecord) -> EntryView:
    return EntryView(
        id=entry.id, delta=entry.delta, label=entry.label, created_at=entry.created_at
    )


def standing_view(aggregate: MemberAggregate, caller_id: str) -> MemberStandingView:
    return MemberStandingView(
        name=aggregate.name,
        balance=aggregate.balance,
        deposits=aggregate.deposits,
        total=aggregate.total,
        deposit_rate=aggregate.deposit_rate,
        streak=aggregate.streak,
        longest_streak=aggregate.longest_streak,
        is_me=aggregate.user_id == caller_id,
    )


def standings_by_name(
    aggregates: Iterable[MemberAggregate], caller_id: str
) -> dict[str, MemberStandingView]:
    """Key standings by name snapshot; a repeated snapshot gets a ``#n`` suffix."""
    keyed: dict[str, MemberStandingView] = {}
    for aggregate in aggregates:
        key = aggregate.name
        suffix = 2
        while key in keyed:
            key = f"{aggregate.name}#{suffix}"
            suffix += 1
        keyed[key] = standing_view(aggregate, caller_id)
    return keyed


@router.post("/state", response_model=EntryCreatedResponse)
def post_entry(request: PostEntryRequest):
    """Append an entry for a member of the room."""
    if not request.room_code or request.entry is None or request.entry.delta is None:
        raise ValidationError("roomCode and entry{delta} required", error_code="ENTRY_REQUIRED")
    entry_id = entries.append(
        request.room_code,
        request.entry.user_id,
        request.entry.delta,
        request.entry.label,
    )
    return EntryCreatedResponse(id=entry_id)


@router.get("/state", response_model=RoomLogResponse)
def get_room_log(room_code: str | None = Query(None, alias="roomCode")):
    """Every entry in the room with the plain sum of deltas."""
    log = entries.room_log(room_code)
    return RoomLogResponse(
        room_code=log.room_code,
        balance=log.balance,
        history=[
            RoomLogEntryView(
                player=row.player_name,
                delta=row.delta,
                label=row.label,
                created_at=row.created_at,
            )
            for row in log.entries
        ],
    )


@router.delete("/state", response_model=UndoResponse)
def undo_last_entry(
    room_code: str | None = Query(None, alias="roomCode"),
    user_id: str | None = Query(None, alias="userId"),
):
    """Undo the caller's most recent entry within fifteen minutes."""
    removed = entries.undo_last(room_code, user_id)
    return UndoResponse(undone=entry_view(removed))


@router.get("/state/weekly", response_model=WeeklyStateResponse)
def get_weekly_state(
    room_code: str | None = Query(None, alias="roomCode"),
    user_id: str | None = Query(None, alias="userId"),
):
    """Weekly standings, leaderboard and the caller's milestone."""
    state = aggregator.compute_state(room_code, user_id)
    caller = state.me.user_id
    return WeeklyStateResponse(
        room_code=state.room_code,
        week_key=state.window.week_key,
        window_start=state.window.start,
        window_end=state.window.end,
        milestone=state.milestone,
        me=standing_view(state.me, caller),
        per_member=standings_by_name(state.per_member.values(), caller),
        leaderboard=[standing_view(agg, caller) for agg in state.leaderboard],
    )


@router.get("/history", response_model=HistoryResponse)
def get_history(
    room_code: str | None = Query(None, alias="roomCode"),
    user_id: str | None = Query(None, alias="userId"),
    months: str | None = Query(None),
):
    """The caller's own entries over the last 1-24 months (default 12)."""
    lookback = entries.clamp_months(months)
    rows = entries.history(room_code, user_id, lookback)
    return HistoryResponse(
        room_code=(room_code or "").strip().upper(),
        user_id=(user_id or "").strip(),
        months=lookback,
        entries=[entry_view(row) for row in rows],
    )
