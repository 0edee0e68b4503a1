"""Weekly Aggregator.

Recomputes a room's weekly standings from the raw entry log on every call.
Nothing here is cached or persisted, so two calls with no intervening writes
return identical results.

Week window
-----------
A week runs from Monday 00:01 local time in the reference zone (see
``[ledger] timezone``) to the following Monday 00:01, end exclusive. An
instant between Monday 00:00 and 00:01 still belongs to the previous week.
The week key is the local date of the window's Monday. Because the bounds are
computed in local time, a week spanning a DST change is 167 or 169 hours
long.

Fold rules
----------
Entries are folded per member in chronological order:

====================  =======  ========  =====  ============
delta                 balance  deposits  total  streak
====================  =======  ========  =====  ============
``+1``                +1       +1        +1     +1
``-1``                -1                 +1     reset to 0
anything else                            +1     reset to 0
====================  =======  ========  =====  ============

``longest_streak`` is the maximum streak seen while folding. The leaderboard
sorts descending by balance, then deposit rate, then longest streak.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from impulse_ledger.db import entries_repo
from impulse_ledger.db.timestamps import utc_now
from impulse_ledger.db.types import EntryRecord
from impulse_ledger.ledger.admission import clean_room_code
from impulse_ledger.ledger.membership import require_member

WEEK_START_TIME = time(0, 1)
WIN_THRESHOLD = 20
LOSS_THRESHOLD = -20

MILESTONE_WIN = "win"
MILESTONE_LOSS = "loss"
MILESTONE_NONE = "none"


@dataclass(frozen=True, slots=True)
class WeekWindow:
    """
    One aggregation week.

    Attributes:
        week_key: ISO date of the window's local Monday.
        start: Inclusive start (UTC).
        end: Exclusive end (UTC).
    """

    week_key: str
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


@dataclass(slots=True)
class MemberAggregate:
    """
    Running weekly figures for one member.

    Attributes:
        user_id: Member identifier.
        name: Display-name snapshot from the member's latest entry this week.
        balance: Deposits minus withdrawals.
        deposits: Count of ``+1`` entries.
        total: Count of all entries.
        streak: Current run of consecutive deposits.
        longest_streak: Longest run seen this week.
    """

    user_id: str
    name: str
    balance: int = 0
    deposits: int = 0
    total: int = 0
    streak: int = 0
    longest_streak: int = 0

    @property
    def deposit_rate(self) -> float:
        return self.deposits / self.total if self.total else 0.0

    def apply(self, delta: int) -> None:
        self.total += 1
        if delta == 1:
            self.balance += 1
            self.deposits += 1
            self.streak += 1
            self.longest_streak = max(self.longest_streak, self.streak)
        elif delta == -1:
            self.balance -= 1
            self.streak = 0
        else:
            # TODO(product): confirm whether non-unit deltas should move the balance.
            self.streak = 0


@dataclass(slots=True)
class WeeklyState:
    """
    A room's standings for one week.

    Attributes:
        room_code: Room the standings belong to.
        window: The week the state covers.
        per_member: Aggregates keyed by member identifier.
        leaderboard: Aggregates in ranking order.
        me: The requesting member's aggregate (zeros when they have no entries).
        milestone: ``win``, ``loss`` or ``none`` for the requesting member.
    """

    room_code: str
    window: WeekWindow
    per_member: dict[str, MemberAggregate]
    leaderboard: list[MemberAggregate]
    me: MemberAggregate
    milestone: str


def week_window(now: datetime, tz: ZoneInfo | str) -> WeekWindow:
    """Return the week containing ``now`` in reference zone ``tz``."""
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    local = now.astimezone(zone)
    monday = local.date() - timedelta(days=local.weekday())
    start_local = datetime.combine(monday, WEEK_START_TIME, tzinfo=zone)
    if local < start_local:
        monday -= timedelta(days=7)
        start_local = datetime.combine(monday, WEEK_START_TIME, tzinfo=zone)
    end_local = datetime.combine(monday + timedelta(days=7), WEEK_START_TIME, tzinfo=zone)
    return WeekWindow(
        week_key=monday.isoformat(),
        start=start_local.astimezone(UTC),
        end=end_local.astimezone(UTC),
    )


def fold_entries(entries: Iterable[EntryRecord]) -> dict[str, MemberAggregate]:
    """Fold chronologically ordered entries into per-member aggregates."""
    aggregates: dict[str, MemberAggregate] = {}
    for entry in entries:
        aggregate = aggregates.get(entry.user_id)
        if aggregate is None:
            aggregate = MemberAggregate(user_id=entry.user_id, name=entry.player_name)
            aggregates[entry.user_id] = aggregate
        aggregate.name = entry.player_name
        aggregate.apply(entry.delta)
    return aggregates


def rank(aggregates: Iterable[MemberAggregate]) -> list[MemberAggregate]:
    """Sort descending by balance, deposit rate, then longest streak."""
    return sorted(
        aggregates,
        key=lambda agg: (agg.balance, agg.deposit_rate, agg.longest_streak),
        reverse=True,
    )


def milestone(balance: int) -> str:
    if balance >= WIN_THRESHOLD:
        return MILESTONE_WIN
    if balance <= LOSS_THRESHOLD:
        return MILESTONE_LOSS
    return MILESTONE_NONE


def summarize(
    entries: Iterable[EntryRecord],
    window: WeekWindow,
    *,
    room_code: str,
    user_id: str,
    user_name: str,
) -> WeeklyState:
    """Build weekly standings from entries already limited to ``window``."""
    per_member = fold_entries(entries)
    me = per_member.get(user_id) or MemberAggregate(user_id=user_id, name=user_name)
    return WeeklyState(
        room_code=room_code,
        window=window,
        per_member=per_member,
        leaderboard=rank(per_member.values()),
        me=me,
        milestone=milestone(me.balance),
    )


def compute_state(
    room_code: Any,
    user_id: Any,
    *,
    now: datetime | None = None,
    tz: ZoneInfo | str | None = None,
) -> WeeklyState:
    """Load the current week's entries for a room and summarize them.

    Raises:
        AuthorizationError: ``JOIN_REQUIRED`` when the caller is not a member.
    """
    if tz is None:
        from impulse_ledger.config import config

        tz = config.ledger.timezone
    code = clean_room_code(room_code)
    member = require_member(code, str(user_id or "").strip())
    window = week_window(now or utc_now(), tz)
    entries = entries_repo.list_entries(code, since=window.start, until=window.end)
    return summarize(
        entries, window, room_code=code, user_id=member.user_id, user_name=member.name
    )
