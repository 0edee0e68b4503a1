"""Weekly focus repository operations for the SQLite backend."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime

from impulse_ledger.db.connection import connection_scope
from impulse_ledger.db.errors import raise_read_error, raise_write_error
from impulse_ledger.db.retry import execute_write
from impulse_ledger.db.timestamps import from_db, to_db
from impulse_ledger.db.types import FocusRecord


def _row_to_focus(row: sqlite3.Row) -> FocusRecord:
    return FocusRecord(
        room_code=row["room_code"],
        user_id=row["user_id"],
        player_name=row["player_name"],
        week_key=row["week_key"],
        areas=list(json.loads(row["areas"])),
        locked=bool(row["locked"]),
        created_at=from_db(row["created_at"]),  # type: ignore[arg-type]
    )


def get_focus(room_code: str, user_id: str, week_key: str) -> FocusRecord | None:
    """Return the member's focus for ``week_key`` or None."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                """
                SELECT room_code, user_id, player_name, week_key, areas, locked, created_at
                FROM weekly_focus
                WHERE room_code = ? AND user_id = ? AND week_key = ?
                """,
                (room_code, user_id, week_key),
            ).fetchone()
            return _row_to_focus(row) if row else None
    except Exception as exc:
        raise_read_error(
            "focus.get_focus",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}, week_key={week_key!r}",
        )


def insert_focus(
    room_code: str,
    user_id: str,
    player_name: str,
    week_key: str,
    areas: list[str],
    *,
    now: datetime,
) -> None:
    """Insert a locked focus row.

    A plain INSERT: a second write for the same week fails the UNIQUE index
    and surfaces as ``DatabaseWriteError`` with ``violates_unique("week_key")``.
    """
    try:
        execute_write(
            """
            INSERT INTO weekly_focus
                (room_code, user_id, player_name, week_key, areas, locked, created_at)
            VALUES (?, ?, ?, ?, ?, 1, ?)
            """,
            (room_code, user_id, player_name, week_key, json.dumps(areas), to_db(now)),
            operation="focus.insert_focus",
        )
    except Exception as exc:
        raise_write_error(
            "focus.insert_focus",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}, week_key={week_key!r}",
        )


def count_focus_weeks(room_code: str, user_id: str) -> int:
    """Return how many weeks the member has set a focus for in the room."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM weekly_focus WHERE room_code = ? AND user_id = ?",
                (room_code, user_id),
            ).fetchone()
            return int(row[0])
    except Exception as exc:
        raise_read_error("focus.count_focus_weeks", exc, details=f"room_code={room_code!r}")
