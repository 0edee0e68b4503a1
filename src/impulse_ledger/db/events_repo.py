"""Audit event repository operations for the SQLite backend."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any

from impulse_ledger.db.connection import connection_scope
from impulse_ledger.db.errors import raise_read_error, raise_write_error
from impulse_ledger.db.query import Predicates
from impulse_ledger.db.retry import execute_write
from impulse_ledger.db.timestamps import from_db, to_db
from impulse_ledger.db.types import EventRecord


def _row_to_event(row: sqlite3.Row) -> EventRecord:
    try:
        data = json.loads(row["data"]) if row["data"] else {}
    except json.JSONDecodeError:
        data = {"raw": row["data"]}
    return EventRecord(
        id=row["id"],
        type=row["type"],
        room_code=row["room_code"],
        user_id=row["user_id"],
        created_at=from_db(row["created_at"]),  # type: ignore[arg-type]
        data=data if isinstance(data, dict) else {"value": data},
    )


def insert_event(
    event_id: str,
    event_type: str,
    data: dict[str, Any],
    *,
    room_code: str | None,
    user_id: str | None,
    now: datetime,
    max_attempts: int | None = None,
) -> None:
    """Insert one event row. ``data`` must be JSON-serializable.

    ``max_attempts`` is passed to the retry executor; the best-effort recorder
    uses 1.
    """
    try:
        execute_write(
            """
            INSERT INTO events (id, type, room_code, user_id, data, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (event_id, event_type, room_code, user_id, json.dumps(data, default=str), to_db(now)),
            operation="events.insert_event",
            max_attempts=max_attempts,
        )
    except Exception as exc:
        raise_write_error("events.insert_event", exc, details=f"type={event_type!r}")


def list_events(
    *,
    room_code: str | None = None,
    event_type: str | None = None,
    limit: int,
) -> list[EventRecord]:
    """Return newest-first events, optionally filtered by room and type."""
    predicates = Predicates()
    predicates.add_if(room_code, "room_code = ?")
    predicates.add_if(event_type, "type = ?")
    query = (
        "SELECT id, type, room_code, user_id, data, created_at FROM events"  # nosec B608
        f"{predicates.where_sql()} ORDER BY created_at DESC, rowid DESC LIMIT ?"
    )
    try:
        with connection_scope() as conn:
            rows = conn.execute(query, [*predicates.params, int(limit)]).fetchall()
            return [_row_to_event(row) for row in rows]
    except Exception as exc:
        raise_read_error(
            "events.list_events",
            exc,
            details=f"room_code={room_code!r}, type={event_type!r}",
        )
