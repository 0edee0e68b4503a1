"""Entry ledger repository operations for the SQLite backend.

Entries are append-only apart from the single-row delete used by undo. All
listings are chronological by ``(created_at, id)`` so folds over them are
deterministic.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from impulse_ledger.db.connection import connection_scope
from impulse_ledger.db.errors import raise_read_error, raise_write_error
from impulse_ledger.db.query import Predicates
from impulse_ledger.db.retry import execute_write
from impulse_ledger.db.timestamps import from_db, to_db
from impulse_ledger.db.types import EntryRecord, EntryStats

_ENTRY_COLUMNS = "id, room_code, user_id, player_name, delta, label, created_at"


def _row_to_entry(row: sqlite3.Row) -> EntryRecord:
    return EntryRecord(
        id=int(row["id"]),
        room_code=row["room_code"],
        user_id=row["user_id"],
        player_name=row["player_name"],
        delta=int(row["delta"]),
        label=row["label"],
        created_at=from_db(row["created_at"]),  # type: ignore[arg-type]
    )


def insert_entry(
    room_code: str,
    user_id: str,
    player_name: str,
    delta: int,
    label: str | None,
    *,
    now: datetime,
) -> int:
    """Append an entry and return its id."""
    try:
        result = execute_write(
            """
            INSERT INTO entries (room_code, user_id, player_name, delta, label, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (room_code, user_id, player_name, int(delta), label, to_db(now)),
            operation="entries.insert_entry",
        )
        if result.lastrowid is None:
            raise ValueError("Failed to create entry.")
        return int(result.lastrowid)
    except Exception as exc:
        raise_write_error(
            "entries.insert_entry",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )


def get_latest_entry(room_code: str, user_id: str) -> EntryRecord | None:
    """Return the member's most recent entry in the room, or None."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries "  # nosec B608
                "WHERE room_code = ? AND user_id = ? "
                "ORDER BY created_at DESC, id DESC LIMIT 1",
                (room_code, user_id),
            ).fetchone()
            return _row_to_entry(row) if row else None
    except Exception as exc:
        raise_read_error(
            "entries.get_latest_entry",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )


def delete_entry(entry_id: int) -> int:
    """Delete exactly one entry by id; returns rows deleted (0 or 1)."""
    try:
        result = execute_write(
            "DELETE FROM entries WHERE id = ?",
            (int(entry_id),),
            operation="entries.delete_entry",
        )
        return result.rowcount
    except Exception as exc:
        raise_write_error("entries.delete_entry", exc, details=f"entry_id={entry_id}")


def list_entries(
    room_code: str,
    *,
    user_id: str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[EntryRecord]:
    """Return a room's entries in chronological order.

    Args:
        room_code: Room to read.
        user_id: Restrict to one member's entries.
        since: Inclusive lower bound on ``created_at``.
        until: Exclusive upper bound on ``created_at``.
    """
    predicates = Predicates().add("room_code = ?", room_code)
    predicates.add_if(user_id, "user_id = ?")
    predicates.add_if(to_db(since) if since else None, "created_at >= ?")
    predicates.add_if(to_db(until) if until else None, "created_at < ?")
    query = (
        f"SELECT {_ENTRY_COLUMNS} FROM entries"  # nosec B608
        f"{predicates.where_sql()} ORDER BY created_at ASC, id ASC"
    )
    try:
        with connection_scope() as conn:
            rows = conn.execute(query, predicates.params).fetchall()
            return [_row_to_entry(row) for row in rows]
    except Exception as exc:
        raise_read_error("entries.list_entries", exc, details=f"room_code={room_code!r}")


def get_member_stats(room_code: str, user_id: str) -> EntryStats:
    """Return count, delta sum and first/last times of a member's entries."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*), COALESCE(SUM(delta), 0), MIN(created_at), MAX(created_at)
                FROM entries
                WHERE room_code = ? AND user_id = ?
                """,
                (room_code, user_id),
            ).fetchone()
            return EntryStats(
                entry_count=int(row[0]),
                total_delta=int(row[1]),
                first_entry=from_db(row[2]),
                last_entry=from_db(row[3]),
            )
    except Exception as exc:
        raise_read_error(
            "entries.get_member_stats",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )
