"""Membership repository operations for the SQLite backend.

A member row binds a caller-supplied ``user_id`` to a display name inside one
room. Two UNIQUE indexes back the membership rules: one row per
``(room_code, user_id)`` and one owner per ``(room_code, name_norm)``.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from impulse_ledger.db.connection import connection_scope
from impulse_ledger.db.errors import raise_read_error, raise_write_error
from impulse_ledger.db.retry import execute_write
from impulse_ledger.db.timestamps import from_db, to_db
from impulse_ledger.db.types import MemberRecord

_MEMBER_COLUMNS = "room_code, user_id, name, name_norm, created_at, last_seen_at"


def normalize_name(name: str) -> str:
    """Normalize a display name for uniqueness comparison (trim + casefold)."""
    return name.strip().casefold()


def _row_to_member(row: sqlite3.Row) -> MemberRecord:
    return MemberRecord(
        room_code=row["room_code"],
        user_id=row["user_id"],
        name=row["name"],
        name_norm=row["name_norm"],
        created_at=from_db(row["created_at"]),  # type: ignore[arg-type]
        last_seen_at=from_db(row["last_seen_at"]),  # type: ignore[arg-type]
    )


def get_member(room_code: str, user_id: str) -> MemberRecord | None:
    """Return the membership of ``user_id`` in ``room_code`` or None."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                f"SELECT {_MEMBER_COLUMNS} FROM members "  # nosec B608
                "WHERE room_code = ? AND user_id = ?",
                (room_code, user_id),
            ).fetchone()
            return _row_to_member(row) if row else None
    except Exception as exc:
        raise_read_error(
            "members.get_member",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )


def find_member_by_name(room_code: str, name_norm: str) -> MemberRecord | None:
    """Return the member owning normalized ``name_norm`` in the room, if any."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                f"SELECT {_MEMBER_COLUMNS} FROM members "  # nosec B608
                "WHERE room_code = ? AND name_norm = ?",
                (room_code, name_norm),
            ).fetchone()
            return _row_to_member(row) if row else None
    except Exception as exc:
        raise_read_error("members.find_member_by_name", exc, details=f"room_code={room_code!r}")


def count_members(room_code: str) -> int:
    """Return the number of members in a room."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM members WHERE room_code = ?", (room_code,)
            ).fetchone()
            return int(row[0])
    except Exception as exc:
        raise_read_error("members.count_members", exc, details=f"room_code={room_code!r}")


def list_members(room_code: str) -> list[MemberRecord]:
    """Return all members of a room ordered by join time."""
    try:
        with connection_scope() as conn:
            rows = conn.execute(
                f"SELECT {_MEMBER_COLUMNS} FROM members "  # nosec B608
                "WHERE room_code = ? ORDER BY created_at ASC, id ASC",
                (room_code,),
            ).fetchall()
            return [_row_to_member(row) for row in rows]
    except Exception as exc:
        raise_read_error("members.list_members", exc, details=f"room_code={room_code!r}")


def upsert_member(room_code: str, user_id: str, name: str, *, now: datetime) -> None:
    """Insert a member, or refresh name and last-seen for an existing one.

    A UNIQUE failure on ``name_norm`` surfaces as ``DatabaseWriteError``
    whose ``violates_unique("name_norm")`` is True.
    """
    stamp = to_db(now)
    try:
        execute_write(
            """
            INSERT INTO members (room_code, user_id, name, name_norm, created_at, last_seen_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (room_code, user_id) DO UPDATE SET
                name = excluded.name,
                name_norm = excluded.name_norm,
                last_seen_at = excluded.last_seen_at
            """,
            (room_code, user_id, name, normalize_name(name), stamp, stamp),
            operation="members.upsert_member",
        )
    except Exception as exc:
        raise_write_error(
            "members.upsert_member",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )


def touch_last_seen(room_code: str, user_id: str, *, now: datetime) -> int:
    """Advance a member's last-seen time; returns rows updated."""
    try:
        result = execute_write(
            "UPDATE members SET last_seen_at = ? WHERE room_code = ? AND user_id = ?",
            (to_db(now), room_code, user_id),
            operation="members.touch_last_seen",
        )
        return result.rowcount
    except Exception as exc:
        raise_write_error(
            "members.touch_last_seen",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )


def delete_member(room_code: str, user_id: str) -> int:
    """Remove a membership; entries and focus rows are kept."""
    try:
        result = execute_write(
            "DELETE FROM members WHERE room_code = ? AND user_id = ?",
            (room_code, user_id),
            operation="members.delete_member",
        )
        return result.rowcount
    except Exception as exc:
        raise_write_error(
            "members.delete_member",
            exc,
            details=f"room_code={room_code!r}, user_id={user_id!r}",
        )
