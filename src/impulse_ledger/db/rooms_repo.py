"""Room repository operations for the SQLite backend."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from datetime import datetime

from impulse_ledger.db.connection import connection_scope
from impulse_ledger.db.errors import raise_read_error, raise_write_error
from impulse_ledger.db.retry import execute_write
from impulse_ledger.db.timestamps import from_db, to_db
from impulse_ledger.db.types import RoomRecord

_ROOM_COLUMNS = "code, created_at, created_by, is_locked, invite_only, invite_code, max_members"


def _row_to_room(row: sqlite3.Row) -> RoomRecord:
    created_at = from_db(row["created_at"])
    assert created_at is not None
    return RoomRecord(
        code=row["code"],
        created_at=created_at,
        created_by=row["created_by"],
        is_locked=bool(row["is_locked"]),
        invite_only=bool(row["invite_only"]),
        invite_code=row["invite_code"],
        max_members=int(row["max_members"]),
    )


def get_room(code: str) -> RoomRecord | None:
    """Return the room with ``code`` or None."""
    try:
        with connection_scope() as conn:
            row = conn.execute(
                f"SELECT {_ROOM_COLUMNS} FROM rooms WHERE code = ?",  # nosec B608
                (code,),
            ).fetchone()
            return _row_to_room(row) if row else None
    except Exception as exc:
        raise_read_error("rooms.get_room", exc, details=f"code={code!r}")


def create_room_if_absent(
    code: str,
    *,
    created_by: str,
    invite_code: str,
    now: datetime,
) -> bool:
    """Insert a room unless one with ``code`` already exists.

    Returns:
        True when this call created the room.
    """
    try:
        result = execute_write(
            """
            INSERT OR IGNORE INTO rooms (code, created_at, created_by, invite_code)
            VALUES (?, ?, ?, ?)
            """,
            (code, to_db(now), created_by, invite_code),
            operation="rooms.create_room_if_absent",
        )
        return result.rowcount == 1
    except Exception as exc:
        raise_write_error("rooms.create_room_if_absent", exc, details=f"code={code!r}")


def update_room_settings(
    code: str,
    *,
    is_locked: bool | None = None,
    invite_only: bool | None = None,
    max_members: int | None = None,
    invite_code: str | None = None,
) -> int:
    """Update whichever settings are given; returns the affected row count."""
    assignments: list[str] = []
    params: list[object] = []
    if is_locked is not None:
        assignments.append("is_locked = ?")
        params.append(1 if is_locked else 0)
    if invite_only is not None:
        assignments.append("invite_only = ?")
        params.append(1 if invite_only else 0)
    if max_members is not None:
        assignments.append("max_members = ?")
        params.append(int(max_members))
    if invite_code is not None:
        assignments.append("invite_code = ?")
        params.append(invite_code)
    if not assignments:
        return 0

    params.append(code)
    try:
        result = execute_write(
            f"UPDATE rooms SET {', '.join(assignments)} WHERE code = ?",  # nosec B608
            params,
            operation="rooms.update_room_settings",
        )
        return result.rowcount
    except Exception as exc:
        raise_write_error("rooms.update_room_settings", exc, details=f"code={code!r}")


def find_existing_codes(codes: Iterable[str]) -> set[str]:
    """Return the subset of ``codes`` that name existing rooms."""
    wanted = list(dict.fromkeys(codes))
    if not wanted:
        return set()
    placeholders = ",".join(["?"] * len(wanted))
    try:
        with connection_scope() as conn:
            rows = conn.execute(
                f"SELECT code FROM rooms WHERE code IN ({placeholders})",  # nosec B608
                wanted,
            ).fetchall()
            return {row["code"] for row in rows}
    except Exception as exc:
        raise_read_error("rooms.find_existing_codes", exc, details=f"count={len(wanted)}")
