"""Versioned schema migrations for the SQLite backend.

Structure changes happen only here, once, when ``init_database`` runs (from
``impulse-ledger init-db`` or at application startup). Request paths never
probe or alter the schema.

Each migration is an ordered tuple of statements applied in a single
transaction; its version number is recorded in ``schema_migrations`` so a
second run is a no-op.
"""

from __future__ import annotations

import logging

from impulse_ledger.db.connection import get_connection
from impulse_ledger.db.constants import DEFAULT_MAX_MEMBERS, MAX_MAX_MEMBERS, MIN_MAX_MEMBERS
from impulse_ledger.db.timestamps import to_db, utc_now

logger = logging.getLogger(__name__)

BASE_TABLE_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS rooms (
        code TEXT PRIMARY KEY,
        created_at TEXT NOT NULL,
        created_by TEXT NOT NULL,
        is_locked INTEGER NOT NULL DEFAULT 0,
        invite_only INTEGER NOT NULL DEFAULT 0,
        invite_code TEXT,
        max_members INTEGER NOT NULL DEFAULT {DEFAULT_MAX_MEMBERS}
            CHECK (max_members BETWEEN {MIN_MAX_MEMBERS} AND {MAX_MAX_MEMBERS})
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS members (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        room_code TEXT NOT NULL REFERENCES rooms(code) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        name_norm TEXT NOT NULL,
        created_at TEXT NOT NULL,
        last_seen_at TEXT NOT NULL,
        UNIQUE (room_code, user_id),
        UNIQUE (room_code, name_norm)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        room_code TEXT NOT NULL REFERENCES rooms(code) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        player_name TEXT NOT NULL,
        delta INTEGER NOT NULL,
        label TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS weekly_focus (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        room_code TEXT NOT NULL REFERENCES rooms(code) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        player_name TEXT NOT NULL,
        week_key TEXT NOT NULL,
        areas TEXT NOT NULL,
        locked INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        UNIQUE (room_code, user_id, week_key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        room_code TEXT,
        user_id TEXT,
        data TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
)

# Hot-path index rationale:
# 1. weekly state and the room log scan one room's entries by time.
# 2. undo, history and leave stats scan one member's entries by time.
# 3. the events listing filters by room or type and always sorts by time.
HOT_PATH_INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_entries_room_created ON entries(room_code, created_at)",
    (
        "CREATE INDEX IF NOT EXISTS idx_entries_room_user_created "
        "ON entries(room_code, user_id, created_at)"
    ),
    "CREATE INDEX IF NOT EXISTS idx_events_type ON events(type)",
    "CREATE INDEX IF NOT EXISTS idx_events_room_code ON events(room_code)",
    "CREATE INDEX IF NOT EXISTS idx_events_created_at ON events(created_at)",
)

MIGRATIONS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (1, BASE_TABLE_STATEMENTS),
    (2, HOT_PATH_INDEX_STATEMENTS),
)


def get_applied_versions() -> set[int]:
    """Return the migration versions recorded in the database."""
    conn = get_connection()
    try:
        _ensure_migrations_table(conn)
        rows = conn.execute("SELECT version FROM schema_migrations").fetchall()
        return {int(row[0]) for row in rows}
    finally:
        conn.close()


def _ensure_migrations_table(conn) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL
        )
        """
    )
    conn.commit()


def init_database() -> list[int]:
    """Apply every pending migration in version order.

    Returns:
        The versions applied by this call (empty when already current).
    """
    conn = get_connection()
    applied_now: list[int] = []
    try:
        _ensure_migrations_table(conn)
        applied = {
            int(row[0]) for row in conn.execute("SELECT version FROM schema_migrations")
        }
        for version, statements in MIGRATIONS:
            if version in applied:
                continue
            try:
                for statement in statements:
                    conn.execute(statement)
                conn.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, to_db(utc_now())),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            applied_now.append(version)
            logger.info("Applied schema migration %d", version)
    finally:
        conn.close()
    return applied_now
