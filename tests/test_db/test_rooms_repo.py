"""Tests for ``impulse_ledger.db.rooms_repo``."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from impulse_ledger.db import connection as db_connection
from impulse_ledger.db import rooms_repo
from impulse_ledger.db.constants import DEFAULT_MAX_MEMBERS
from impulse_ledger.db.errors import DatabaseReadError, DatabaseWriteError
from tests.constants import ALICE, FIXED_NOW


@pytest.mark.db
def test_create_room_if_absent_creates_once(test_db):
    """A second create for the same code is ignored and keeps the first row."""
    assert rooms_repo.create_room_if_absent(
        "ROOM1", created_by=ALICE, invite_code="AAAA1111", now=FIXED_NOW
    )
    assert not rooms_repo.create_room_if_absent(
        "ROOM1", created_by="someone-else", invite_code="BBBB2222", now=FIXED_NOW
    )

    room = rooms_repo.get_room("ROOM1")
    assert room is not None
    assert room.created_by == ALICE
    assert room.invite_code == "AAAA1111"
    assert room.created_at == FIXED_NOW


@pytest.mark.db
def test_new_room_defaults(test_db):
    rooms_repo.create_room_if_absent("ROOM2", created_by=ALICE, invite_code="X", now=FIXED_NOW)

    room = rooms_repo.get_room("ROOM2")

    assert room.is_locked is False
    assert room.invite_only is False
    assert room.max_members == DEFAULT_MAX_MEMBERS


@pytest.mark.db
def test_get_room_missing_returns_none(test_db):
    assert rooms_repo.get_room("NOPE") is None


@pytest.mark.db
def test_update_room_settings_changes_only_given_fields(test_db):
    """Unspecified settings keep their stored values."""
    rooms_repo.create_room_if_absent(
        "ROOM3", created_by=ALICE, invite_code="KEEP1234", now=FIXED_NOW
    )

    updated = rooms_repo.update_room_settings("ROOM3", invite_only=True, max_members=5)
    room = rooms_repo.get_room("ROOM3")

    assert updated == 1
    assert room.invite_only is True
    assert room.max_members == 5
    assert room.is_locked is False
    assert room.invite_code == "KEEP1234"


@pytest.mark.db
def test_update_room_settings_with_nothing_is_a_noop(test_db):
    assert rooms_repo.update_room_settings("ROOM3") == 0


@pytest.mark.db
def test_find_existing_codes(test_db):
    """Only codes with a stored room are returned; duplicates are harmless."""
    rooms_repo.create_room_if_absent("TAKEN1", created_by=ALICE, invite_code="X", now=FIXED_NOW)

    assert rooms_repo.find_existing_codes(["TAKEN1", "FREE1", "TAKEN1"]) == {"TAKEN1"}
    assert rooms_repo.find_existing_codes([]) == set()


@pytest.mark.db
def test_get_room_raises_typed_read_error(test_db):
    """Connection failures surface as DatabaseReadError, not None."""
    with patch.object(db_connection, "get_connection", side_effect=Exception("db boom")):
        with pytest.raises(DatabaseReadError) as exc_info:
            rooms_repo.get_room("ROOM1")

    assert exc_info.value.context.operation == "rooms.get_room"
    assert str(exc_info.value.cause) == "db boom"


@pytest.mark.db
def test_create_room_raises_typed_write_error(test_db):
    with patch.object(db_connection, "get_connection", side_effect=Exception("db boom")):
        with pytest.raises(DatabaseWriteError):
            rooms_repo.create_room_if_absent(
                "ROOM1", created_by=ALICE, invite_code="X", now=FIXED_NOW
            )
