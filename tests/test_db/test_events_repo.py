"""Tests for ``impulse_ledger.db.events_repo``."""

from __future__ import annotations

from datetime import timedelta

import pytest

from impulse_ledger.db import events_repo
from impulse_ledger.db.connection import connection_scope
from tests.constants import ALICE, FIXED_NOW


def _insert(event_id: str, event_type: str, *, room_code=None, offset_seconds=0, data=None):
    events_repo.insert_event(
        event_id,
        event_type,
        data or {},
        room_code=room_code,
        user_id=ALICE,
        now=FIXED_NOW + timedelta(seconds=offset_seconds),
    )


@pytest.mark.db
def test_list_events_newest_first(test_db):
    _insert("e1", "entry_created", room_code="TESTA", offset_seconds=0)
    _insert("e2", "entry_created", room_code="TESTA", offset_seconds=10)
    _insert("e3", "focus_set", room_code="TESTA", offset_seconds=20)

    events = events_repo.list_events(limit=10)

    assert [event.id for event in events] == ["e3", "e2", "e1"]


@pytest.mark.db
def test_list_events_filters_and_limit(test_db):
    _insert("e1", "entry_created", room_code="TESTA", offset_seconds=0)
    _insert("e2", "entry_created", room_code="OTHER", offset_seconds=10)
    _insert("e3", "entry_created", room_code="TESTA", offset_seconds=20)
    _insert("e4", "focus_set", room_code="TESTA", offset_seconds=30)

    events = events_repo.list_events(room_code="TESTA", event_type="entry_created", limit=1)

    assert [event.id for event in events] == ["e3"]


@pytest.mark.db
def test_event_data_round_trips_as_dict(test_db):
    _insert("e1", "room_accessed", data={"roomCode": "TESTA", "created": True})

    (event,) = events_repo.list_events(limit=1)

    assert event.data == {"roomCode": "TESTA", "created": True}
    assert event.user_id == ALICE
    assert event.created_at == FIXED_NOW


@pytest.mark.db
def test_unparseable_stored_data_is_wrapped(test_db):
    """A row written outside the app with bad JSON still lists."""
    with connection_scope(write=True) as conn:
        conn.execute(
            "INSERT INTO events (id, type, data, created_at) VALUES (?, ?, ?, ?)",
            ("raw1", "legacy", "not-json", "2024-03-06T18:00:00.000000+00:00"),
        )

    (event,) = events_repo.list_events(limit=5)

    assert event.data == {"raw": "not-json"}
