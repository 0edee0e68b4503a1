"""Tests for ``impulse_ledger.db.focus_repo``."""

from __future__ import annotations

import pytest

from impulse_ledger.db import focus_repo, rooms_repo
from impulse_ledger.db.errors import DatabaseWriteError
from tests.constants import ALICE, FIXED_NOW, FIXED_WEEK_KEY


@pytest.fixture
def room(test_db) -> str:
    rooms_repo.create_room_if_absent("FOCUS1", created_by=ALICE, invite_code="X", now=FIXED_NOW)
    return "FOCUS1"


@pytest.mark.db
def test_insert_and_get_focus(room):
    focus_repo.insert_focus(room, ALICE, "alice", FIXED_WEEK_KEY, ["sleep", "food"], now=FIXED_NOW)

    record = focus_repo.get_focus(room, ALICE, FIXED_WEEK_KEY)

    assert record.areas == ["sleep", "food"]
    assert record.locked is True
    assert record.player_name == "alice"
    assert focus_repo.get_focus(room, ALICE, "2024-03-11") is None


@pytest.mark.db
def test_second_insert_for_same_week_fails_unique(room):
    """The first value stands; the second write is a UNIQUE violation."""
    focus_repo.insert_focus(room, ALICE, "alice", FIXED_WEEK_KEY, ["a", "b"], now=FIXED_NOW)

    with pytest.raises(DatabaseWriteError) as exc_info:
        focus_repo.insert_focus(room, ALICE, "alice", FIXED_WEEK_KEY, ["c", "d"], now=FIXED_NOW)

    assert exc_info.value.violates_unique("week_key")
    assert focus_repo.get_focus(room, ALICE, FIXED_WEEK_KEY).areas == ["a", "b"]


@pytest.mark.db
def test_count_focus_weeks(room):
    focus_repo.insert_focus(room, ALICE, "alice", "2024-02-26", ["a", "b"], now=FIXED_NOW)
    focus_repo.insert_focus(room, ALICE, "alice", FIXED_WEEK_KEY, ["a", "b"], now=FIXED_NOW)

    assert focus_repo.count_focus_weeks(room, ALICE) == 2
    assert focus_repo.count_focus_weeks(room, "u-other") == 0
