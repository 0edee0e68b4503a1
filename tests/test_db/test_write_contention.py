"""Write paths under real SQLite lock contention.

These tests hold genuine locks on the database file from a second connection
or a second thread instead of faking the failure, so the retry executor and
the unique constraints are exercised the way concurrent requests hit them.
"""

from __future__ import annotations

import sqlite3
import threading

import pytest

from impulse_ledger.config import config
from impulse_ledger.db import members_repo, retry
from impulse_ledger.db.timestamps import to_db
from impulse_ledger.ledger import admission
from impulse_ledger.ledger.errors import ConflictError
from tests.constants import CAROL, FIXED_NOW, ROOM_CODE


@pytest.mark.db
def test_execute_write_outlasts_a_held_write_lock(test_db, temp_db_path, monkeypatch):
    """A writer holding BEGIN IMMEDIATE makes the first attempt fail; a retry lands."""
    monkeypatch.setattr(config.database, "busy_timeout_ms", 0)
    blocker = sqlite3.connect(str(temp_db_path), isolation_level=None)
    blocker.execute("BEGIN IMMEDIATE")
    sleeps: list[float] = []

    def release_then_record(delay: float) -> None:
        if blocker.in_transaction:
            blocker.execute("COMMIT")
        sleeps.append(delay)

    try:
        result = retry.execute_write(
            "INSERT INTO rooms (code, created_at, created_by) VALUES (?, ?, ?)",
            ("LOCKED1", to_db(FIXED_NOW), "u-1"),
            max_attempts=3,
            sleep=release_then_record,
        )
    finally:
        blocker.close()

    assert result.attempts > 1
    assert result.rowcount == 1
    assert sleeps == [pytest.approx(0.010)]


@pytest.mark.db
def test_held_write_lock_exhausts_attempts(test_db, temp_db_path, monkeypatch):
    monkeypatch.setattr(config.database, "busy_timeout_ms", 0)
    blocker = sqlite3.connect(str(temp_db_path), isolation_level=None)
    blocker.execute("BEGIN IMMEDIATE")
    sleeps: list[float] = []

    try:
        with pytest.raises(sqlite3.OperationalError, match="locked"):
            retry.execute_write(
                "INSERT INTO rooms (code, created_at, created_by) VALUES (?, ?, ?)",
                ("LOCKED2", to_db(FIXED_NOW), "u-1"),
                max_attempts=3,
                sleep=sleeps.append,
            )
    finally:
        blocker.execute("ROLLBACK")
        blocker.close()

    assert sleeps == [pytest.approx(0.010), pytest.approx(0.040)]


@pytest.mark.db
def test_concurrent_joins_under_one_name(room_with_members):
    """Two identifiers racing for one name: one joins, the other gets DUPLICATE_NAME."""
    barrier = threading.Barrier(2)
    outcomes: dict[str, str] = {}

    def join(user_id: str) -> None:
        barrier.wait()
        try:
            admission.admit(ROOM_CODE, "dana", user_id)
            outcomes[user_id] = "joined"
        except ConflictError as exc:
            outcomes[user_id] = exc.error_code
        except Exception as exc:  # surfaced through the assertion below
            outcomes[user_id] = repr(exc)

    threads = [threading.Thread(target=join, args=(uid,)) for uid in (CAROL, "u-dana")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes.values()) == ["DUPLICATE_NAME", "joined"]
    (winner,) = [uid for uid, outcome in outcomes.items() if outcome == "joined"]
    owner = members_repo.find_member_by_name(ROOM_CODE, members_repo.normalize_name("dana"))
    assert owner.user_id == winner
    assert members_repo.count_members(ROOM_CODE) == 3
