"""Tests for ``impulse_ledger.db.retry``."""

from __future__ import annotations

import sqlite3

import pytest

from impulse_ledger.db import retry
from impulse_ledger.db.connection import connection_scope
from impulse_ledger.db.timestamps import to_db
from tests.constants import FIXED_NOW


class _FlakyScope:
    """Stand-in for ``connection_scope`` that fails a fixed number of times."""

    def __init__(self, failures: int, message: str) -> None:
        self.failures = failures
        self.message = message
        self.calls = 0

    def __call__(self, *, write: bool = False):
        self.calls += 1
        if self.calls <= self.failures:
            raise sqlite3.OperationalError(self.message)
        return connection_scope(write=write)


def _insert_room_sql() -> tuple[str, tuple[str, str, str]]:
    return (
        "INSERT INTO rooms (code, created_at, created_by) VALUES (?, ?, ?)",
        ("RETRY1", to_db(FIXED_NOW), "u-1"),
    )


@pytest.mark.unit
def test_backoff_grows_by_factor_four():
    """Backoff is 10ms, 40ms, 160ms for attempts 1-3."""
    assert retry.backoff_delay(1) == pytest.approx(0.010)
    assert retry.backoff_delay(2) == pytest.approx(0.040)
    assert retry.backoff_delay(3) == pytest.approx(0.160)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("database is locked", True),
        ("Database Is BUSY", True),
        ("UNIQUE constraint failed: members.room_code, members.name_norm", True),
        ("no such table: rooms", False),
        ("disk I/O error", False),
    ],
)
def test_is_retryable_matches_transient_markers(message, expected):
    """Only lock/busy/constraint errors are treated as transient."""
    assert retry.is_retryable(sqlite3.OperationalError(message)) is expected


@pytest.mark.db
def test_execute_write_succeeds_first_time(test_db):
    """A clean write reports one attempt and the affected row count."""
    sql, params = _insert_room_sql()
    sleeps: list[float] = []

    result = retry.execute_write(sql, params, sleep=sleeps.append)

    assert result.rowcount == 1
    assert result.attempts == 1
    assert sleeps == []


@pytest.mark.db
def test_execute_write_retries_locked_then_succeeds(test_db, monkeypatch):
    """Two lock failures are absorbed with 10ms and 40ms waits."""
    flaky = _FlakyScope(failures=2, message="database is locked")
    monkeypatch.setattr(retry, "connection_scope", flaky)
    sleeps: list[float] = []
    sql, params = _insert_room_sql()

    result = retry.execute_write(sql, params, sleep=sleeps.append)

    assert result.attempts == 3
    assert flaky.calls == 3
    assert sleeps == [pytest.approx(0.010), pytest.approx(0.040)]
    with connection_scope() as conn:
        assert conn.execute("SELECT COUNT(*) FROM rooms").fetchone()[0] == 1


@pytest.mark.db
def test_execute_write_gives_up_after_max_attempts(test_db, monkeypatch):
    """Exhausting the attempt budget re-raises the last error."""
    flaky = _FlakyScope(failures=10, message="database is busy")
    monkeypatch.setattr(retry, "connection_scope", flaky)
    sleeps: list[float] = []
    sql, params = _insert_room_sql()

    with pytest.raises(sqlite3.OperationalError, match="busy"):
        retry.execute_write(sql, params, max_attempts=3, sleep=sleeps.append)

    assert flaky.calls == 3
    assert len(sleeps) == 2


@pytest.mark.db
def test_execute_write_does_not_retry_other_errors(test_db, monkeypatch):
    """Non-transient errors propagate on the first attempt."""
    flaky = _FlakyScope(failures=10, message="no such table: rooms")
    monkeypatch.setattr(retry, "connection_scope", flaky)
    sleeps: list[float] = []

    with pytest.raises(sqlite3.OperationalError, match="no such table"):
        retry.execute_write("DELETE FROM rooms", sleep=sleeps.append)

    assert flaky.calls == 1
    assert sleeps == []


@pytest.mark.db
def test_execute_write_surfaces_persistent_unique_violation(test_db):
    """A real UNIQUE failure is retried, then raised as IntegrityError."""
    sql, params = _insert_room_sql()
    retry.execute_write(sql, params)
    sleeps: list[float] = []

    with pytest.raises(sqlite3.IntegrityError):
        retry.execute_write(sql, params, sleep=sleeps.append)

    assert len(sleeps) == 2


@pytest.mark.unit
def test_execute_write_rejects_zero_attempts():
    """An attempt budget below one is a programming error."""
    with pytest.raises(ValueError):
        retry.execute_write("SELECT 1", max_attempts=0)
