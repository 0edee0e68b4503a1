"""
Shared pytest fixtures for the Impulse Ledger test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary test databases wired through the config system
- FastAPI TestClient instances
- Rooms with members for ledger scenarios

Every fixture is function-scoped so each test starts from an empty database.
"""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from impulse_ledger.config import use_test_database
from impulse_ledger.db import schema
from tests.constants import ALICE, BOB, FIXED_NOW, ROOM_CODE

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary database file for testing.

    Uses the config system's use_test_database context manager so every
    repository call in the test goes to this file.

    Yields:
        Path to temporary database file
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_impulse.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db(temp_db_path: Path) -> Generator[None, None, None]:
    """
    Initialize a test database with the full schema and no data.

    Args:
        temp_db_path: Path to temporary database (from fixture)
    """
    schema.init_database()

    yield


@pytest.fixture(scope="function")
def room_with_members(test_db) -> dict[str, str]:
    """
    Create room ``TESTA`` (created by alice) with members alice and bob.

    Returns:
        Dict mapping member identifiers to display names
    """
    from impulse_ledger.ledger import admission

    admission.admit(ROOM_CODE, "alice", ALICE, now=FIXED_NOW)
    admission.admit(ROOM_CODE, "bob", BOB, now=FIXED_NOW)
    return {ALICE: "alice", BOB: "bob"}


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(test_db) -> TestClient:
    """
    Create a FastAPI TestClient for API endpoint testing.

    The app is built by ``create_app`` so the exception handlers are the
    production ones. The schema is already applied by ``test_db``.

    Example:
        def test_join(test_client):
            response = test_client.post("/room", json={"roomCode": "ABC"})
            assert response.status_code == 200
    """
    from impulse_ledger.api.server import create_app

    return TestClient(create_app())
