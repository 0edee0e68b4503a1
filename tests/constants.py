"""
Shared test constants.

This module provides constants that are used across multiple test files.
Time-sensitive tests pass ``FIXED_NOW`` (or offsets from it) explicitly
rather than relying on the wall clock.
"""

from datetime import UTC, datetime

# A Wednesday, well inside the week keyed 2024-03-04 in America/Chicago.
FIXED_NOW = datetime(2024, 3, 6, 18, 0, tzinfo=UTC)
FIXED_WEEK_KEY = "2024-03-04"

ROOM_CODE = "TESTA"
ALICE = "u-alice"
BOB = "u-bob"
CAROL = "u-carol"
