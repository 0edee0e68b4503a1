"""Shared database constants for the DB package.

Values here are consumed by the schema, the repositories and the ledger
services; keeping them in one place prevents the CHECK constraints and the
service-side validation from drifting apart.
"""

from __future__ import annotations

# Room capacity bounds enforced both by the rooms table CHECK and by
# room settings validation.
DEFAULT_MAX_MEMBERS = 50
MIN_MAX_MEMBERS = 1
MAX_MAX_MEMBERS = 200

# Room code shape (after trim + uppercase).
ROOM_CODE_MIN_LENGTH = 3
ROOM_CODE_MAX_LENGTH = 12

# Invite tokens are generated once per room and reused across toggles.
INVITE_CODE_LENGTH = 8

# Creator recorded when a room is created by an anonymous caller.
ANONYMOUS_CREATOR = "anonymous"

# Event listing bounds.
DEFAULT_EVENT_LIMIT = 50
MAX_EVENT_LIMIT = 200
