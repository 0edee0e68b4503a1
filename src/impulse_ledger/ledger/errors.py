"""Domain errors raised by the ledger services.

Each error carries a stable ``error_code`` and the HTTP status the API layer
should answer with. The hierarchy mirrors the failure classes callers need to
tell apart:

    ValidationError     400  malformed or out-of-range input
    AuthorizationError  401/403  missing membership, wrong invite, not creator
    NotFoundError       404  room, member or entry absent
    ConflictError       409  duplicate name, focus already set

Storage failures are not represented here; they surface as
``impulse_ledger.db.errors.DatabaseError`` subclasses.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger domain errors.

    Args:
        message: Human-readable message returned as ``error``.
        error_code: Stable machine-readable code, or None.
        status_code: HTTP status for the API boundary.
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict[str, str]:
        """Return the JSON error body ``{error, error_code?}``."""
        body = {"error": self.message}
        if self.error_code:
            body["error_code"] = self.error_code
        return body


class ValidationError(LedgerError):
    """Malformed or out-of-range input."""

    status_code = 400


class AuthorizationError(LedgerError):
    """Caller is not allowed to perform the operation."""

    status_code = 403


class NotFoundError(LedgerError):
    """A room, member or entry does not exist."""

    status_code = 404


class ConflictError(LedgerError):
    """The write conflicts with existing state."""

    status_code = 409


def join_required() -> AuthorizationError:
    """The error returned when a non-member attempts a member-only write."""
    return AuthorizationError("Join the room first", error_code="JOIN_REQUIRED")


def not_a_member() -> NotFoundError:
    """The error returned by the leave flow for a caller with no membership."""
    return NotFoundError("You are not a member of this room", error_code="NOT_A_MEMBER")


def room_not_found(room_code: str) -> NotFoundError:
    return NotFoundError(f"Room {room_code} not found", error_code="ROOM_NOT_FOUND")
