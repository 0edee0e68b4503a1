"""Retryable Write Executor.

Every mutating statement in the application goes through :func:`execute_write`.
It runs one parameterized statement in its own write scope and, when SQLite
reports a transient condition, retries with exponential backoff:

    attempt 1 fails -> sleep 10ms -> attempt 2 fails -> sleep 40ms -> attempt 3

The condition is recognised from the error text: ``locked``, ``busy`` or
``constraint`` (case-insensitive). A constraint failure is retried on the
chance that a concurrent writer's transaction is still settling; when it
persists the original exception surfaces so callers can map it to a domain
error (for example a duplicate display name).

Anything else, and the final failed attempt, propagates unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from impulse_ledger.db.connection import connection_scope

logger = logging.getLogger(__name__)

RETRYABLE_MARKERS = ("locked", "busy", "constraint")
BASE_BACKOFF_SECONDS = 0.010
BACKOFF_FACTOR = 4
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class WriteResult:
    """
    Outcome of a successful write.

    Attributes:
        rowcount: Rows affected by the statement.
        lastrowid: Row id of the last inserted row, when applicable.
        attempts: Number of attempts it took (1 when nothing was retried).
    """

    rowcount: int
    lastrowid: int | None
    attempts: int


def is_retryable(exc: BaseException) -> bool:
    """Return True when the error text names a transient storage condition."""
    message = str(exc).lower()
    return any(marker in message for marker in RETRYABLE_MARKERS)


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    return BASE_BACKOFF_SECONDS * BACKOFF_FACTOR ** (attempt - 1)


def _configured_max_attempts() -> int:
    from impulse_ledger.config import config

    return max(1, config.ledger.write_max_attempts)


def execute_write(
    sql: str,
    params: Sequence[Any] = (),
    *,
    operation: str = "write",
    max_attempts: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> WriteResult:
    """Execute one mutation, retrying transient failures.

    Args:
        sql: Parameterized statement. Values must be passed via ``params``.
        params: Statement parameters.
        operation: Identifier used in log lines.
        max_attempts: Attempt budget; defaults to ``[ledger] write_max_attempts``.
        sleep: Backoff sleeper, injectable for tests.

    Returns:
        WriteResult for the attempt that succeeded.

    Raises:
        Exception: The last underlying error when the failure is not
            retryable or the attempt budget is exhausted.
    """
    attempts = max_attempts if max_attempts is not None else _configured_max_attempts()
    if attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            with connection_scope(write=True) as conn:
                cursor = conn.execute(sql, tuple(params))
                return WriteResult(
                    rowcount=cursor.rowcount,
                    lastrowid=cursor.lastrowid,
                    attempts=attempt,
                )
        except Exception as exc:
            if not is_retryable(exc):
                raise
            if attempt >= attempts:
                logger.warning(
                    "%s: giving up after %d attempts: %s", operation, attempt, exc
                )
                raise
            delay = backoff_delay(attempt)
            logger.debug(
                "%s: attempt %d failed (%s); retrying in %.0fms",
                operation,
                attempt,
                exc,
                delay * 1000,
            )
            sleep(delay)
            attempt += 1
