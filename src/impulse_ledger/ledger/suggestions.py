"""Room code suggestions and availability checks.

Suggestions are a convenience for picking a memorable, unused room code.
Nothing here is security sensitive; ``random`` is fine.
"""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from impulse_ledger.db import rooms_repo
from impulse_ledger.ledger import recorder
from impulse_ledger.ledger.admission import CODE_ALPHABET, is_valid_room_code
from impulse_ledger.ledger.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_COUNT = 5
MAX_SUGGESTION_COUNT = 10
MAX_CODES_PER_CHECK = 20

FIRST_WORDS = ("FOCUS", "STUDY", "WORK", "TEAM", "SQUAD", "GUILD", "CREW")
SECOND_WORDS = ("ZONE", "HUB", "LAB", "ROOM", "BASE", "DEN", "CAVE")


@dataclass(frozen=True, slots=True)
class Availability:
    code: str
    available: bool


def clean_base_name(base_name: str | None) -> str:
    """Uppercase, keep letters and digits, at most 8 chars; ``ROOM`` if empty."""
    base = re.sub(r"[^A-Z0-9]", "", (base_name or "").upper())[:8]
    return base or "ROOM"


def clamp_count(count: Any) -> int:
    try:
        value = int(count)
    except (TypeError, ValueError):
        return DEFAULT_SUGGESTION_COUNT
    if value < 1:
        return DEFAULT_SUGGESTION_COUNT
    return min(value, MAX_SUGGESTION_COUNT)


def generate_candidates(
    base_name: str | None,
    count: int,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[str]:
    """Produce up to ``count`` distinct candidate codes, cycling through patterns."""
    rng = rng or random.Random()  # nosec B311 - not security sensitive
    base = clean_base_name(base_name)
    moment = now or datetime.now()

    patterns: tuple[Callable[[], str], ...] = (
        lambda: f"{base}{rng.randrange(1000):03d}",
        lambda: f"{base[:4]}{rng.randrange(10000):04d}",
        lambda: f"{rng.choice(FIRST_WORDS)}{rng.choice(SECOND_WORDS)}{rng.randrange(100)}",
        lambda: f"ROOM{moment:%m%d%H}",
        lambda: "".join(rng.choice(CODE_ALPHABET) for _ in range(6)),
    )

    candidates: list[str] = []
    for index in range(count):
        candidate = patterns[index % len(patterns)]()
        if candidate not in candidates and is_valid_room_code(candidate):
            candidates.append(candidate)
    return candidates


def check_codes(codes: list[str]) -> list[Availability]:
    """Return availability for each code, in input order."""
    if not codes:
        return []
    taken = rooms_repo.find_existing_codes(codes)
    return [Availability(code=code, available=code not in taken) for code in codes]


def suggest(
    base_name: str | None = "",
    count: Any = DEFAULT_SUGGESTION_COUNT,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[str]:
    """Return up to ``count`` unused room codes derived from ``base_name``."""
    wanted = clamp_count(count)
    candidates = generate_candidates(base_name, wanted * 2, rng=rng, now=now)
    available = [item.code for item in check_codes(candidates) if item.available][:wanted]
    recorder.record(
        "room_suggestions_requested",
        {
            "baseName": base_name or "",
            "requestedCount": wanted,
            "generatedCount": len(candidates),
            "availableCount": len(available),
        },
    )
    return available


def check_availability(room_codes: Any) -> list[Availability]:
    """Validate and look up caller-supplied codes; invalid codes are dropped.

    Raises:
        ValidationError: ``INVALID_ROOM_CODES`` for a missing, empty or
            oversized list.
    """
    if not isinstance(room_codes, list) or not room_codes:
        raise ValidationError("roomCodes array is required", error_code="INVALID_ROOM_CODES")
    if len(room_codes) > MAX_CODES_PER_CHECK:
        raise ValidationError(
            f"Maximum {MAX_CODES_PER_CHECK} room codes can be checked at once",
            error_code="INVALID_ROOM_CODES",
        )

    normalized: list[str] = []
    for raw in room_codes:
        code = str(raw or "").strip().upper()
        if is_valid_room_code(code) and code not in normalized:
            normalized.append(code)

    results = check_codes(normalized)
    recorder.record(
        "room_availability_checked",
        {
            "requestedCount": len(room_codes),
            "validCount": len(normalized),
            "availableCount": sum(1 for item in results if item.available),
        },
    )
    return results
