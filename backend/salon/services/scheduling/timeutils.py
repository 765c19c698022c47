# backend/salon/services/scheduling/timeutils.py
"""
Time arithmetic on the wire formats.

Times travel as "HH:MM" (24h, no seconds) and dates as "YYYY-MM-DD".
Internally a time of day is an int: minutes since midnight.
"""

import re
from math import ceil

SLOT_STEP_MINUTES = 20
MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^([0-9]{2}):([0-9]{2})$")
_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def parse_time(value: str) -> int | None:
    """Convert "HH:MM" to minutes since midnight, None if malformed."""
    if not isinstance(value, str):
        return None
    match = _TIME_RE.fullmatch(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM", clamped to 00:00..23:59."""
    normalized = max(0, min(MINUTES_PER_DAY - 1, int(minutes)))
    return f"{normalized // 60:02d}:{normalized % 60:02d}"


def round_up_to_slot(duration_minutes: int) -> int:
    """Round a duration up to the slot grid; never less than one slot."""
    return max(
        SLOT_STEP_MINUTES,
        ceil(duration_minutes / SLOT_STEP_MINUTES) * SLOT_STEP_MINUTES,
    )


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test: touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


def is_valid_date(value: str) -> bool:
    """Shape check for "YYYY-MM-DD"; calendar validity is not checked."""
    return isinstance(value, str) and bool(_DATE_RE.fullmatch(value))
