# backend/salon/services/scheduling/conflicts.py
"""
Conflict guard.

ensure_no_conflict() is the advisory pre-flight check. It gives a fast,
friendly 409 in the common case but can be raced; the storage-level guard
(models/overlap_guard.py) is what actually decides. is_overlap_conflict_error()
recognises that guard's rejection.
"""

from sqlalchemy.exc import DBAPIError

from .occupancy import Interval
from .timeutils import intervals_overlap

OVERLAP_SQLSTATE = "23P01"  # exclusion_violation


def ensure_no_conflict(start: int, end: int, occupied: list[Interval]) -> bool:
    """True if [start, end) is a valid interval clear of every occupied one."""
    if end <= start:
        return False
    return not any(
        intervals_overlap(start, end, item.start, item.end) for item in occupied
    )


def is_overlap_conflict_error(error: Exception | None) -> bool:
    """True if a store error is the overlap guard rejecting the write."""
    if error is None:
        return False

    orig = error.orig if isinstance(error, DBAPIError) else error
    code = (
        getattr(orig, "sqlstate", None)
        or getattr(orig, "pgcode", None)
        or ""
    )
    if str(code).strip() == OVERLAP_SQLSTATE:
        return True

    message = str(orig).lower()
    return "overlap" in message or "selected slot is not available" in message
