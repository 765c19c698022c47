# backend/salon/services/scheduling/occupancy.py
"""
Occupied intervals of a worker on a date.

Occupied = non-cancelled appointments + calendar blocks. Both sources are read
independently; a failure in either fails the whole read.
"""

import logging
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.tables import Appointments, CalendarBlocks
from .errors import StoreFailure
from .timeutils import parse_time

logger = logging.getLogger(__name__)


class Interval(NamedTuple):
    start: int
    end: int


def load_occupied(
    db: Session,
    location_id: int,
    worker_id: int,
    target_date: str,
    exclude_appointment_id: int | None = None,
    exclude_block_id: int | None = None,
) -> list[Interval]:
    """
    Load occupied intervals for worker+date.

    Args:
        exclude_appointment_id: Appointment being edited (not a conflict with itself)
        exclude_block_id: Block being edited

    Returns:
        Unordered list of Interval in minutes.
    """
    try:
        appointment_rows = _get_active_appointment_times(
            db, location_id, worker_id, target_date, exclude_appointment_id
        )
        block_rows = _get_block_times(
            db, location_id, worker_id, target_date, exclude_block_id
        )
    except SQLAlchemyError as e:
        logger.error(
            f"Occupancy read failed: worker_id={worker_id}, date={target_date}: {e}"
        )
        raise StoreFailure("Cannot load worker calendar.") from e

    return to_intervals([*appointment_rows, *block_rows])


def to_intervals(rows) -> list[Interval]:
    """Convert (start_time, end_time) string pairs, skipping malformed rows."""
    intervals: list[Interval] = []
    for start_time, end_time in rows:
        start = parse_time(start_time)
        end = parse_time(end_time)
        if start is None or end is None:
            logger.warning(f"Skipping malformed calendar row {start_time}-{end_time}")
            continue
        intervals.append(Interval(start, end))
    return intervals


# ── Database helpers ─────────────────────────────────────────────────────


def _get_active_appointment_times(
    db: Session,
    location_id: int,
    worker_id: int,
    target_date: str,
    exclude_id: int | None,
) -> list[tuple[str, str]]:
    query = db.query(Appointments.start_time, Appointments.end_time).filter(
        Appointments.location_id == location_id,
        Appointments.worker_id == worker_id,
        Appointments.date == target_date,
        Appointments.status != "cancelled",
    )
    if exclude_id is not None:
        query = query.filter(Appointments.id != exclude_id)
    return [tuple(row) for row in query.all()]


def _get_block_times(
    db: Session,
    location_id: int,
    worker_id: int,
    target_date: str,
    exclude_id: int | None,
) -> list[tuple[str, str]]:
    query = db.query(CalendarBlocks.start_time, CalendarBlocks.end_time).filter(
        CalendarBlocks.location_id == location_id,
        CalendarBlocks.worker_id == worker_id,
        CalendarBlocks.date == target_date,
    )
    if exclude_id is not None:
        query = query.filter(CalendarBlocks.id != exclude_id)
    return [tuple(row) for row in query.all()]
