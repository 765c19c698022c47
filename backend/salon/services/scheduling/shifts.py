# backend/salon/services/scheduling/shifts.py
"""
Shift resolution.

A worker's working interval on a date comes from two rows:
- shift_settings of the location (morning/afternoon windows)
- worker_shifts of the worker for that date (morning / afternoon / off)

No settings row, no shift row, or shift "off" → the worker is unavailable
that day (None, not an error). Corrupted settings → ConfigurationError.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.tables import ShiftSettings, WorkerShifts
from .errors import BookingValidationError, ConfigurationError, StoreFailure
from .timeutils import format_time, is_valid_date, parse_time

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = (
    "work_start",
    "work_end",
    "morning_start",
    "morning_end",
    "afternoon_start",
    "afternoon_end",
)


@dataclass(frozen=True)
class ShiftWindow:
    shift_type: str
    start: int
    end: int

    @property
    def start_str(self) -> str:
        return format_time(self.start)

    @property
    def end_str(self) -> str:
        return format_time(self.end)

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


def window_from_settings(settings: ShiftSettings, shift_type: str) -> ShiftWindow | None:
    """Map a shift type onto the location's configured window."""
    if shift_type == "morning":
        raw_start, raw_end = settings.morning_start, settings.morning_end
    elif shift_type == "afternoon":
        raw_start, raw_end = settings.afternoon_start, settings.afternoon_end
    else:
        return None

    start = parse_time(raw_start)
    end = parse_time(raw_end)
    if start is None or end is None or end <= start:
        logger.error(
            f"Inconsistent shift settings: location_id={settings.location_id}, "
            f"{shift_type}={raw_start}-{raw_end}"
        )
        raise ConfigurationError("Shift setup is invalid.")

    return ShiftWindow(shift_type=shift_type, start=start, end=end)


def resolve_shift_window(
    db: Session,
    location_id: int,
    worker_id: int,
    target_date: str,
) -> ShiftWindow | None:
    """
    Resolve the concrete working interval of a worker on a date.

    Returns:
        ShiftWindow, or None when the worker is off that day.
    """
    if not is_valid_date(target_date):
        return None

    try:
        settings = _get_shift_settings(db, location_id)
        shift = _get_worker_shift(db, location_id, worker_id, target_date)
    except SQLAlchemyError as e:
        logger.error(f"Shift lookup failed: worker_id={worker_id}, date={target_date}: {e}")
        raise StoreFailure("Cannot load worker shift.") from e

    if settings is None or shift is None:
        return None

    return window_from_settings(settings, shift.shift_type)


def validate_shift_settings(values: dict) -> dict[str, int]:
    """
    Check a complete set of shift settings before it is written.

    Requires morning_start < morning_end <= afternoon_start < afternoon_end,
    with both windows inside [work_start, work_end].

    Returns:
        Field name → minutes.
    """
    parsed: dict[str, int] = {}
    for field in SETTINGS_FIELDS:
        minutes = parse_time(values.get(field) or "")
        if minutes is None:
            raise BookingValidationError(f"{field} must be in HH:mm format.", field=field)
        parsed[field] = minutes

    if not (
        parsed["morning_start"] < parsed["morning_end"]
        <= parsed["afternoon_start"] < parsed["afternoon_end"]
    ):
        raise BookingValidationError(
            "Shifts must satisfy morning_start < morning_end <= afternoon_start < afternoon_end."
        )
    if parsed["work_start"] > parsed["morning_start"] or parsed["afternoon_end"] > parsed["work_end"]:
        raise BookingValidationError("Both shifts must lie within the work day.")

    return parsed


# ── Database helpers ─────────────────────────────────────────────────────


def _get_shift_settings(db: Session, location_id: int) -> ShiftSettings | None:
    return db.get(ShiftSettings, location_id)


def _get_worker_shift(
    db: Session,
    location_id: int,
    worker_id: int,
    target_date: str,
) -> WorkerShifts | None:
    return (
        db.query(WorkerShifts)
        .filter(
            WorkerShifts.location_id == location_id,
            WorkerShifts.worker_id == worker_id,
            WorkerShifts.date == target_date,
        )
        .first()
    )
