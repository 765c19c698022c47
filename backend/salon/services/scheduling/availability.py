# backend/salon/services/scheduling/availability.py
"""
Availability calculation.

Bookable start times for a worker/service/date:
- shift window of the worker (shifts.resolve_shift_window)
- service duration rounded up to the slot grid
- occupied intervals (occupancy.load_occupied)

Candidates step through the window by the slot grid (not by duration), so
short and long services interleave on the same 20 minute grid. A candidate
must fit entirely inside the window.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...models.tables import (
    Appointments,
    CalendarBlocks,
    ShiftSettings,
    WorkerServices,
    WorkerShifts,
)
from .config import SchedulingConfig, get_scheduling_config
from .conflicts import ensure_no_conflict
from .errors import BookingValidationError, NotFoundError, StoreFailure
from .occupancy import Interval, load_occupied, to_intervals
from .shifts import resolve_shift_window, window_from_settings
from .timeutils import SLOT_STEP_MINUTES, format_time, is_valid_date, round_up_to_slot

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    date: str
    shift_type: str
    shift_start: str | None = None
    shift_end: str | None = None
    duration_min: int = 0
    slots: list[str] = field(default_factory=list)


def build_availability(
    shift_start: int,
    shift_end: int,
    duration_min: int,
    occupied: list[Interval],
) -> list[str]:
    """
    Generate bookable start times inside [shift_start, shift_end).

    Returns:
        Ascending list of "HH:MM". Empty for a degenerate window or duration.
    """
    if shift_end <= shift_start or duration_min <= 0:
        return []

    slots: list[str] = []
    slot_start = shift_start
    while slot_start + duration_min <= shift_end:
        if ensure_no_conflict(slot_start, slot_start + duration_min, occupied):
            slots.append(format_time(slot_start))
        slot_start += SLOT_STEP_MINUTES

    return slots


def get_available_slots(
    db: Session,
    location_id: int,
    worker_id: int,
    service_id: int,
    target_date: str,
) -> AvailabilityResult:
    """Available start times for one worker, service and date."""
    if not is_valid_date(target_date):
        raise BookingValidationError("date must be in YYYY-MM-DD format.", field="date")

    worker_service = get_worker_service(db, worker_id, service_id)
    if worker_service is None:
        raise NotFoundError("Service is not available for selected worker.")

    window = resolve_shift_window(db, location_id, worker_id, target_date)
    if window is None:
        return AvailabilityResult(date=target_date, shift_type="off")

    duration = round_up_to_slot(worker_service.duration_min)
    occupied = load_occupied(db, location_id, worker_id, target_date)
    slots = build_availability(window.start, window.end, duration, occupied)

    logger.debug(
        f"Availability: worker_id={worker_id}, date={target_date}, "
        f"shift={window.shift_type}, duration={duration}, slots={len(slots)}"
    )

    return AvailabilityResult(
        date=target_date,
        shift_type=window.shift_type,
        shift_start=window.start_str,
        shift_end=window.end_str,
        duration_min=duration,
        slots=slots,
    )


def summarize_calendar(
    db: Session,
    location_id: int,
    worker_id: int,
    service_id: int,
    date_from: str,
    date_to: str,
    config: SchedulingConfig | None = None,
) -> list[dict]:
    """
    Per-day overview for a date range: off / free / busy.

    Reads settings, shifts, appointments and blocks for the whole range in
    four queries, then runs the same slot builder per day.
    """
    config = config or get_scheduling_config()
    days = expand_date_range(date_from, date_to, config)

    worker_service = get_worker_service(db, worker_id, service_id)
    if worker_service is None:
        raise NotFoundError("Service is not available for selected worker.")
    duration = round_up_to_slot(worker_service.duration_min)

    try:
        settings = db.get(ShiftSettings, location_id)
        if settings is None:
            return []
        shift_by_date = dict(
            db.query(WorkerShifts.date, WorkerShifts.shift_type)
            .filter(
                WorkerShifts.location_id == location_id,
                WorkerShifts.worker_id == worker_id,
                WorkerShifts.date >= date_from,
                WorkerShifts.date <= date_to,
            )
            .all()
        )
        appointment_rows = (
            db.query(Appointments.date, Appointments.start_time, Appointments.end_time)
            .filter(
                Appointments.location_id == location_id,
                Appointments.worker_id == worker_id,
                Appointments.date >= date_from,
                Appointments.date <= date_to,
                Appointments.status != "cancelled",
            )
            .all()
        )
        block_rows = (
            db.query(CalendarBlocks.date, CalendarBlocks.start_time, CalendarBlocks.end_time)
            .filter(
                CalendarBlocks.location_id == location_id,
                CalendarBlocks.worker_id == worker_id,
                CalendarBlocks.date >= date_from,
                CalendarBlocks.date <= date_to,
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Calendar summary read failed: worker_id={worker_id}: {e}")
        raise StoreFailure("Cannot load worker calendar.") from e

    occupied_by_date: dict[str, list[tuple[str, str]]] = {}
    for row_date, start_time, end_time in [*appointment_rows, *block_rows]:
        occupied_by_date.setdefault(row_date, []).append((start_time, end_time))

    summaries = []
    for day in days:
        shift_type = shift_by_date.get(day, "off")
        window = window_from_settings(settings, shift_type)
        if window is None:
            summaries.append({"date": day, "shift_type": "off", "availability": "off"})
            continue

        slots = build_availability(
            window.start,
            window.end,
            duration,
            to_intervals(occupied_by_date.get(day, [])),
        )
        summaries.append({
            "date": day,
            "shift_type": shift_type,
            "availability": "free" if slots else "busy",
        })

    return summaries


def expand_date_range(
    date_from: str,
    date_to: str,
    config: SchedulingConfig | None = None,
) -> list[str]:
    """Inclusive list of "YYYY-MM-DD" between two dates."""
    config = config or get_scheduling_config()
    if not is_valid_date(date_from) or not is_valid_date(date_to):
        raise BookingValidationError("from and to must be in YYYY-MM-DD format.")
    try:
        start = date.fromisoformat(date_from)
        end = date.fromisoformat(date_to)
    except ValueError:
        raise BookingValidationError("from and to must be real calendar dates.") from None

    if end < start:
        raise BookingValidationError("to must not be before from.", field="to")
    if (end - start).days + 1 > config.max_range_days:
        raise BookingValidationError(
            f"Date range cannot exceed {config.max_range_days} days.", field="to"
        )

    days = []
    current = start
    while current <= end:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days


# ── Database helpers ─────────────────────────────────────────────────────


def get_worker_service(db: Session, worker_id: int, service_id: int) -> WorkerServices | None:
    """Active worker-service pair whose catalog service is active too."""
    try:
        row = (
            db.query(WorkerServices)
            .options(joinedload(WorkerServices.service))
            .filter(
                WorkerServices.worker_id == worker_id,
                WorkerServices.service_id == service_id,
                WorkerServices.is_active == 1,
            )
            .first()
        )
    except SQLAlchemyError as e:
        logger.error(f"Worker service lookup failed: worker_id={worker_id}: {e}")
        raise StoreFailure("Cannot load worker service.") from e

    if row is None or row.service is None or not row.service.is_active:
        return None
    return row
