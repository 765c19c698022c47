# backend/salon/services/scheduling/shift_ops.py
"""
Batch operations on a worker's day: shift swap, day cancellation, week plan.

Each is a precondition read followed by one batch write in a single commit.
The preconditions are not re-checked at write time; a booking that lands in
between is not blocked (no retry either).
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.tables import SHIFT_TYPES, Appointments, Workers, WorkerShifts
from ..events import emit_event
from .errors import BookingValidationError, StoreFailure, SwapBlockedError
from .timeutils import is_valid_date
from .transactions import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass
class ShiftAssignment:
    worker_id: int
    date: str
    shift_type: str


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Cannot save {what}: {e}")
        raise StoreFailure(f"Cannot save {what}.") from e


# ──────────────────────────────────────────────────────────────────────────────
# Swap
# ──────────────────────────────────────────────────────────────────────────────


def swap_shifts(
    db: Session,
    location_id: int,
    target_date: str,
    worker_a: int,
    worker_b: int,
) -> tuple[WorkerShifts, WorkerShifts]:
    """
    Exchange the shift types of two workers on a date.

    Only allowed while neither worker has a live appointment that day.
    """
    if worker_a == worker_b:
        raise BookingValidationError("Swap needs two different workers.", field="worker_b_id")
    if not is_valid_date(target_date):
        raise BookingValidationError("date must be in YYYY-MM-DD format.", field="date")

    try:
        booked = (
            db.query(Appointments.id)
            .filter(
                Appointments.location_id == location_id,
                Appointments.date == target_date,
                Appointments.worker_id.in_([worker_a, worker_b]),
                Appointments.status != "cancelled",
            )
            .count()
        )
        shifts = (
            db.query(WorkerShifts)
            .filter(
                WorkerShifts.location_id == location_id,
                WorkerShifts.date == target_date,
                WorkerShifts.worker_id.in_([worker_a, worker_b]),
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Swap precondition read failed: date={target_date}: {e}")
        raise StoreFailure("Cannot load shifts.") from e

    if booked:
        raise SwapBlockedError(
            "Swap is allowed only if both workers have zero appointments on selected date."
        )

    by_worker = {s.worker_id: s for s in shifts}
    shift_a = by_worker.get(worker_a)
    shift_b = by_worker.get(worker_b)
    if shift_a is None or shift_b is None:
        raise BookingValidationError("Both workers must have assigned shifts on selected date.")

    shift_a.shift_type, shift_b.shift_type = shift_b.shift_type, shift_a.shift_type
    _commit(db, "shift swap")

    logger.info(
        f"Shifts swapped: date={target_date}, worker {worker_a}→{shift_a.shift_type}, "
        f"worker {worker_b}→{shift_b.shift_type}"
    )
    return shift_a, shift_b


# ──────────────────────────────────────────────────────────────────────────────
# Cancel a worker's day
# ──────────────────────────────────────────────────────────────────────────────


def cancel_worker_day(
    db: Session,
    location_id: int,
    worker_id: int,
    target_date: str,
    reason: str,
    cancelled_by: str = "admin",
) -> int:
    """
    Cancel every live appointment of a worker on a date.

    Returns:
        Number of cancelled appointments (0 when there was nothing to cancel).
    """
    reason = (reason or "").strip()
    if not reason:
        raise BookingValidationError("reason is required.", field="reason")
    if not is_valid_date(target_date):
        raise BookingValidationError("date must be in YYYY-MM-DD format.", field="date")

    try:
        appointments = (
            db.query(Appointments)
            .filter(
                Appointments.location_id == location_id,
                Appointments.worker_id == worker_id,
                Appointments.date == target_date,
                Appointments.status != "cancelled",
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Cannot load appointments: worker_id={worker_id}, date={target_date}: {e}")
        raise StoreFailure("Cannot load appointments.") from e

    if not appointments:
        return 0

    now = utc_now_iso()
    for appointment in appointments:
        appointment.status = "cancelled"
        appointment.cancelled_by = cancelled_by
        appointment.cancellation_reason = reason
        appointment.cancelled_at = now
        appointment.updated_at = now

    _commit(db, "cancellations")
    logger.info(
        f"Worker day cancelled: worker_id={worker_id}, date={target_date}, "
        f"appointments={len(appointments)}"
    )

    for appointment in appointments:
        emit_event("appointment_cancelled", {
            "appointment_id": appointment.id,
            "client_id": appointment.client_id,
            "worker_id": worker_id,
            "service_name": appointment.service_name_snapshot,
            "date": appointment.date,
            "start_time": appointment.start_time,
            "reason": reason,
            "initiated_by": {"role": cancelled_by},
        })

    return len(appointments)


# ──────────────────────────────────────────────────────────────────────────────
# Week plan
# ──────────────────────────────────────────────────────────────────────────────


def plan_week(
    db: Session,
    location_id: int,
    shifts: list[ShiftAssignment],
) -> int:
    """
    Upsert worker shifts keyed by (worker, date).

    Every row is validated before anything is written. A later row for the
    same worker and date replaces an earlier one.

    Returns:
        Number of distinct (worker, date) rows written.
    """
    if not shifts:
        raise BookingValidationError("shifts must not be empty.", field="shifts")

    planned: dict[tuple[int, str], str] = {}
    for item in shifts:
        if not item.worker_id or not is_valid_date(item.date) or item.shift_type not in SHIFT_TYPES:
            raise BookingValidationError(
                "Each shift must include worker_id, date, shift_type.", field="shifts"
            )
        planned[(item.worker_id, item.date)] = item.shift_type

    worker_ids = {worker_id for worker_id, _ in planned}
    dates = {day for _, day in planned}

    try:
        known = {
            row.id
            for row in db.query(Workers.id)
            .filter(Workers.location_id == location_id, Workers.id.in_(worker_ids))
            .all()
        }
        existing = {
            (row.worker_id, row.date): row
            for row in db.query(WorkerShifts)
            .filter(
                WorkerShifts.worker_id.in_(worker_ids),
                WorkerShifts.date.in_(dates),
            )
            .all()
        }
    except SQLAlchemyError as e:
        logger.error(f"Week plan read failed: location_id={location_id}: {e}")
        raise StoreFailure("Cannot load shifts.") from e

    unknown = worker_ids - known
    if unknown:
        raise BookingValidationError(
            f"Unknown workers for location: {sorted(unknown)}.", field="shifts"
        )

    for (worker_id, day), shift_type in planned.items():
        row = existing.get((worker_id, day))
        if row is None:
            db.add(WorkerShifts(
                location_id=location_id,
                worker_id=worker_id,
                date=day,
                shift_type=shift_type,
            ))
        else:
            row.location_id = location_id
            row.shift_type = shift_type

    _commit(db, "week plan")
    logger.info(f"Week plan saved: location_id={location_id}, shifts={len(planned)}")
    return len(planned)
