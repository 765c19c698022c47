# backend/salon/services/scheduling/transactions.py
"""
Booking / blocking transactions.

Every write to a worker's calendar runs the same state machine:

    validating → resolving-shift → loading-occupancy → checking-conflict
               → inserting → accepted | rejected | failed

resolving-shift only runs for client bookings; staff-entered appointments and
manual blocks are not bound to the shift window.

checking-conflict is an optimistic pre-flight: two requests can both pass it
before either commits. The overlap guard in the store (models/overlap_guard.py)
runs inside the insert and rejects the loser; that rejection is a normal
409 outcome, not a failure. No lock is held across the flow, so writers for
different workers or dates never wait on each other.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.tables import (
    APPOINTMENT_SOURCES,
    APPOINTMENT_STATUSES,
    Appointments,
    CalendarBlocks,
)
from ..clients import find_or_create_client, normalize_phone
from ..events import emit_event
from .availability import get_worker_service
from .conflicts import ensure_no_conflict, is_overlap_conflict_error
from .errors import (
    BookingValidationError,
    ConfigurationError,
    NotFoundError,
    OutsideShiftError,
    SchedulingError,
    SlotUnavailableError,
    StoreFailure,
    WorkerUnavailableError,
)
from .occupancy import load_occupied
from .shifts import resolve_shift_window
from .timeutils import MINUTES_PER_DAY, format_time, is_valid_date, round_up_to_slot

logger = logging.getLogger(__name__)


class TxState(str, Enum):
    VALIDATING = "validating"
    RESOLVING_SHIFT = "resolving-shift"
    LOADING_OCCUPANCY = "loading-occupancy"
    CHECKING_CONFLICT = "checking-conflict"
    INSERTING = "inserting"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAILED = "failed"


TERMINAL_STATES = {TxState.ACCEPTED, TxState.REJECTED, TxState.FAILED}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class AppointmentDraft:
    location_id: int
    worker_id: int
    service_id: int
    date: str
    start: int  # minutes since midnight
    client_id: int | None = None
    note: str | None = None
    status: str = "pending"
    source: str = "web"


@dataclass
class ClientDetails:
    full_name: str
    phone: str
    email: str | None = None


@dataclass
class BlockDraft:
    location_id: int
    worker_id: int
    date: str
    start: int  # minutes since midnight
    duration: int
    note: str | None = None


class CalendarWrite:
    """
    One write to a worker's calendar, driven through the state machine.

    Subclasses fill in validate() / check_shift() / persist() and the
    target interval; execute() owns the transitions and error mapping.
    """

    kind = "calendar entry"
    requires_shift = False
    conflict_message = "Selected slot is not available."

    def __init__(self, db: Session):
        self.db = db
        self.state = TxState.VALIDATING
        self.history: list[TxState] = [TxState.VALIDATING]
        self.error: SchedulingError | None = None

        # set by validate()
        self.location_id: int | None = None
        self.worker_id: int | None = None
        self.date: str | None = None
        self.start: int | None = None
        self.end: int | None = None

    # ── Hooks ────────────────────────────────────────────────────────────

    def validate(self) -> None:
        raise NotImplementedError

    def check_shift(self) -> None:
        pass

    def occupancy_exclusions(self) -> dict:
        return {}

    @property
    def occupies_calendar(self) -> bool:
        return True

    def persist(self):
        """Stage the row in the session (commit happens in execute())."""
        raise NotImplementedError

    def after_commit(self, row) -> None:
        pass

    # ── State machine ────────────────────────────────────────────────────

    def execute(self):
        """
        Run the transaction to a terminal state.

        Returns:
            The persisted row (accepted).

        Raises:
            SchedulingError subclass (rejected / failed).
        """
        try:
            self.validate()

            if self.requires_shift:
                self._advance(TxState.RESOLVING_SHIFT)
                self.check_shift()

            self._advance(TxState.LOADING_OCCUPANCY)
            occupied = []
            if self.occupies_calendar:
                occupied = load_occupied(
                    self.db,
                    self.location_id,
                    self.worker_id,
                    self.date,
                    **self.occupancy_exclusions(),
                )

            self._advance(TxState.CHECKING_CONFLICT)
            if self.occupies_calendar and not ensure_no_conflict(self.start, self.end, occupied):
                raise SlotUnavailableError(self.conflict_message)

            self._advance(TxState.INSERTING)
            row = self._write()
        except SchedulingError as e:
            self._finish(e)
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error during {self.kind} {self.state.value}: {e}")
            failure = StoreFailure(f"Cannot save {self.kind}.")
            self._finish(failure)
            raise failure from e

        self._advance(TxState.ACCEPTED)
        logger.info(
            f"{self.kind.capitalize()} saved: id={row.id}, worker_id={self.worker_id}, "
            f"date={self.date}, time={format_time(self.start)}-{format_time(self.end)}"
        )
        self.after_commit(row)
        return row

    def _write(self):
        try:
            row = self.persist()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            if is_overlap_conflict_error(e):
                logger.info(
                    f"Store rejected overlapping {self.kind}: worker_id={self.worker_id}, "
                    f"date={self.date}, time={format_time(self.start)}"
                )
                raise SlotUnavailableError(self.conflict_message) from e
            logger.error(f"Cannot save {self.kind}: {e}")
            raise StoreFailure(f"Cannot save {self.kind}.") from e

        self.db.refresh(row)
        return row

    def _advance(self, state: TxState) -> None:
        logger.debug(f"{self.kind}: {self.state.value} → {state.value}")
        self.state = state
        self.history.append(state)

    def _finish(self, error: SchedulingError) -> None:
        self.error = error
        terminal = TxState.FAILED if error.status_code >= 500 else TxState.REJECTED
        failed_in = self.state.value
        self._advance(terminal)
        if terminal is TxState.FAILED:
            logger.error(f"{self.kind} failed in {failed_in}: {error.message}")
        else:
            logger.info(f"{self.kind} rejected in {failed_in}: {error.code} ({error.message})")

    # ── Shared validation ────────────────────────────────────────────────

    def _validate_slot(self, target_date: str, start: int, duration: int, what: str) -> None:
        if not is_valid_date(target_date):
            raise BookingValidationError("date must be in YYYY-MM-DD format.", field="date")
        if start is None or not 0 <= start < MINUTES_PER_DAY:
            raise BookingValidationError("time must be in HH:mm format.", field="time")
        if duration <= 0:
            raise BookingValidationError("duration must be positive.", field="duration")
        if start + duration > MINUTES_PER_DAY:
            raise BookingValidationError(f"{what} exceeds end of day.", field="time")

        self.date = target_date
        self.start = start
        self.end = start + duration


# ──────────────────────────────────────────────────────────────────────────────
# Appointments
# ──────────────────────────────────────────────────────────────────────────────


class AppointmentBooking(CalendarWrite):
    """Client booking from the web: pending, inside the worker's shift."""

    kind = "appointment"
    requires_shift = True

    def __init__(self, db: Session, draft: AppointmentDraft):
        super().__init__(db)
        self.draft = draft
        self.worker_service = None

    def validate(self) -> None:
        draft = self.draft
        self.location_id = draft.location_id
        self.worker_id = draft.worker_id

        if draft.status not in APPOINTMENT_STATUSES:
            raise BookingValidationError(f"Unknown status: {draft.status}.", field="status")
        if draft.source not in APPOINTMENT_SOURCES:
            raise BookingValidationError(f"Unknown source: {draft.source}.", field="source")
        if not is_valid_date(draft.date):
            raise BookingValidationError("date must be in YYYY-MM-DD format.", field="date")

        self.worker_service = get_worker_service(self.db, draft.worker_id, draft.service_id)
        if self.worker_service is None:
            raise NotFoundError("Service is not available for selected worker.")
        if not self.worker_service.duration_min or self.worker_service.duration_min <= 0:
            raise ConfigurationError("Invalid service duration.")

        duration = round_up_to_slot(self.worker_service.duration_min)
        self._validate_slot(draft.date, draft.start, duration, "Appointment")

    def check_shift(self) -> None:
        window = resolve_shift_window(self.db, self.location_id, self.worker_id, self.date)
        if window is None:
            raise WorkerUnavailableError("Worker is off on selected date.")
        if not window.contains(self.start, self.end):
            raise OutsideShiftError("Appointment must be within worker shift.", field="time")

    @property
    def occupies_calendar(self) -> bool:
        return self.draft.status != "cancelled"

    def _snapshot(self) -> dict:
        ws = self.worker_service
        return {
            "service_id": ws.service_id,
            "service_name_snapshot": ws.service.name,
            "duration_min_snapshot": ws.duration_min,
            "price_snapshot": ws.price or 0,
        }

    def persist(self) -> Appointments:
        draft = self.draft
        appointment = Appointments(
            location_id=draft.location_id,
            worker_id=draft.worker_id,
            client_id=draft.client_id,
            date=self.date,
            start_time=format_time(self.start),
            end_time=format_time(self.end),
            note=draft.note or None,
            status=draft.status,
            source=draft.source,
            **self._snapshot(),
        )
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def after_commit(self, row: Appointments) -> None:
        emit_event("appointment_created", {
            "appointment_id": row.id,
            "worker_id": row.worker_id,
            "client_id": row.client_id,
            "date": row.date,
            "start_time": row.start_time,
            "end_time": row.end_time,
            "initiated_by": {"role": "client", "channel": row.source},
        })


class StaffAppointmentWrite(AppointmentBooking):
    """
    Staff-entered appointment (create, or update when appointment_id is set).

    Not bound to the shift window. The client is resolved by phone/e-mail in
    the same database transaction as the appointment.
    """

    requires_shift = False

    def __init__(
        self,
        db: Session,
        draft: AppointmentDraft,
        client: ClientDetails,
        appointment_id: int | None = None,
    ):
        super().__init__(db, draft)
        self.client = client
        self.appointment_id = appointment_id
        self.existing: Appointments | None = None

    def validate(self) -> None:
        if self.appointment_id is not None:
            self.existing = self.db.get(Appointments, self.appointment_id)
            if self.existing is None:
                raise NotFoundError("Appointment not found.")
        if not (self.client.full_name or "").strip():
            raise BookingValidationError("client_name is required.", field="client_name")
        if len(normalize_phone(self.client.phone)) < 6:
            raise BookingValidationError("phone must include at least 6 digits.", field="client_phone")
        super().validate()

    def occupancy_exclusions(self) -> dict:
        if self.appointment_id is None:
            return {}
        return {"exclude_appointment_id": self.appointment_id}

    def persist(self) -> Appointments:
        client = find_or_create_client(
            self.db, self.client.full_name.strip(), self.client.phone, self.client.email
        )
        self.draft.client_id = client.id

        if self.existing is None:
            return super().persist()

        draft = self.draft
        appointment = self.existing
        appointment.location_id = draft.location_id
        appointment.worker_id = draft.worker_id
        appointment.client_id = client.id
        appointment.date = self.date
        appointment.start_time = format_time(self.start)
        appointment.end_time = format_time(self.end)
        appointment.note = draft.note or None
        appointment.status = draft.status
        appointment.source = draft.source
        appointment.updated_at = utc_now_iso()
        for field, value in self._snapshot().items():
            setattr(appointment, field, value)
        self.db.flush()
        return appointment

    def after_commit(self, row: Appointments) -> None:
        pass


def book_appointment(db: Session, draft: AppointmentDraft) -> Appointments:
    """Client booking; raises a SchedulingError on rejection or failure."""
    return AppointmentBooking(db, draft).execute()


def save_staff_appointment(
    db: Session,
    draft: AppointmentDraft,
    client: ClientDetails,
    appointment_id: int | None = None,
) -> Appointments:
    return StaffAppointmentWrite(db, draft, client, appointment_id).execute()


def set_appointment_status(
    db: Session,
    appointment_id: int,
    status: str,
    actor: str = "admin",
    reason: str | None = None,
) -> Appointments:
    """
    Move an appointment to any status.

    Cancelling stamps actor/time/reason; any other status clears them.
    Re-activating a cancelled appointment is re-checked by the store guard.
    """
    if status not in APPOINTMENT_STATUSES:
        raise BookingValidationError(f"Unknown status: {status}.", field="status")

    try:
        appointment = db.get(Appointments, appointment_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Cannot load appointment: id={appointment_id}: {e}")
        raise StoreFailure("Cannot update appointment.") from e
    if appointment is None:
        raise NotFoundError("Appointment not found.")

    now = utc_now_iso()
    appointment.status = status
    appointment.updated_at = now
    if status == "cancelled":
        appointment.cancelled_by = actor
        appointment.cancelled_at = now
        appointment.cancellation_reason = reason
    else:
        appointment.cancelled_by = None
        appointment.cancelled_at = None
        appointment.cancellation_reason = None

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        if is_overlap_conflict_error(e):
            raise SlotUnavailableError("Selected slot is not available.") from e
        logger.error(f"Cannot update appointment status: id={appointment_id}: {e}")
        raise StoreFailure("Cannot update appointment.") from e

    db.refresh(appointment)
    logger.info(f"Appointment status changed: id={appointment_id}, status={status}, by={actor}")
    return appointment


# ──────────────────────────────────────────────────────────────────────────────
# Calendar blocks
# ──────────────────────────────────────────────────────────────────────────────


class BlockWrite(CalendarWrite):
    """Manual block (break, personal time, walk-in hold); create or update."""

    kind = "block"
    conflict_message = "Block overlaps with existing appointment or block."

    def __init__(self, db: Session, draft: BlockDraft, block_id: int | None = None):
        super().__init__(db)
        self.draft = draft
        self.block_id = block_id
        self.existing: CalendarBlocks | None = None
        self.duration: int | None = None

    def validate(self) -> None:
        draft = self.draft
        self.location_id = draft.location_id
        self.worker_id = draft.worker_id

        if self.block_id is not None:
            self.existing = self.db.get(CalendarBlocks, self.block_id)
            if self.existing is None:
                raise NotFoundError("Block not found.")

        if draft.duration is None or draft.duration <= 0:
            raise BookingValidationError("duration must be positive.", field="duration")
        self.duration = round_up_to_slot(draft.duration)
        self._validate_slot(draft.date, draft.start, self.duration, "Block")

    def occupancy_exclusions(self) -> dict:
        if self.block_id is None:
            return {}
        return {"exclude_block_id": self.block_id}

    def persist(self) -> CalendarBlocks:
        draft = self.draft
        values = {
            "location_id": draft.location_id,
            "worker_id": draft.worker_id,
            "date": self.date,
            "start_time": format_time(self.start),
            "end_time": format_time(self.end),
            "duration_min": self.duration,
            "note": draft.note or None,
        }
        if self.existing is None:
            block = CalendarBlocks(**values)
            self.db.add(block)
        else:
            block = self.existing
            for field, value in values.items():
                setattr(block, field, value)
        self.db.flush()
        return block


def save_block(db: Session, draft: BlockDraft, block_id: int | None = None) -> CalendarBlocks:
    return BlockWrite(db, draft, block_id).execute()
