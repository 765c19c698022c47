# backend/salon/services/scheduling/__init__.py
"""
Scheduling engine.

Shift resolution → occupancy → availability on a 20 minute grid, and the
booking/blocking transactions that write to a worker's calendar.
"""

from .config import SchedulingConfig, get_scheduling_config
from .availability import AvailabilityResult, get_available_slots, summarize_calendar
from .shifts import ShiftWindow, resolve_shift_window
from .occupancy import Interval, load_occupied
from .conflicts import ensure_no_conflict
from .transactions import (
    AppointmentBooking,
    AppointmentDraft,
    BlockDraft,
    BlockWrite,
    ClientDetails,
    StaffAppointmentWrite,
    TxState,
    book_appointment,
    save_block,
    save_staff_appointment,
    set_appointment_status,
)
from .shift_ops import ShiftAssignment, cancel_worker_day, plan_week, swap_shifts

__all__ = [
    "SchedulingConfig",
    "get_scheduling_config",
    "AvailabilityResult",
    "get_available_slots",
    "summarize_calendar",
    "ShiftWindow",
    "resolve_shift_window",
    "Interval",
    "load_occupied",
    "ensure_no_conflict",
    "AppointmentBooking",
    "AppointmentDraft",
    "BlockDraft",
    "BlockWrite",
    "ClientDetails",
    "StaffAppointmentWrite",
    "TxState",
    "book_appointment",
    "save_block",
    "save_staff_appointment",
    "set_appointment_status",
    "ShiftAssignment",
    "cancel_worker_day",
    "plan_week",
    "swap_shifts",
]
