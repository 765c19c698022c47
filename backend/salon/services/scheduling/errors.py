# backend/salon/services/scheduling/errors.py
"""
Scheduling error taxonomy.

Every failure of the scheduling engine is one of these. The HTTP layer maps
them 1:1 to responses, so a caller can tell "pick another slot" (409) from
"fix your input" (422) from "try again later" (500, retryable) from
"contact support" (500, not retryable).
"""


class SchedulingError(Exception):
    status_code = 500
    code = "scheduling_error"
    retryable = False

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "retryable": self.retryable,
            "field": self.field,
        }


# ── Validation (422) ─────────────────────────────────────────────────────


class BookingValidationError(SchedulingError):
    status_code = 422
    code = "validation_error"


class WorkerUnavailableError(SchedulingError):
    status_code = 422
    code = "worker_unavailable"


class OutsideShiftError(SchedulingError):
    status_code = 422
    code = "outside_shift"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"


# ── Availability conflicts (409) ─────────────────────────────────────────


class AvailabilityConflict(SchedulingError):
    status_code = 409
    code = "conflict"


class SlotUnavailableError(AvailabilityConflict):
    code = "slot_unavailable"


class SwapBlockedError(AvailabilityConflict):
    code = "swap_blocked"


class CapacityError(AvailabilityConflict):
    code = "capacity_exceeded"


# ── Infrastructure / configuration (500) ─────────────────────────────────


class StoreFailure(SchedulingError):
    code = "store_failure"
    retryable = True


class ConfigurationError(SchedulingError):
    code = "configuration_error"
