import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from salon.models.tables import Appointments, CalendarBlocks, ShiftSettings
from salon.services.scheduling import load_occupied, resolve_shift_window
from salon.services.scheduling import occupancy
from salon.services.scheduling.conflicts import ensure_no_conflict, is_overlap_conflict_error
from salon.services.scheduling.errors import BookingValidationError, ConfigurationError, StoreFailure
from salon.services.scheduling.occupancy import Interval
from salon.services.scheduling.shifts import validate_shift_settings


# ── Shift resolver ───────────────────────────────────────────────────────


def test_morning_and_afternoon_windows(db, seed):
    morning = resolve_shift_window(db, seed["location_id"], seed["anna"], seed["date"])
    afternoon = resolve_shift_window(db, seed["location_id"], seed["ben"], seed["date"])

    assert (morning.shift_type, morning.start_str, morning.end_str) == ("morning", "08:00", "14:00")
    assert (afternoon.shift_type, afternoon.start, afternoon.end) == ("afternoon", 840, 1200)


def test_unavailable_cases_return_none(db, seed):
    assert resolve_shift_window(db, seed["location_id"], seed["anna"], "2025-03-20") is None
    assert resolve_shift_window(db, seed["location_id"], seed["anna"], "not-a-date") is None
    assert resolve_shift_window(db, 999, seed["anna"], seed["date"]) is None


def test_inverted_settings_window_raises(db, seed):
    settings = db.get(ShiftSettings, seed["location_id"])
    settings.afternoon_start = "21:00"
    db.commit()

    with pytest.raises(ConfigurationError):
        resolve_shift_window(db, seed["location_id"], seed["ben"], seed["date"])


def test_unparseable_settings_time_raises(db, seed):
    settings = db.get(ShiftSettings, seed["location_id"])
    settings.morning_start = "8:00"
    db.commit()

    with pytest.raises(ConfigurationError):
        resolve_shift_window(db, seed["location_id"], seed["anna"], seed["date"])


def test_shift_settings_validation():
    good = {
        "work_start": "08:00", "work_end": "20:00",
        "morning_start": "08:00", "morning_end": "14:00",
        "afternoon_start": "14:00", "afternoon_end": "20:00",
    }
    assert validate_shift_settings(good)["afternoon_end"] == 1200

    with pytest.raises(BookingValidationError):
        validate_shift_settings({**good, "morning_end": "15:00"})
    with pytest.raises(BookingValidationError):
        validate_shift_settings({**good, "work_end": "19:00"})
    with pytest.raises(BookingValidationError) as exc_info:
        validate_shift_settings({**good, "morning_start": "8am"})
    assert exc_info.value.field == "morning_start"


# ── Occupancy loader ─────────────────────────────────────────────────────


def _appointment(seed, start, end, status="confirmed", worker="anna", date=None):
    return Appointments(
        location_id=seed["location_id"], worker_id=seed[worker], client_id=seed["client_id"],
        service_id=seed["haircut"], service_name_snapshot="Haircut", duration_min_snapshot=30,
        date=date or seed["date"], start_time=start, end_time=end, status=status,
    )


def test_occupancy_combines_appointments_and_blocks(db, seed):
    db.add_all([
        _appointment(seed, "09:00", "09:40"),
        _appointment(seed, "10:00", "10:40", status="cancelled"),
        _appointment(seed, "15:00", "15:40", worker="ben"),
        _appointment(seed, "11:00", "11:40", date="2025-03-15"),
        CalendarBlocks(
            location_id=seed["location_id"], worker_id=seed["anna"], date=seed["date"],
            start_time="12:00", end_time="12:20", duration_min=20,
        ),
    ])
    db.commit()

    occupied = load_occupied(db, seed["location_id"], seed["anna"], seed["date"])
    assert sorted(occupied) == [Interval(540, 580), Interval(720, 740)]


def test_occupancy_exclusions(db, seed):
    appointment = _appointment(seed, "09:00", "09:40")
    blk = CalendarBlocks(
        location_id=seed["location_id"], worker_id=seed["anna"], date=seed["date"],
        start_time="12:00", end_time="12:20", duration_min=20,
    )
    db.add_all([appointment, blk])
    db.commit()

    assert load_occupied(
        db, seed["location_id"], seed["anna"], seed["date"], exclude_appointment_id=appointment.id
    ) == [Interval(720, 740)]
    assert load_occupied(
        db, seed["location_id"], seed["anna"], seed["date"], exclude_block_id=blk.id
    ) == [Interval(540, 580)]


def test_malformed_rows_are_skipped():
    assert occupancy.to_intervals([("09:00", "09:40"), ("9:00", "10:00"), ("10:00", None)]) == [
        Interval(540, 580),
    ]


def test_read_failure_in_either_source_fails_whole_read(db, seed, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(occupancy, "_get_block_times", broken)
    with pytest.raises(StoreFailure):
        load_occupied(db, seed["location_id"], seed["anna"], seed["date"])


# ── Conflict guard ───────────────────────────────────────────────────────


def test_ensure_no_conflict():
    occupied = [Interval(600, 640)]
    assert ensure_no_conflict(560, 600, occupied)
    assert ensure_no_conflict(640, 660, occupied)
    assert not ensure_no_conflict(620, 660, occupied)
    assert not ensure_no_conflict(560, 700, occupied)
    assert not ensure_no_conflict(600, 600, [])
    assert not ensure_no_conflict(640, 600, [])
    assert ensure_no_conflict(600, 640, [])


class _PgError(Exception):
    pgcode = "23P01"


def test_overlap_error_recognition():
    assert is_overlap_conflict_error(IntegrityError("INSERT", {}, _PgError("conflicting key")))
    assert is_overlap_conflict_error(
        IntegrityError("INSERT", {}, Exception("calendar slot overlaps an existing appointment"))
    )
    assert not is_overlap_conflict_error(IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed")))
    assert not is_overlap_conflict_error(None)
