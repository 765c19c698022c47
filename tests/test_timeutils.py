import pytest

from salon.services.scheduling.timeutils import (
    format_time,
    intervals_overlap,
    is_valid_date,
    parse_time,
    round_up_to_slot,
)


@pytest.mark.parametrize("value, expected", [
    ("00:00", 0),
    ("09:20", 560),
    ("23:59", 1439),
])
def test_parse_time_accepts_hh_mm(value, expected):
    assert parse_time(value) == expected


@pytest.mark.parametrize("value", [
    "24:00", "12:60", "9:00", "09:0", "0900", "09:00:00", " 09:00", "09:00\n", "", None, 540,
])
def test_parse_time_rejects_other_shapes(value):
    assert parse_time(value) is None


def test_format_time_clamps():
    assert format_time(0) == "00:00"
    assert format_time(560) == "09:20"
    assert format_time(-15) == "00:00"
    assert format_time(1440) == "23:59"


def test_format_parse_inverse_for_every_minute():
    for minutes in range(0, 1440, 7):
        assert parse_time(format_time(minutes)) == minutes


@pytest.mark.parametrize("duration, expected", [
    (1, 20), (5, 20), (20, 20), (21, 40), (30, 40), (45, 60), (60, 60), (240, 240),
])
def test_round_up_to_slot(duration, expected):
    assert round_up_to_slot(duration) == expected


def test_intervals_overlap_is_half_open_and_symmetric():
    assert intervals_overlap(600, 640, 620, 660)
    assert intervals_overlap(620, 660, 600, 640)
    assert intervals_overlap(600, 700, 620, 640)
    assert not intervals_overlap(600, 640, 640, 680)
    assert not intervals_overlap(640, 680, 600, 640)


def test_is_valid_date_checks_shape_only():
    assert is_valid_date("2025-03-14")
    assert is_valid_date("2025-02-30")
    assert not is_valid_date("2025-3-14")
    assert not is_valid_date("14.03.2025")
    assert not is_valid_date("2025-03-14T10:00")
    assert not is_valid_date(None)
