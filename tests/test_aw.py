from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from src.modules.schedule.aw import (
    WorkingHours,
    aw_to_hours,
    aw_to_minutes,
    calculate_aw,
    calculate_end_time,
    default_duration_minutes,
    format_aw,
    format_duration_from_aw,
    generate_time_slots,
    hours_to_aw,
    is_within_working_hours,
    minutes_to_aw,
    next_grid_boundary,
    snap_to_grid,
    time_ranges_overlap,
    total_working_aw,
    working_hours_for,
)

TZ = ZoneInfo("Europe/Berlin")


def _at(hour, minute=0, second=0):
    return datetime(2026, 3, 10, hour, minute, second, tzinfo=TZ)


def test_one_aw_is_six_minutes():
    assert aw_to_minutes(1) == 6
    assert aw_to_minutes(15) == 90
    assert aw_to_hours(10) == 1
    assert hours_to_aw(1.5) == 15


@pytest.mark.parametrize("aw", [0, 1, 7, 15, 80, 133])
def test_whole_aw_survive_minutes_round_trip(aw):
    assert minutes_to_aw(aw_to_minutes(aw)) == aw


def test_minutes_to_aw_rounds_half_up():
    assert minutes_to_aw(2) == 0
    assert minutes_to_aw(3) == 1
    assert minutes_to_aw(9) == 2


def test_end_time_and_aw_between_instants():
    start = _at(9)
    end = calculate_end_time(start, 15)
    assert end == _at(10, 30)
    assert calculate_aw(start, end) == 15
    assert calculate_aw(end, start) == -15


def test_overlap_is_symmetric_and_touching_ranges_do_not_overlap():
    a = (_at(9), _at(10))
    b = (_at(9, 30), _at(11))
    adjacent = (_at(10), _at(11))
    assert time_ranges_overlap(*a, *b)
    assert time_ranges_overlap(*b, *a)
    assert not time_ranges_overlap(*a, *adjacent)
    assert not time_ranges_overlap(*adjacent, *a)


def test_containment_counts_as_overlap():
    assert time_ranges_overlap(_at(8), _at(12), _at(9), _at(10))
    assert time_ranges_overlap(_at(9), _at(10), _at(8), _at(12))


def test_snap_to_grid_rounds_to_nearest_line():
    assert snap_to_grid(_at(9, 7, 40)) == _at(9)
    assert snap_to_grid(_at(9, 8)) == _at(9, 15)
    assert snap_to_grid(_at(9, 53)) == _at(10)
    assert snap_to_grid(_at(9, 22), grid_minutes=30) == _at(9, 30)


def test_next_grid_boundary_only_moves_forward():
    assert next_grid_boundary(_at(9, 1)) == _at(9, 15)
    assert next_grid_boundary(_at(9, 15, 30)) == _at(9, 15)
    assert next_grid_boundary(_at(9, 46)) == _at(10)


def test_short_jobs_get_minimum_block():
    assert default_duration_minutes(1) == 15
    assert default_duration_minutes(15) == 90


def test_working_hours_are_hour_granular():
    hours = WorkingHours(7, 18)
    assert is_within_working_hours(time(7, 0), hours)
    assert is_within_working_hours(time(17, 59), hours)
    assert not is_within_working_hours(time(18, 0), hours)
    assert not is_within_working_hours(_at(6, 45), hours)


def test_working_day_bounds_and_slots():
    start, end = working_hours_for(date(2026, 3, 10), TZ)
    assert start == _at(7)
    assert end == _at(18)

    slots = generate_time_slots(date(2026, 3, 10), 15, TZ)
    assert len(slots) == 44
    assert slots[0].label == "07:00"
    assert slots[-1].label == "17:45"
    assert total_working_aw() == 110


def test_aw_display_formats():
    assert format_aw(15) == "15 AW"
    assert format_duration_from_aw(15) == "1h 30m"
    assert format_duration_from_aw(10) == "1h"
    assert format_duration_from_aw(2) == "12m"
