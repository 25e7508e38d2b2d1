from datetime import time
from types import SimpleNamespace

import pytest

from src.modules.schedule.capacity import (
    calculate_absence_aw,
    calculate_available_aw,
    calculate_utilization,
    capacity_snapshot,
    utilization_band,
)
from src.modules.schedule.service import get_capacity
from src.shared.enums import AbsenceStatus, AssignmentStatus


def _absence(from_time=None, to_time=None):
    return SimpleNamespace(from_time=from_time, to_time=to_time)


def _planned(aw):
    return SimpleNamespace(aw_planned=aw)


def test_full_day_absence_consumes_whole_capacity():
    assert calculate_absence_aw(80, [_absence()]) == 80
    assert calculate_available_aw(80, [_absence()], []) == 0


def test_partial_absence_and_planned_work_reduce_availability():
    absences = [_absence(time(13, 0), time(15, 0))]
    assert calculate_absence_aw(80, absences) == 20
    assert calculate_available_aw(80, absences, [_planned(10), _planned(20)]) == 30


def test_absence_times_may_be_strings():
    assert calculate_absence_aw(80, [_absence("08:00", "09:30")]) == 15


def test_availability_never_negative():
    assert calculate_available_aw(80, [], [_planned(60), _planned(40)]) == 0


def test_utilization_is_clamped_and_banded():
    assert calculate_utilization(40, 80) == 50
    assert calculate_utilization(120, 80) == 100
    assert calculate_utilization(10, 0) == 0
    assert utilization_band(79.9) == "normal"
    assert utilization_band(80) == "high"
    assert utilization_band(100) == "full"


def test_snapshot_combines_all_figures():
    snapshot = capacity_snapshot(80, [_absence(time(13, 0), time(15, 0))], [_planned(30)])
    assert snapshot.capacity_aw == 80
    assert snapshot.absence_aw == 20
    assert snapshot.planned_aw == 30
    assert snapshot.available_aw == 30
    assert snapshot.utilization == pytest.approx(37.5)
    assert snapshot.band == "normal"


@pytest.mark.asyncio
async def test_capacity_ignores_cancelled_work_and_rejected_absences(db_session, seed):
    technician = await seed.technician(capacity=None)
    job = await seed.appointment(aw=30)
    dropped = await seed.appointment(title="Tyres", aw=20)
    await seed.assignment(job, technician, seed.at(8), seed.at(11))
    await seed.assignment(dropped, technician, seed.at(11), seed.at(13), status=AssignmentStatus.CANCELLED)
    await seed.absence(technician, time(14, 0), time(16, 0))
    await seed.absence(technician, status=AbsenceStatus.REJECTED)

    capacity = await get_capacity(technician.technician_id, seed.day, db_session)

    # NULL capacity falls back to the workshop default of 80 AW.
    assert capacity.capacity_aw == 80
    assert capacity.absence_aw == 20
    assert capacity.planned_aw == 30
    assert capacity.available_aw == 30
