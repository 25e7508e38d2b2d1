"""Daily AW capacity arithmetic for a technician."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable, Protocol

from src.modules.schedule.aw import minutes_to_aw

UTILIZATION_HIGH = 80
UTILIZATION_FULL = 100


class AbsenceLike(Protocol):
    from_time: time | str | None
    to_time: time | str | None


class PlannedLike(Protocol):
    aw_planned: int


@dataclass(frozen=True)
class CapacitySnapshot:
    capacity_aw: int
    absence_aw: int
    planned_aw: int
    available_aw: int
    utilization: float
    band: str


def parse_time_of_day(value: time | str) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(value)


def minutes_between(from_time: time | str, to_time: time | str) -> float:
    start = parse_time_of_day(from_time)
    end = parse_time_of_day(to_time)
    anchor = datetime(2000, 1, 1)
    delta = datetime.combine(anchor, end) - datetime.combine(anchor, start)
    return delta.total_seconds() / 60


def is_full_day(absence: AbsenceLike) -> bool:
    return not absence.from_time and not absence.to_time


def calculate_absence_aw(capacity: int, absences: Iterable[AbsenceLike]) -> int:
    absence_aw = 0
    for absence in absences:
        if is_full_day(absence):
            return capacity
        if absence.from_time and absence.to_time:
            absence_aw += minutes_to_aw(minutes_between(absence.from_time, absence.to_time))
    return absence_aw


def calculate_planned_aw(assignments: Iterable[PlannedLike]) -> int:
    return sum(assignment.aw_planned or 0 for assignment in assignments)


def calculate_available_aw(
    capacity: int,
    absences: Iterable[AbsenceLike],
    assignments: Iterable[PlannedLike],
) -> int:
    absence_aw = calculate_absence_aw(capacity, absences)
    planned_aw = calculate_planned_aw(assignments)
    return max(0, capacity - absence_aw - planned_aw)


def calculate_utilization(planned_aw: float, capacity: float) -> float:
    if capacity == 0:
        return 0
    return min(100, planned_aw / capacity * 100)


def utilization_band(percentage: float) -> str:
    if percentage >= UTILIZATION_FULL:
        return "full"
    if percentage >= UTILIZATION_HIGH:
        return "high"
    return "normal"


def capacity_snapshot(
    capacity: int,
    absences: Iterable[AbsenceLike],
    assignments: Iterable[PlannedLike],
) -> CapacitySnapshot:
    absences = list(absences)
    assignments = list(assignments)
    planned_aw = calculate_planned_aw(assignments)
    utilization = calculate_utilization(planned_aw, capacity)
    return CapacitySnapshot(
        capacity_aw=capacity,
        absence_aw=calculate_absence_aw(capacity, absences),
        planned_aw=planned_aw,
        available_aw=calculate_available_aw(capacity, absences, assignments),
        utilization=utilization,
        band=utilization_band(utilization),
    )
