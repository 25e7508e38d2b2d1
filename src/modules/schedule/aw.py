"""AW (Arbeitswerte) arithmetic.

One AW is six minutes of workshop time. Everything here is pure: callers pass
datetimes already localized to the workshop timezone.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

MINUTES_PER_AW = 6
DEFAULT_AW_CAPACITY = 80
DEFAULT_GRID_MINUTES = 15
MIN_ASSIGNMENT_MINUTES = 15


@dataclass(frozen=True)
class WorkingHours:
    start: int = 7
    end: int = 18

    @property
    def label(self) -> str:
        return f"{self.start:02d}:00-{self.end:02d}:00"


DEFAULT_WORKING_HOURS = WorkingHours()


@dataclass(frozen=True)
class TimeSlot:
    hour: int
    minute: int
    starts_at: datetime
    is_working_hour: bool = True

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def aw_to_minutes(aw: float) -> float:
    return aw * MINUTES_PER_AW


def minutes_to_aw(minutes: float) -> int:
    return _round_half_up(minutes / MINUTES_PER_AW)


def aw_to_hours(aw: float) -> float:
    return aw_to_minutes(aw) / 60


def hours_to_aw(hours: float) -> int:
    return minutes_to_aw(hours * 60)


def calculate_end_time(start: datetime, aw: float) -> datetime:
    return start + timedelta(minutes=aw_to_minutes(aw))


def calculate_aw(start: datetime, end: datetime) -> int:
    """AW between two instants; negative when ``end`` precedes ``start``."""
    return minutes_to_aw((end - start).total_seconds() / 60)


def time_ranges_overlap(start_1, end_1, start_2, end_2) -> bool:
    """Half-open overlap test; ranges that only touch do not overlap."""
    return start_1 < end_2 and end_1 > start_2


def snap_to_grid(value: datetime, grid_minutes: int = DEFAULT_GRID_MINUTES) -> datetime:
    """Round to the nearest grid line (halves round up), dropping seconds."""
    snapped_minutes = _round_half_up(value.minute / grid_minutes) * grid_minutes
    base = value.replace(minute=0, second=0, microsecond=0)
    return base + timedelta(minutes=snapped_minutes)


def next_grid_boundary(value: datetime, grid_minutes: int = DEFAULT_GRID_MINUTES) -> datetime:
    """Round the minute up to the next grid line, dropping seconds."""
    remainder = value.minute % grid_minutes
    bump = 0 if remainder == 0 else grid_minutes - remainder
    return value.replace(second=0, microsecond=0) + timedelta(minutes=bump)


def default_duration_minutes(aw_estimate: int) -> int:
    return max(int(aw_to_minutes(aw_estimate)), MIN_ASSIGNMENT_MINUTES)


def is_within_working_hours(value: datetime | time, hours: WorkingHours = DEFAULT_WORKING_HOURS) -> bool:
    # Hour granularity only: 17:59 passes, 18:00 does not.
    return hours.start <= value.hour < hours.end


def working_hours_for(day: date, tz=None, hours: WorkingHours = DEFAULT_WORKING_HOURS) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time(hours.start), tz)
    if hours.end >= 24:
        end = datetime.combine(day + timedelta(days=1), time.min, tz)
    else:
        end = datetime.combine(day, time(hours.end), tz)
    return start, end


def generate_time_slots(
    day: date,
    grid_minutes: int = DEFAULT_GRID_MINUTES,
    tz=None,
    hours: WorkingHours = DEFAULT_WORKING_HOURS,
) -> list[TimeSlot]:
    slots: list[TimeSlot] = []
    for hour in range(hours.start, hours.end):
        for minute in range(0, 60, grid_minutes):
            slots.append(
                TimeSlot(
                    hour=hour,
                    minute=minute,
                    starts_at=datetime.combine(day, time(hour, minute), tz),
                )
            )
    return slots


def total_working_minutes(hours: WorkingHours = DEFAULT_WORKING_HOURS) -> int:
    return (hours.end - hours.start) * 60


def total_working_aw(hours: WorkingHours = DEFAULT_WORKING_HOURS) -> int:
    return minutes_to_aw(total_working_minutes(hours))


def format_aw(aw: float) -> str:
    return f"{aw} AW"


def format_duration_from_aw(aw: int) -> str:
    minutes = int(aw_to_minutes(aw))
    hours, remaining = divmod(minutes, 60)
    if hours and remaining:
        return f"{hours}h {remaining}m"
    if hours:
        return f"{hours}h"
    return f"{remaining}m"
