"""Pre-commit checks for a proposed schedule assignment.

``validate_assignment`` never touches the database and never raises for
domain problems: every problem becomes a :class:`Finding`. Callers decide
what to do with the verdict; only findings of type ``error`` block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, tzinfo
from typing import Any, Iterable

from src.modules.schedule.aw import (
    DEFAULT_AW_CAPACITY,
    DEFAULT_WORKING_HOURS,
    WorkingHours,
    is_within_working_hours,
    time_ranges_overlap,
)
from src.modules.schedule.capacity import calculate_planned_aw, is_full_day, parse_time_of_day
from src.shared.enums import AppointmentFlag, FindingType

SLA_CRITICAL_HOURS = 2
SLA_APPROACHING_HOURS = 4
NEAR_CAPACITY_PERCENT = 90
FULL_CAPACITY_PERCENT = 100

ACTION_BLOCKED = "Cannot Schedule"
ACTION_OVERRIDE = "Schedule Anyway"
ACTION_SCHEDULE = "Schedule"
ALL_PASSED_MESSAGE = "All validations passed. Ready to schedule."


@dataclass(frozen=True)
class Finding:
    code: str
    type: FindingType
    message: str
    is_valid: bool


@dataclass
class ValidationReport:
    findings: list[Finding] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(item.type == FindingType.ERROR for item in self.findings)

    @property
    def has_warnings(self) -> bool:
        return any(item.type == FindingType.WARNING for item in self.findings)

    @property
    def can_schedule(self) -> bool:
        return not self.has_errors

    @property
    def action(self) -> str:
        if self.has_errors:
            return ACTION_BLOCKED
        if self.has_warnings:
            return ACTION_OVERRIDE
        return ACTION_SCHEDULE

    @property
    def summary(self) -> str:
        if not self.findings:
            return ALL_PASSED_MESSAGE
        return "; ".join(item.message for item in self.findings)

    def codes(self) -> list[str]:
        return [item.code for item in self.findings]

    def as_payload(self) -> dict:
        """JSON-ready form used in conflict responses."""
        return {
            "findings": [
                {"code": item.code, "type": item.type.value, "message": item.message, "is_valid": item.is_valid}
                for item in self.findings
            ],
            "has_errors": self.has_errors,
            "has_warnings": self.has_warnings,
            "can_schedule": self.can_schedule,
            "action": self.action,
            "summary": self.summary,
        }


def technician_skills(technician: Any) -> list[str]:
    """Catalog skills win, then free-form tags, then the legacy specialization text."""
    links = getattr(technician, "skill_links", None) or []
    catalog = [link.skill.name for link in links if getattr(link, "skill", None) is not None]
    if catalog:
        return catalog
    tags = getattr(technician, "skills", None) or []
    if tags:
        return [tag for tag in tags if tag]
    specialization = getattr(technician, "specialization", None) or ""
    return [token for token in specialization.split(", ") if token]


def missing_skills(required: Iterable[str], available: Iterable[str]) -> list[str]:
    available_lower = [skill.lower() for skill in available]
    return [
        skill
        for skill in required
        if not any(skill.lower() in candidate for candidate in available_lower)
    ]


def effective_capacity(technician: Any, default: int = DEFAULT_AW_CAPACITY) -> int:
    capacity = getattr(technician, "aw_capacity_per_day", None)
    return default if capacity is None else capacity


def capacity_percentage(total_aw: float, capacity: float) -> float:
    if capacity <= 0:
        return float("inf") if total_aw > 0 else 0.0
    return total_aw / capacity * 100


def _align(value: datetime, tz: tzinfo | None) -> datetime:
    if tz is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _time_of_day(value: datetime) -> time:
    return value.time().replace(tzinfo=None)


def _absence_conflicts(absences: Iterable[Any], start: datetime, end: datetime) -> bool:
    start_tod, end_tod = _time_of_day(start), _time_of_day(end)
    for absence in absences:
        if is_full_day(absence):
            return True
        if absence.from_time and absence.to_time:
            absence_start = parse_time_of_day(absence.from_time).replace(tzinfo=None)
            absence_end = parse_time_of_day(absence.to_time).replace(tzinfo=None)
            if time_ranges_overlap(start_tod, end_tod, absence_start, absence_end):
                return True
    return False


def validate_assignment(
    appointment: Any,
    technician: Any,
    start: datetime,
    end: datetime,
    existing_assignments: Iterable[Any],
    absences: Iterable[Any],
    *,
    hours: WorkingHours = DEFAULT_WORKING_HOURS,
    default_capacity: int = DEFAULT_AW_CAPACITY,
    tz: tzinfo | None = None,
) -> ValidationReport:
    """Run every scheduling check against a proposed (technician, start, end)."""
    existing_assignments = list(existing_assignments)
    start, end = _align(start, tz), _align(end, tz)
    report = ValidationReport()
    add = report.findings.append

    if _absence_conflicts(absences, start, end):
        add(Finding("absence", FindingType.ERROR, "Technician is absent during this time period", False))

    if any(
        time_ranges_overlap(start, end, _align(other.start_time, tz), _align(other.end_time, tz))
        for other in existing_assignments
    ):
        add(Finding("double_booking", FindingType.ERROR, "Time slot conflicts with existing assignment", False))

    if not is_within_working_hours(start, hours) or not is_within_working_hours(end, hours):
        add(
            Finding(
                "working_hours",
                FindingType.ERROR,
                f"Appointment is outside working hours ({hours.label})",
                False,
            )
        )

    lacking = missing_skills(appointment.required_skills or [], technician_skills(technician))
    if lacking:
        add(
            Finding(
                "skills",
                FindingType.WARNING,
                f"Technician may lack required skills: {', '.join(lacking)}",
                False,
            )
        )

    if appointment.sla_promised_at is not None:
        sla = _align(appointment.sla_promised_at, tz)
        hours_until_sla = (sla - start).total_seconds() / 3600
        if hours_until_sla < SLA_CRITICAL_HOURS:
            # Reported as a warning but flagged not-valid; the verdict uses type only.
            add(Finding("sla_critical", FindingType.WARNING, "SLA deadline is very close (< 2 hours)", False))
        elif hours_until_sla < SLA_APPROACHING_HOURS:
            add(Finding("sla_approaching", FindingType.WARNING, "SLA deadline is approaching (< 4 hours)", True))

    flags = set(appointment.flags or [])
    if AppointmentFlag.VEHICLE_ONSITE not in flags:
        add(Finding("vehicle_not_onsite", FindingType.INFO, "Vehicle may not be onsite yet", True))
    if AppointmentFlag.PARTS_ORDERED in flags:
        add(Finding("parts_on_order", FindingType.WARNING, "Parts are still on order", True))

    total_aw = calculate_planned_aw(existing_assignments) + appointment.aw_estimate
    percentage = capacity_percentage(total_aw, effective_capacity(technician, default_capacity))
    if percentage >= FULL_CAPACITY_PERCENT:
        add(Finding("overbooked", FindingType.ERROR, "Technician would be overbooked", False))
    elif percentage >= NEAR_CAPACITY_PERCENT:
        add(Finding("near_capacity", FindingType.WARNING, "Technician would be near capacity", True))

    return report
