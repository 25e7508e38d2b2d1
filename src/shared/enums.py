"""Shared enumerations used across modules."""

from __future__ import annotations

from enum import StrEnum
from typing import Iterable, TypeVar

EnumType = TypeVar("EnumType", bound=StrEnum)


def enum_values(enum_cls: Iterable[EnumType]) -> list[str]:
    """Return the .value for each enum member (used by SQLAlchemy)."""
    return [member.value for member in enum_cls]


class UserRole(StrEnum):
    ADMIN = "admin"
    TECHNICIAN = "technician"


class AppointmentStatus(StrEnum):
    """Planning-board status of an appointment."""

    WAITING = "waiting"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})

# Older screens and imported rows still use these values.
LEGACY_STATUS_ALIASES: dict[str, AppointmentStatus] = {
    "new": AppointmentStatus.WAITING,
    "pending": AppointmentStatus.WAITING,
    "scheduled": AppointmentStatus.ASSIGNED,
    "done": AppointmentStatus.COMPLETED,
    "delivered": AppointmentStatus.COMPLETED,
    "waiting_parts": AppointmentStatus.PAUSED,
}


def normalize_status(value: str | AppointmentStatus) -> AppointmentStatus:
    """Map canonical or legacy status strings onto AppointmentStatus."""
    if isinstance(value, AppointmentStatus):
        return value
    key = str(value).strip().lower()
    if key in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[key]
    try:
        return AppointmentStatus(key)
    except ValueError as exc:
        msg = f"unknown appointment status '{value}'"
        raise ValueError(msg) from exc


class AssignmentStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class AbsenceStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CustomerStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class NotificationType(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class FindingType(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class AppointmentFlag(StrEnum):
    VEHICLE_ONSITE = "vehicle_onsite"
    PARTS_ORDERED = "parts_ordered"
