"""Appointments schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from src.modules.schedule.lifecycle import next_action as resolve_next_action
from src.shared import clock
from src.shared.enums import AppointmentStatus, AssignmentStatus, Priority, normalize_status


class NextActionPublic(BaseModel):
    status: AppointmentStatus
    label: str


class AssignmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    assignment_id: str = Field(serialization_alias="id")
    appointment_id: str
    technician_id: str
    start_time: datetime
    end_time: datetime
    aw_planned: int
    status: AssignmentStatus

    @field_validator("start_time", "end_time")
    @classmethod
    def _in_workshop_zone(cls, value: datetime) -> datetime:
        return clock.localize(value)


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(serialization_alias="id")
    appointment_date: date = Field(serialization_alias="date")
    customer_id: str
    vehicle_id: str
    service_id: str | None = None
    title: str
    description: str | None = None
    notes: str | None = None
    aw_estimate: int
    priority: Priority
    status: AppointmentStatus
    required_skills: list[str] = Field(default_factory=list)
    sla_promised_at: datetime | None = None
    flags: list[str] = Field(default_factory=list)
    assignments: list[AssignmentPublic] = Field(default_factory=list)

    @field_validator("required_skills", "flags", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []

    @field_validator("sla_promised_at")
    @classmethod
    def _sla_in_workshop_zone(cls, value: datetime | None) -> datetime | None:
        return clock.localize(value) if value is not None else None

    @computed_field(return_type=NextActionPublic | None)
    def next_action(self) -> NextActionPublic | None:
        action = resolve_next_action(self.status)
        if action is None:
            return None
        return NextActionPublic(status=action.status, label=action.label)


class _StatusInput(BaseModel):
    @field_validator("status", mode="before", check_fields=False)
    @classmethod
    def _normalize_status(cls, value):
        if value is None or isinstance(value, AppointmentStatus):
            return value
        return normalize_status(value)


class AppointmentCreate(_StatusInput):
    model_config = ConfigDict(populate_by_name=True)

    appointment_date: date = Field(alias="date")
    customer_id: str
    vehicle_id: str
    service_id: str | None = None
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    notes: str | None = None
    # Defaults to the service's estimate when a service is given.
    aw_estimate: int | None = Field(default=None, gt=0)
    priority: Priority = Priority.NORMAL
    status: AppointmentStatus = AppointmentStatus.WAITING
    required_skills: list[str] = Field(default_factory=list)
    sla_promised_at: datetime | None = None
    flags: list[str] = Field(default_factory=list)


class AppointmentUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_date: date | None = Field(default=None, alias="date")
    service_id: str | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    notes: str | None = None
    aw_estimate: int | None = Field(default=None, gt=0)
    priority: Priority | None = None
    required_skills: list[str] | None = None
    sla_promised_at: datetime | None = None
    flags: list[str] | None = None


class StatusChangeRequest(_StatusInput):
    status: AppointmentStatus
