"""Technician and absence schemas."""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.shared.enums import AbsenceStatus


class TechnicianBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    shift_start: time | None = None
    shift_end: time | None = None
    aw_capacity_per_day: int | None = Field(default=None, ge=0)
    specialization: str | None = Field(default=None, max_length=255)
    skills: list[str] = Field(default_factory=list)
    is_active: bool = True


class TechnicianCreate(TechnicianBase):
    user_id: str | None = None


class TechnicianUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    shift_start: time | None = None
    shift_end: time | None = None
    aw_capacity_per_day: int | None = Field(default=None, ge=0)
    specialization: str | None = Field(default=None, max_length=255)
    skills: list[str] | None = None
    is_active: bool | None = None
    user_id: str | None = None


class TechnicianPublic(TechnicianBase):
    model_config = ConfigDict(from_attributes=True)

    technician_id: str = Field(serialization_alias="id")
    user_id: str | None = None
    created_at: datetime
    updated_at: datetime


class _AbsenceWindow(BaseModel):
    from_time: time | None = None
    to_time: time | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "_AbsenceWindow":
        if bool(self.from_time) ^ bool(self.to_time):
            raise ValueError("Partial absences require both from_time and to_time")
        if self.from_time and self.to_time and self.from_time >= self.to_time:
            raise ValueError("from_time must be before to_time")
        return self


class AbsenceRequest(_AbsenceWindow):
    absence_date: date
    type: str = Field(default="vacation", min_length=1, max_length=32)
    reason: str | None = None


class AbsenceCreate(AbsenceRequest):
    technician_id: str
    status: AbsenceStatus = AbsenceStatus.APPROVED


class AbsenceDecision(BaseModel):
    status: AbsenceStatus


class AbsencePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    absence_id: str = Field(serialization_alias="id")
    technician_id: str
    absence_date: date
    from_time: time | None = None
    to_time: time | None = None
    type: str
    reason: str | None = None
    status: AbsenceStatus
