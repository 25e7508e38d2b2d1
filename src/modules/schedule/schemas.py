"""Schedule schemas."""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, computed_field

from src.modules.appointments.schemas import AppointmentPublic, AssignmentPublic
from src.modules.technicians.schemas import AbsencePublic
from src.shared.enums import AppointmentStatus, FindingType


class FindingPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    type: FindingType
    message: str
    is_valid: bool


class ValidationReportPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    findings: list[FindingPublic]
    has_errors: bool
    has_warnings: bool
    can_schedule: bool
    action: str
    summary: str


class ValidateRequest(BaseModel):
    appointment_id: str
    technician_id: str
    start_time: datetime | None = None


class ValidateResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    report: ValidationReportPublic


class AssignRequest(BaseModel):
    technician_id: str
    start_time: datetime | None = None
    aw_planned: int | None = Field(default=None, gt=0)


class LifecycleResultPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment: AppointmentPublic
    report: ValidationReportPublic | None = None


class CapacityPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    technician_id: str
    day: date = Field(serialization_alias="date")
    capacity_aw: int
    absence_aw: int
    planned_aw: int
    available_aw: int
    utilization: float
    band: str


class TimeSlotPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hour: int
    minute: int
    starts_at: datetime
    is_working_hour: bool

    @computed_field(return_type=str)
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class LaneTechnician(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    technician_id: str = Field(serialization_alias="id")
    name: str
    aw_capacity_per_day: int | None = None
    shift_start: time | None = None
    shift_end: time | None = None


class BoardLane(BaseModel):
    technician: LaneTechnician
    assignments: list[AssignmentPublic]
    absences: list[AbsencePublic]
    capacity: CapacityPublic


class BoardKpis(BaseModel):
    total_capacity_aw: int
    total_planned_aw: int
    total_available_aw: int
    utilization: float
    waiting_customers: int
    vehicles_onsite: int
    parts_pending: int


class BoardView(BaseModel):
    day: date = Field(serialization_alias="date")
    working_hours: str
    inbox: list[AppointmentPublic]
    lanes: list[BoardLane]
    columns: dict[AppointmentStatus, list[AppointmentPublic]]
    kpis: BoardKpis


class TechnicianDayView(BaseModel):
    day: date = Field(serialization_alias="date")
    technician_id: str
    assignments: list[AssignmentPublic]
    capacity: CapacityPublic
