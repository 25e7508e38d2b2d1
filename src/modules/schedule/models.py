"""Schedule ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import AssignmentStatus, enum_values
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment
    from src.modules.technicians.models import Technician


class ScheduleAssignment(Base, TimestampMixin):
    """Places one appointment on one technician's lane for a time interval."""

    __tablename__ = "schedule_assignments"
    __table_args__ = (
        Index("ix_schedule_assignments_technician_start", "technician_id", "start_time"),
        CheckConstraint("end_time > start_time", name="ck_schedule_assignments_time_order"),
    )

    assignment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    appointment_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    technician_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("technicians.technician_id", ondelete="RESTRICT"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    aw_planned: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(
            AssignmentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="assignmentstatus",
        ),
        nullable=False,
        default=AssignmentStatus.SCHEDULED,
    )

    appointment: Mapped[Appointment] = relationship(back_populates="assignments")
    technician: Mapped[Technician] = relationship(back_populates="assignments")


from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.technicians.models import Technician  # noqa: E402
