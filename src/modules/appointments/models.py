"""Appointment ORM model."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import AppointmentStatus, Priority, enum_values
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.catalog.models import Service
    from src.modules.customers.models import Customer, Vehicle
    from src.modules.schedule.models import ScheduleAssignment


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_date_status", "appointment_date", "status"),
        CheckConstraint("aw_estimate > 0", name="ck_appointments_aw_positive"),
    )

    appointment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    customer_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("customers.customer_id", ondelete="RESTRICT"),
        nullable=False,
    )
    vehicle_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("vehicles.vehicle_id", ondelete="RESTRICT"),
        nullable=False,
    )
    service_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("services.service_id", ondelete="SET NULL"),
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    aw_estimate: Mapped[int] = mapped_column(Integer, nullable=False)
    priority: Mapped[Priority] = mapped_column(
        Enum(
            Priority,
            values_callable=enum_values,
            validate_strings=True,
            name="appointmentpriority",
        ),
        nullable=False,
        default=Priority.NORMAL,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="appointmentstatus",
        ),
        nullable=False,
        default=AppointmentStatus.WAITING,
    )
    required_skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    sla_promised_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    flags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    customer: Mapped[Customer] = relationship(back_populates="appointments")
    vehicle: Mapped[Vehicle] = relationship(back_populates="appointments")
    service: Mapped[Service | None] = relationship(back_populates="appointments")
    assignments: Mapped[list[ScheduleAssignment]] = relationship(back_populates="appointment")


from src.modules.catalog.models import Service  # noqa: E402
from src.modules.customers.models import Customer, Vehicle  # noqa: E402
from src.modules.schedule.models import ScheduleAssignment  # noqa: E402
