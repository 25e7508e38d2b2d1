"""Technician and absence ORM models."""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, Enum, ForeignKey, Index, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import AbsenceStatus, enum_values
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.catalog.models import TechnicianSkill
    from src.modules.schedule.models import ScheduleAssignment
    from src.modules.users.models import User


class Technician(Base, TimestampMixin):
    __tablename__ = "technicians"
    __table_args__ = (
        CheckConstraint(
            "aw_capacity_per_day IS NULL OR aw_capacity_per_day >= 0",
            name="ck_technicians_capacity_non_negative",
        ),
    )

    technician_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="SET NULL"),
        unique=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    shift_start: Mapped[time | None] = mapped_column(Time)
    shift_end: Mapped[time | None] = mapped_column(Time)
    # NULL means the workshop default capacity applies.
    aw_capacity_per_day: Mapped[int | None] = mapped_column(Integer)
    specialization: Mapped[str | None] = mapped_column(String(255))
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    user: Mapped[User | None] = relationship(back_populates="technician_profile")
    absences: Mapped[list[TechnicianAbsence]] = relationship(
        back_populates="technician",
        cascade="all,delete-orphan",
    )
    assignments: Mapped[list[ScheduleAssignment]] = relationship(back_populates="technician")
    skill_links: Mapped[list[TechnicianSkill]] = relationship(
        back_populates="technician",
        cascade="all,delete-orphan",
        lazy="selectin",
    )


class TechnicianAbsence(Base, TimestampMixin):
    __tablename__ = "technician_absences"
    __table_args__ = (Index("ix_technician_absences_technician_date", "technician_id", "absence_date"),)

    absence_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    technician_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("technicians.technician_id", ondelete="CASCADE"),
        nullable=False,
    )
    absence_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Both bounds empty means the whole day.
    from_time: Mapped[time | None] = mapped_column(Time)
    to_time: Mapped[time | None] = mapped_column(Time)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="vacation")
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[AbsenceStatus] = mapped_column(
        Enum(
            AbsenceStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="absencestatus",
        ),
        nullable=False,
        default=AbsenceStatus.APPROVED,
    )

    technician: Mapped[Technician] = relationship(back_populates="absences")


from src.modules.catalog.models import TechnicianSkill  # noqa: E402
from src.modules.schedule.models import ScheduleAssignment  # noqa: E402
from src.modules.users.models import User  # noqa: E402
