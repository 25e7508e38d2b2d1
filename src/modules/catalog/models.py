"""Catalog ORM models (skills, technician skills, services)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment
    from src.modules.technicians.models import Technician

DEFAULT_PROFICIENCY = 4


class Skill(Base, TimestampMixin):
    __tablename__ = "skills"

    skill_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text)

    technician_links: Mapped[list["TechnicianSkill"]] = relationship(
        back_populates="skill",
        cascade="all,delete-orphan",
    )


class TechnicianSkill(Base, TimestampMixin):
    __tablename__ = "technician_skills"
    __table_args__ = (
        UniqueConstraint("technician_id", "skill_id", name="uq_technician_skills_pair"),
        CheckConstraint(
            "proficiency_level >= 1 AND proficiency_level <= 5",
            name="ck_technician_skills_proficiency_range",
        ),
    )

    technician_skill_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    technician_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("technicians.technician_id", ondelete="CASCADE"),
        nullable=False,
    )
    skill_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("skills.skill_id", ondelete="CASCADE"),
        nullable=False,
    )
    proficiency_level: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_PROFICIENCY)

    technician: Mapped["Technician"] = relationship(back_populates="skill_links")
    skill: Mapped[Skill] = relationship(back_populates="technician_links", lazy="joined")


class Service(Base, TimestampMixin):
    __tablename__ = "services"
    __table_args__ = (CheckConstraint("default_aw_estimate > 0", name="ck_services_aw_positive"),)

    service_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    default_aw_estimate: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    required_skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="service")


from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.technicians.models import Technician  # noqa: E402
