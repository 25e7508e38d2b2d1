from datetime import date, datetime, time
from pathlib import Path
import os
import sys

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("NOTIFICATION_CHECKS_ENABLED", "false")
os.environ.setdefault("DEFAULT_TIMEZONE", "Europe/Berlin")

from src.core.database import Base  # noqa: E402
from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.catalog.models import Service, Skill, TechnicianSkill  # noqa: E402
from src.modules.customers.models import Customer, Vehicle  # noqa: E402
from src.modules.notifications.models import Notification  # noqa: E402,F401
from src.modules.schedule.models import ScheduleAssignment  # noqa: E402
from src.modules.technicians.models import Technician, TechnicianAbsence  # noqa: E402
from src.modules.users.models import User  # noqa: E402
from src.shared import clock  # noqa: E402
from src.shared.enums import (  # noqa: E402
    AbsenceStatus,
    AppointmentStatus,
    AssignmentStatus,
    UserRole,
)

WORK_DAY = date(2026, 3, 10)


class Seeder:
    """Builds a small workshop: one customer, technicians, appointments."""

    day = WORK_DAY

    def __init__(self, session):
        self.session = session
        self._customer = None
        self._vehicle = None

    def at(self, hour: int, minute: int = 0, day: date | None = None) -> datetime:
        return datetime.combine(day or self.day, time(hour, minute), clock.workshop_tz())

    async def admin(self, email: str = "admin@werkstatt.test") -> User:
        user = User(email=email, role=UserRole.ADMIN, display_name="Admin", is_active=True)
        self.session.add(user)
        await self.session.commit()
        return user

    async def technician(
        self,
        name: str = "Jonas",
        capacity: int | None = 80,
        skills: list[str] | None = None,
        with_user: bool = True,
        **kwargs,
    ) -> Technician:
        user = None
        if with_user:
            user = User(
                email=f"{name.lower()}@werkstatt.test",
                role=UserRole.TECHNICIAN,
                display_name=name,
                is_active=True,
            )
            self.session.add(user)
        technician = Technician(
            name=name,
            aw_capacity_per_day=capacity,
            skills=skills or [],
            is_active=kwargs.pop("is_active", True),
            user=user,
            **kwargs,
        )
        self.session.add(technician)
        await self.session.commit()
        return technician

    async def customer(self) -> tuple[Customer, Vehicle]:
        if self._customer is None:
            customer = Customer(name="Erika Mustermann", phone="+49 30 123456")
            vehicle = Vehicle(customer=customer, make="VW", model="Golf", license_plate="B-EM 123")
            self.session.add_all([customer, vehicle])
            await self.session.commit()
            self._customer, self._vehicle = customer, vehicle
        return self._customer, self._vehicle

    async def appointment(
        self,
        title: str = "Inspection",
        aw: int = 15,
        status: AppointmentStatus = AppointmentStatus.WAITING,
        flags: list[str] | None = None,
        **kwargs,
    ) -> Appointment:
        customer, vehicle = await self.customer()
        appointment = Appointment(
            appointment_date=kwargs.pop("appointment_date", self.day),
            customer_id=customer.customer_id,
            vehicle_id=vehicle.vehicle_id,
            title=title,
            aw_estimate=aw,
            status=status,
            flags=["vehicle_onsite"] if flags is None else flags,
            required_skills=kwargs.pop("required_skills", []),
            **kwargs,
        )
        self.session.add(appointment)
        await self.session.commit()
        return appointment

    async def assignment(
        self,
        appointment: Appointment,
        technician: Technician,
        start: datetime,
        end: datetime,
        aw: int | None = None,
        status: AssignmentStatus = AssignmentStatus.SCHEDULED,
    ) -> ScheduleAssignment:
        assignment = ScheduleAssignment(
            appointment_id=appointment.appointment_id,
            technician_id=technician.technician_id,
            start_time=start,
            end_time=end,
            aw_planned=aw if aw is not None else appointment.aw_estimate,
            status=status,
        )
        self.session.add(assignment)
        await self.session.commit()
        return assignment

    async def absence(
        self,
        technician: Technician,
        from_time: time | None = None,
        to_time: time | None = None,
        status: AbsenceStatus = AbsenceStatus.APPROVED,
    ) -> TechnicianAbsence:
        absence = TechnicianAbsence(
            technician_id=technician.technician_id,
            absence_date=self.day,
            from_time=from_time,
            to_time=to_time,
            status=status,
        )
        self.session.add(absence)
        await self.session.commit()
        return absence

    async def skill(self, name: str, category: str = "general") -> Skill:
        skill = Skill(name=name, category=category)
        self.session.add(skill)
        await self.session.commit()
        return skill

    async def grant(self, technician: Technician, skill: Skill, level: int = 4) -> TechnicianSkill:
        link = TechnicianSkill(
            technician_id=technician.technician_id,
            skill_id=skill.skill_id,
            proficiency_level=level,
        )
        self.session.add(link)
        await self.session.commit()
        return link

    async def service(self, name: str = "Brake service", aw: int = 12, required_skills=None) -> Service:
        offered = Service(name=name, default_aw_estimate=aw, required_skills=required_skills or [])
        self.session.add(offered)
        await self.session.commit()
        return offered


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def seed(db_session):
    return Seeder(db_session)


@pytest.fixture
def seeder_cls():
    return Seeder
