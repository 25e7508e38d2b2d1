"""Read models for the planning board: lanes, capacity and KPIs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.modules.appointments.models import Appointment
from src.modules.schedule.aw import TimeSlot, WorkingHours, generate_time_slots
from src.modules.schedule.capacity import CapacitySnapshot, calculate_utilization, capacity_snapshot
from src.modules.schedule.models import ScheduleAssignment
from src.modules.schedule.validator import effective_capacity
from src.modules.technicians.models import Technician, TechnicianAbsence
from src.shared.enums import AbsenceStatus, AppointmentFlag, AppointmentStatus, AssignmentStatus

BOARD_COLUMNS = (
    AppointmentStatus.WAITING,
    AppointmentStatus.ASSIGNED,
    AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.PAUSED,
    AppointmentStatus.COMPLETED,
)


@dataclass
class TechnicianCapacity:
    technician_id: str
    day: date
    capacity_aw: int
    absence_aw: int
    planned_aw: int
    available_aw: int
    utilization: float
    band: str

    @classmethod
    def from_snapshot(cls, technician_id: str, day: date, snapshot: CapacitySnapshot) -> TechnicianCapacity:
        return cls(
            technician_id=technician_id,
            day=day,
            capacity_aw=snapshot.capacity_aw,
            absence_aw=snapshot.absence_aw,
            planned_aw=snapshot.planned_aw,
            available_aw=snapshot.available_aw,
            utilization=snapshot.utilization,
            band=snapshot.band,
        )


def workshop_hours() -> WorkingHours:
    return WorkingHours(settings.working_hours_start, settings.working_hours_end)


def _day_bounds(target_date: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    day_start = datetime.combine(target_date, time.min, tz)
    return day_start, day_start + timedelta(days=1)


async def get_assignments_for_day(
    technician_ids: list[str],
    target_date: date,
    db: AsyncSession,
    exclude_appointment_id: str | None = None,
) -> list[ScheduleAssignment]:
    """Non-cancelled assignments starting on ``target_date`` for the given lanes."""
    if not technician_ids:
        return []
    day_start, day_end = _day_bounds(target_date, ZoneInfo(settings.default_timezone))
    stmt = select(ScheduleAssignment).where(
        ScheduleAssignment.technician_id.in_(technician_ids),
        ScheduleAssignment.start_time >= day_start,
        ScheduleAssignment.start_time < day_end,
        ScheduleAssignment.status != AssignmentStatus.CANCELLED,
    )
    if exclude_appointment_id is not None:
        stmt = stmt.where(ScheduleAssignment.appointment_id != exclude_appointment_id)
    result = await db.execute(stmt.order_by(ScheduleAssignment.start_time))
    return list(result.scalars().all())


async def get_absences_for_day(
    technician_ids: list[str],
    target_date: date,
    db: AsyncSession,
) -> list[TechnicianAbsence]:
    """Pending and approved absences; rejected requests never count."""
    if not technician_ids:
        return []
    result = await db.execute(
        select(TechnicianAbsence).where(
            TechnicianAbsence.technician_id.in_(technician_ids),
            TechnicianAbsence.absence_date == target_date,
            TechnicianAbsence.status != AbsenceStatus.REJECTED,
        )
    )
    return list(result.scalars().all())


async def get_capacity(technician_id: str, target_date: date, db: AsyncSession) -> TechnicianCapacity:
    technician = await db.get(Technician, technician_id)
    if technician is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technician not found")
    assignments = await get_assignments_for_day([technician_id], target_date, db)
    absences = await get_absences_for_day([technician_id], target_date, db)
    snapshot = capacity_snapshot(
        effective_capacity(technician, settings.default_aw_capacity),
        absences,
        assignments,
    )
    return TechnicianCapacity.from_snapshot(technician_id, target_date, snapshot)


async def get_technician_day(technician_id: str, target_date: date, db: AsyncSession) -> dict:
    capacity = await get_capacity(technician_id, target_date, db)
    assignments = await get_assignments_for_day([technician_id], target_date, db)
    return {
        "day": target_date,
        "technician_id": technician_id,
        "assignments": assignments,
        "capacity": capacity,
    }


def get_time_slots(target_date: date) -> list[TimeSlot]:
    return generate_time_slots(
        target_date,
        settings.schedule_grid_minutes,
        ZoneInfo(settings.default_timezone),
        workshop_hours(),
    )


async def get_board(target_date: date, db: AsyncSession, query: str | None = None) -> dict:
    """Everything the planning board shows for one day."""
    technicians = await _get_active_technicians(db)
    technician_ids = [technician.technician_id for technician in technicians]
    assignments = await get_assignments_for_day(technician_ids, target_date, db)
    absences = await get_absences_for_day(technician_ids, target_date, db)

    lanes = []
    total_capacity = total_planned = total_available = 0
    for technician in technicians:
        lane_assignments = [item for item in assignments if item.technician_id == technician.technician_id]
        lane_absences = [item for item in absences if item.technician_id == technician.technician_id]
        snapshot = capacity_snapshot(
            effective_capacity(technician, settings.default_aw_capacity),
            lane_absences,
            lane_assignments,
        )
        total_capacity += snapshot.capacity_aw
        total_planned += snapshot.planned_aw
        total_available += snapshot.available_aw
        lanes.append(
            {
                "technician": technician,
                "assignments": lane_assignments,
                "absences": lane_absences,
                "capacity": TechnicianCapacity.from_snapshot(technician.technician_id, target_date, snapshot),
            }
        )

    appointments = await _get_appointments_for_day(target_date, db)
    inbox = [item for item in appointments if item.status == AppointmentStatus.WAITING]
    if query and query.strip():
        inbox = [item for item in inbox if _matches(item, query)]
    columns = {column: [item for item in appointments if item.status == column] for column in BOARD_COLUMNS}

    open_work = [item for item in appointments if not item.status.is_terminal]
    kpis = {
        "total_capacity_aw": total_capacity,
        "total_planned_aw": total_planned,
        "total_available_aw": total_available,
        "utilization": calculate_utilization(total_planned, total_capacity),
        "waiting_customers": len([item for item in appointments if item.status == AppointmentStatus.WAITING]),
        "vehicles_onsite": len([item for item in open_work if AppointmentFlag.VEHICLE_ONSITE in (item.flags or [])]),
        "parts_pending": len([item for item in open_work if AppointmentFlag.PARTS_ORDERED in (item.flags or [])]),
    }
    return {
        "day": target_date,
        "working_hours": workshop_hours().label,
        "inbox": inbox,
        "lanes": lanes,
        "columns": columns,
        "kpis": kpis,
    }


async def _get_active_technicians(db: AsyncSession) -> list[Technician]:
    result = await db.execute(
        select(Technician).where(Technician.is_active.is_(True)).order_by(Technician.name)
    )
    return list(result.scalars().all())


async def _get_appointments_for_day(target_date: date, db: AsyncSession) -> list[Appointment]:
    stmt = (
        select(Appointment)
        .options(
            selectinload(Appointment.assignments),
            selectinload(Appointment.customer),
            selectinload(Appointment.vehicle),
        )
        .where(Appointment.appointment_date == target_date)
        .order_by(Appointment.created_at)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


def _matches(appointment: Appointment, query: str) -> bool:
    needle = query.strip().lower()
    haystack = [
        appointment.title,
        appointment.customer.name if appointment.customer else None,
        appointment.vehicle.make if appointment.vehicle else None,
        appointment.vehicle.model if appointment.vehicle else None,
    ]
    return needle in " ".join(part for part in haystack if part).lower()
