"""Appointment status machine and the assignment writes it implies.

Every board gesture (drop into the inbox, drop onto a technician lane, drag
between status columns, the technician's progress button, cancel) goes
through :class:`AssignmentLifecycleManager`. Each write step is flushed
before the next one; the gesture commits as a single transaction. On a
persistence failure the session is rolled back, the authoritative state is
re-read, and :class:`PersistenceError` is raised.

Notifications run after the commit and can never undo or fail a gesture.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.core.exceptions import BusinessLogicError, PersistenceError, SchedulingConflictError
from src.modules.appointments.models import Appointment
from src.modules.notifications.service import NotificationService
from src.modules.schedule.aw import (
    WorkingHours,
    default_duration_minutes,
    next_grid_boundary,
    snap_to_grid,
)
from src.modules.schedule.models import ScheduleAssignment
from src.modules.schedule.service import get_absences_for_day, get_assignments_for_day
from src.modules.schedule.validator import ValidationReport, validate_assignment
from src.modules.technicians.models import Technician, TechnicianAbsence
from src.shared import clock
from src.shared.enums import AppointmentStatus, AssignmentStatus, normalize_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NextAction:
    status: AppointmentStatus
    label: str


# Keyed by raw status strings so legacy rows still get a button.
NEXT_ACTIONS: dict[str, NextAction] = {
    "new": NextAction(AppointmentStatus.IN_PROGRESS, "Begin Work"),
    "pending": NextAction(AppointmentStatus.IN_PROGRESS, "Begin Work"),
    "waiting": NextAction(AppointmentStatus.IN_PROGRESS, "Begin Work"),
    "scheduled": NextAction(AppointmentStatus.IN_PROGRESS, "Start Work"),
    "assigned": NextAction(AppointmentStatus.IN_PROGRESS, "Start Work"),
    "in_progress": NextAction(AppointmentStatus.COMPLETED, "Complete"),
    "paused": NextAction(AppointmentStatus.IN_PROGRESS, "Resume"),
    "waiting_parts": NextAction(AppointmentStatus.IN_PROGRESS, "Continue"),
}

BOARD_STATUSES = frozenset(
    {
        AppointmentStatus.WAITING,
        AppointmentStatus.ASSIGNED,
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.PAUSED,
        AppointmentStatus.COMPLETED,
    }
)

# Appointment status -> status of its live assignment.
ASSIGNMENT_STATUS_FOLLOWS = {
    AppointmentStatus.IN_PROGRESS: AssignmentStatus.IN_PROGRESS,
    AppointmentStatus.COMPLETED: AssignmentStatus.COMPLETED,
}

NOTIFY_ON_ENTER = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})


def next_action(current: str | AppointmentStatus | None) -> NextAction | None:
    if current is None:
        return None
    key = current.value if isinstance(current, AppointmentStatus) else str(current).strip().lower()
    return NEXT_ACTIONS.get(key)


@dataclass
class ReassignmentPlan:
    """Outcome of the prepare step; nothing has been written yet."""

    appointment: Appointment
    technician: Technician
    start: datetime
    end: datetime
    aw_planned: int
    report: ValidationReport


@dataclass
class LifecycleResult:
    appointment: Appointment
    report: ValidationReport | None = None


class AssignmentLifecycleManager:
    def __init__(
        self,
        db: AsyncSession,
        notifications: NotificationService | None = None,
        hours: WorkingHours | None = None,
        grid_minutes: int | None = None,
        default_capacity: int | None = None,
    ):
        self.db = db
        self.notifications = notifications
        self.hours = hours or WorkingHours(settings.working_hours_start, settings.working_hours_end)
        self.grid_minutes = grid_minutes or settings.schedule_grid_minutes
        self.default_capacity = (
            default_capacity if default_capacity is not None else settings.default_aw_capacity
        )
        self.tz: ZoneInfo = clock.workshop_tz()

    def _now(self) -> datetime:
        return clock.now()

    async def get_appointment(self, appointment_id: str) -> Appointment:
        stmt = (
            select(Appointment)
            .options(
                selectinload(Appointment.assignments),
                selectinload(Appointment.customer),
                selectinload(Appointment.vehicle),
            )
            .where(Appointment.appointment_id == appointment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
        return appointment

    async def get_technician(self, technician_id: str) -> Technician:
        result = await self.db.execute(
            select(Technician)
            .options(selectinload(Technician.skill_links))
            .where(Technician.technician_id == technician_id)
            .execution_options(populate_existing=True)
        )
        technician = result.scalar_one_or_none()
        if technician is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technician not found")
        return technician

    async def assignments_for_day(
        self,
        technician_id: str,
        day: date,
        exclude_appointment_id: str | None = None,
    ) -> list[ScheduleAssignment]:
        return await get_assignments_for_day([technician_id], day, self.db, exclude_appointment_id)

    async def absences_for_day(self, technician_id: str, day: date) -> list[TechnicianAbsence]:
        return await get_absences_for_day([technician_id], day, self.db)

    def resolve_start(self, requested: datetime | None) -> datetime:
        if requested is None:
            return next_grid_boundary(self._now(), self.grid_minutes)
        return snap_to_grid(clock.localize(requested, self.tz), self.grid_minutes)

    async def prepare_assignment(
        self,
        appointment_id: str,
        technician_id: str,
        start: datetime | None = None,
        aw_planned: int | None = None,
    ) -> ReassignmentPlan:
        appointment = await self.get_appointment(appointment_id)
        if appointment.status.is_terminal:
            raise BusinessLogicError(
                f"Appointment is {appointment.status.value} and cannot be scheduled",
                status_code=status.HTTP_409_CONFLICT,
            )
        technician = await self.get_technician(technician_id)
        if not technician.is_active:
            raise BusinessLogicError("Technician is inactive")

        proposed_start = self.resolve_start(start)
        proposed_end = proposed_start + timedelta(minutes=default_duration_minutes(appointment.aw_estimate))
        day = proposed_start.date()
        existing = await self.assignments_for_day(technician_id, day, exclude_appointment_id=appointment_id)
        absences = await self.absences_for_day(technician_id, day)
        report = validate_assignment(
            appointment,
            technician,
            proposed_start,
            proposed_end,
            existing,
            absences,
            hours=self.hours,
            default_capacity=self.default_capacity,
            tz=self.tz,
        )
        return ReassignmentPlan(
            appointment=appointment,
            technician=technician,
            start=proposed_start,
            end=proposed_end,
            aw_planned=aw_planned if aw_planned is not None else appointment.aw_estimate,
            report=report,
        )

    async def commit_assignment(self, plan: ReassignmentPlan) -> LifecycleResult:
        if plan.report.has_errors:
            raise SchedulingConflictError(plan.report.summary, report=plan.report.as_payload())

        appointment = plan.appointment
        appointment_id = appointment.appointment_id
        try:
            await self.db.execute(
                delete(ScheduleAssignment).where(ScheduleAssignment.appointment_id == appointment_id)
            )
            await self.db.flush()
            self.db.add(
                ScheduleAssignment(
                    appointment_id=appointment_id,
                    technician_id=plan.technician.technician_id,
                    start_time=plan.start,
                    end_time=plan.end,
                    aw_planned=plan.aw_planned,
                    status=AssignmentStatus.SCHEDULED,
                )
            )
            await self.db.flush()
            appointment.status = AppointmentStatus.ASSIGNED
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._recover(appointment_id, "assign", exc)

        logger.info(
            "Assigned appointment %s to technician %s at %s",
            appointment_id,
            plan.technician.technician_id,
            plan.start.isoformat(),
        )
        if self.notifications is not None:
            await self._notify(
                "technician assignment",
                self.notifications.notify_technician_assignment(appointment, plan.technician),
            )
        return LifecycleResult(await self.get_appointment(appointment_id), plan.report)

    async def drop_on_technician(
        self,
        appointment_id: str,
        technician_id: str,
        start: datetime | None = None,
        aw_planned: int | None = None,
    ) -> LifecycleResult:
        plan = await self.prepare_assignment(appointment_id, technician_id, start, aw_planned)
        return await self.commit_assignment(plan)

    async def drop_to_inbox(self, appointment_id: str) -> LifecycleResult:
        appointment = await self.get_appointment(appointment_id)
        try:
            await self.db.execute(
                delete(ScheduleAssignment).where(ScheduleAssignment.appointment_id == appointment_id)
            )
            await self.db.flush()
            appointment.status = AppointmentStatus.WAITING
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._recover(appointment_id, "unassign", exc)
        logger.info("Moved appointment %s back to the inbox", appointment_id)
        return LifecycleResult(await self.get_appointment(appointment_id))

    async def move_to_status(self, appointment_id: str, new_status: str | AppointmentStatus) -> LifecycleResult:
        target = normalize_status(new_status)
        if target not in BOARD_STATUSES:
            raise BusinessLogicError(f"Status '{target.value}' cannot be set from the board")
        appointment = await self.get_appointment(appointment_id)
        return await self._apply_status(appointment, target, sync_assignments=False)

    async def advance_progress(self, appointment_id: str) -> LifecycleResult:
        appointment = await self.get_appointment(appointment_id)
        action = next_action(appointment.status)
        if action is None:
            raise BusinessLogicError(
                f"No further action for status '{appointment.status.value}'",
                status_code=status.HTTP_409_CONFLICT,
            )
        return await self._apply_status(appointment, action.status)

    async def cancel(self, appointment_id: str) -> LifecycleResult:
        appointment = await self.get_appointment(appointment_id)
        if appointment.status == AppointmentStatus.CANCELLED:
            return LifecycleResult(appointment)
        return await self._apply_status(appointment, AppointmentStatus.CANCELLED)

    async def _apply_status(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        sync_assignments: bool = True,
    ) -> LifecycleResult:
        """Set the appointment status; live assignment rows follow only when ``sync_assignments``."""
        appointment_id = appointment.appointment_id
        previous = appointment.status
        live = [item for item in appointment.assignments if item.status != AssignmentStatus.CANCELLED]
        try:
            appointment.status = target
            follow = (
                AssignmentStatus.CANCELLED
                if target == AppointmentStatus.CANCELLED
                else ASSIGNMENT_STATUS_FOLLOWS.get(target)
            )
            if sync_assignments and follow is not None:
                for assignment in live:
                    assignment.status = follow
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._recover(appointment_id, f"set status {target.value}", exc)

        logger.info("Appointment %s status %s -> %s", appointment_id, previous.value, target.value)
        if self.notifications is not None and target in NOTIFY_ON_ENTER and previous != target:
            technician_id = live[0].technician_id if live else None
            await self._notify(
                "status change",
                self.notifications.notify_status_change(appointment, previous, target, technician_id),
            )
        return LifecycleResult(await self.get_appointment(appointment_id))

    async def _recover(self, appointment_id: str, step: str, exc: SQLAlchemyError) -> None:
        logger.error("Persistence failure during %s of appointment %s: %s", step, appointment_id, exc)
        await self.db.rollback()
        try:
            await self.get_appointment(appointment_id)
        except (SQLAlchemyError, HTTPException):
            logger.exception("Re-reading appointment %s after rollback failed", appointment_id)
        raise PersistenceError(f"Could not {step} appointment; no changes were saved") from exc

    async def _notify(self, description: str, pending: Awaitable[None]) -> None:
        try:
            await pending
            await self.notifications.commit()
        except Exception:
            logger.exception("Sending %s notification failed", description)
            self.notifications.discard_pending()
            await self.db.rollback()

