"""In-app notifications and the periodic reminder/overdue checks."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.modules.appointments.models import Appointment
from src.modules.notifications.models import Notification
from src.modules.notifications.push import PushGateway
from src.modules.schedule.models import ScheduleAssignment
from src.modules.technicians.models import Technician
from src.modules.users.models import User
from src.shared import clock
from src.shared.enums import AppointmentStatus, AssignmentStatus, NotificationType, UserRole

logger = logging.getLogger(__name__)

STATUS_CHANGE_TYPES: dict[AppointmentStatus, NotificationType] = {
    AppointmentStatus.COMPLETED: NotificationType.SUCCESS,
    AppointmentStatus.CANCELLED: NotificationType.ERROR,
    AppointmentStatus.IN_PROGRESS: NotificationType.INFO,
    AppointmentStatus.PAUSED: NotificationType.WARNING,
}

APPOINTMENTS_LINK = ("/appointments", "View Appointments")
MY_JOBS_LINK = ("/jobs", "View My Jobs")
PLANNING_BOARD_LINK = ("/plantafel", "View Planning Board")
CONTROL_BOARD_LINK = ("/leitstand", "View Control Board")


def _customer_name(appointment: Appointment) -> str:
    customer = appointment.customer
    return customer.name if customer is not None and customer.name else "Unknown Customer"


class NotificationService:
    """Stores notifications in the caller's transaction.

    Push payloads are held back until :meth:`commit` succeeds, so nobody is
    pushed a notification that was rolled back.
    """

    def __init__(self, db: AsyncSession, push: PushGateway | None = None):
        self.db = db
        self.push = push
        self._outbox: list[tuple[str, dict[str, Any]]] = []

    def _now(self) -> datetime:
        return clock.now()

    async def create(
        self,
        user_id: str,
        message: str,
        type_: NotificationType = NotificationType.INFO,
        action: tuple[str, str] | None = None,
        dedupe_key: str | None = None,
    ) -> Notification | None:
        """Store one notification; returns None when ``dedupe_key`` was already used."""
        if dedupe_key is not None:
            existing = await self.db.execute(
                select(Notification.notification_id).where(
                    Notification.user_id == user_id,
                    Notification.dedupe_key == dedupe_key,
                )
            )
            if existing.first() is not None:
                return None

        link, label = action if action else (None, None)
        notification = Notification(
            user_id=user_id,
            message=message,
            type=type_,
            is_read=False,
            action_link=link,
            action_label=label,
            dedupe_key=dedupe_key,
        )
        self.db.add(notification)
        await self.db.flush()
        self._queue_push(notification)
        return notification

    async def commit(self) -> None:
        """Commit the session, then deliver the pushes queued since the last commit."""
        try:
            await self.db.commit()
        except Exception:
            self.discard_pending()
            raise
        await self.send_pending()

    async def send_pending(self) -> int:
        outbox, self._outbox = self._outbox, []
        if self.push is None:
            return 0
        delivered = 0
        for user_id, payload in outbox:
            if await self.push.send(user_id, payload):
                delivered += 1
        return delivered

    def discard_pending(self) -> None:
        self._outbox.clear()

    async def notify_admins(
        self,
        message: str,
        type_: NotificationType = NotificationType.INFO,
        action: tuple[str, str] | None = None,
        dedupe_key: str | None = None,
    ) -> list[Notification]:
        result = await self.db.execute(
            select(User.user_id).where(User.role == UserRole.ADMIN, User.is_active.is_(True))
        )
        created: list[Notification] = []
        for user_id in result.scalars().all():
            notification = await self.create(user_id, message, type_, action, dedupe_key)
            if notification is not None:
                created.append(notification)
        return created

    async def notify_technician(
        self,
        technician_id: str,
        message: str,
        type_: NotificationType = NotificationType.INFO,
        action: tuple[str, str] | None = MY_JOBS_LINK,
        dedupe_key: str | None = None,
    ) -> Notification | None:
        technician = await self.db.get(Technician, technician_id)
        if technician is None or technician.user_id is None:
            logger.debug("Technician %s has no linked profile; skipping notification", technician_id)
            return None
        return await self.create(technician.user_id, message, type_, action, dedupe_key)

    async def notify_status_change(
        self,
        appointment: Appointment,
        old_status: AppointmentStatus,
        new_status: AppointmentStatus,
        technician_id: str | None = None,
    ) -> None:
        message = (
            f"Appointment status changed: {appointment.title} ({_customer_name(appointment)})"
            f" - {old_status.value} → {new_status.value}"
        )
        await self.notify_admins(
            message,
            STATUS_CHANGE_TYPES.get(new_status, NotificationType.INFO),
            APPOINTMENTS_LINK,
        )
        if technician_id and new_status in (AppointmentStatus.ASSIGNED, AppointmentStatus.IN_PROGRESS):
            await self.notify_technician(
                technician_id,
                f"Appointment assigned: {appointment.title} ({_customer_name(appointment)})",
            )

    async def notify_technician_assignment(self, appointment: Appointment, technician: Technician) -> None:
        await self.notify_technician(
            technician.technician_id,
            f"New appointment assigned: {appointment.title} ({_customer_name(appointment)})",
        )
        await self.notify_admins(
            f"Technician assigned: {appointment.title} → {technician.name or 'Unknown Technician'}",
            NotificationType.INFO,
            PLANNING_BOARD_LINK,
        )

    async def create_reminders(self, now: datetime | None = None) -> int:
        """Remind technicians of assigned work starting within the lookahead window."""
        current = clock.localize(now or self._now())
        window_end = current + timedelta(minutes=settings.reminder_lookahead_minutes)
        assignments = await self._live_assignments(
            AppointmentStatus.ASSIGNED,
            ScheduleAssignment.start_time >= current,
            ScheduleAssignment.start_time <= window_end,
        )
        sent = 0
        for assignment in assignments:
            appointment = assignment.appointment
            notification = await self.notify_technician(
                assignment.technician_id,
                f"Reminder: Appointment starting soon - {appointment.title} ({_customer_name(appointment)})",
                NotificationType.WARNING,
                dedupe_key=f"reminder:{assignment.assignment_id}",
            )
            if notification is not None:
                sent += 1
        return sent

    async def check_overdue(self, now: datetime | None = None) -> int:
        """Flag in-progress work whose planned end passed more than the grace period ago."""
        current = clock.localize(now or self._now())
        cutoff = current - timedelta(minutes=settings.overdue_grace_minutes)
        assignments = await self._live_assignments(
            AppointmentStatus.IN_PROGRESS,
            ScheduleAssignment.end_time < cutoff,
        )
        flagged = 0
        for assignment in assignments:
            appointment = assignment.appointment
            key = f"overdue:{assignment.assignment_id}"
            subject = f"{appointment.title} ({_customer_name(appointment)})"
            await self.notify_technician(
                assignment.technician_id,
                f"Overdue appointment: {subject}",
                NotificationType.ERROR,
                dedupe_key=key,
            )
            technician_name = assignment.technician.name if assignment.technician else "Unassigned"
            created = await self.notify_admins(
                f"Overdue appointment: {subject} - {technician_name}",
                NotificationType.ERROR,
                CONTROL_BOARD_LINK,
                dedupe_key=key,
            )
            if created:
                flagged += 1
        return flagged

    async def list_for_user(self, user: User, unread_only: bool = False) -> list[Notification]:
        stmt = select(Notification).where(Notification.user_id == user.user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = await self.db.execute(stmt.order_by(Notification.created_at.desc()))
        return list(result.scalars().all())

    async def mark_read(self, notification_id: str, user: User) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if notification is None or notification.user_id != user.user_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, user: User) -> None:
        await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user.user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()

    async def _live_assignments(self, appointment_status: AppointmentStatus, *criteria) -> list[ScheduleAssignment]:
        stmt = (
            select(ScheduleAssignment)
            .join(Appointment, Appointment.appointment_id == ScheduleAssignment.appointment_id)
            .options(
                selectinload(ScheduleAssignment.appointment).selectinload(Appointment.customer),
                selectinload(ScheduleAssignment.technician),
            )
            .where(
                Appointment.status == appointment_status,
                ScheduleAssignment.status != AssignmentStatus.CANCELLED,
                *criteria,
            )
            .order_by(ScheduleAssignment.start_time)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    def _queue_push(self, notification: Notification) -> None:
        if self.push is None:
            return
        self._outbox.append(
            (
                notification.user_id,
                {
                    "message": notification.message,
                    "type": notification.type.value,
                    "action_link": notification.action_link,
                    "action_label": notification.action_label,
                },
            )
        )
