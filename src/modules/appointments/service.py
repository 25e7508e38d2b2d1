"""Appointment service layer."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core import rbac
from src.core.exceptions import BusinessLogicError
from src.modules.appointments.models import Appointment
from src.modules.appointments.schemas import AppointmentCreate, AppointmentUpdate
from src.modules.catalog.service import CatalogService
from src.modules.customers.models import Customer, Vehicle
from src.modules.notifications.service import APPOINTMENTS_LINK, NotificationService
from src.modules.schedule.models import ScheduleAssignment
from src.modules.users.models import User
from src.shared import clock
from src.shared.enums import AppointmentStatus, AssignmentStatus

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(self, db: AsyncSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications

    def _base_query(self):
        return select(Appointment).options(
            selectinload(Appointment.assignments),
            selectinload(Appointment.customer),
            selectinload(Appointment.vehicle),
        )

    async def list_appointments(
        self,
        user: User,
        day: date | None = None,
        status_filter: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        stmt = self._base_query()
        if day is not None:
            stmt = stmt.where(Appointment.appointment_date == day)
        if status_filter is not None:
            stmt = stmt.where(Appointment.status == status_filter)
        if not rbac.is_admin(user):
            # Technicians only ever see work that is on their lane.
            stmt = stmt.where(
                Appointment.assignments.any(
                    (ScheduleAssignment.technician_id == user.technician_id)
                    & (ScheduleAssignment.status != AssignmentStatus.CANCELLED)
                )
            )
        result = await self.db.execute(stmt.order_by(Appointment.appointment_date, Appointment.created_at))
        return list(result.scalars().all())

    async def get(self, appointment_id: str) -> Appointment:
        result = await self.db.execute(
            self._base_query()
            .where(Appointment.appointment_id == appointment_id)
            .execution_options(populate_existing=True)
        )
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
        return appointment

    async def get_for_user(self, appointment_id: str, user: User) -> Appointment:
        appointment = await self.get(appointment_id)
        if not rbac.can_view_appointment(user, appointment, appointment.assignments):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return appointment

    async def ensure_can_update(self, appointment_id: str, user: User) -> Appointment:
        appointment = await self.get(appointment_id)
        if not rbac.can_update_appointment(user, appointment, appointment.assignments):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return appointment

    async def create(self, payload: AppointmentCreate) -> Appointment:
        customer = await self.db.get(Customer, payload.customer_id)
        if customer is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
        vehicle = await self.db.get(Vehicle, payload.vehicle_id)
        if vehicle is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
        if vehicle.customer_id != customer.customer_id:
            raise BusinessLogicError("Vehicle does not belong to customer")

        data = payload.model_dump()
        if data["service_id"] is not None:
            offered = await CatalogService(self.db).get_offered_service(data["service_id"])
            if data["aw_estimate"] is None:
                data["aw_estimate"] = offered.default_aw_estimate
            if not data["required_skills"]:
                data["required_skills"] = list(offered.required_skills or [])
        elif data["aw_estimate"] is None:
            raise BusinessLogicError("aw_estimate is required when no service is chosen")
        if data["sla_promised_at"] is not None:
            data["sla_promised_at"] = clock.localize(data["sla_promised_at"])
        appointment = Appointment(**data)
        self.db.add(appointment)
        await self.db.commit()
        appointment_id = appointment.appointment_id
        logger.info("Created appointment %s for customer %s", appointment_id, customer.customer_id)

        if self.notifications is not None:
            vehicle_info = f"{vehicle.make} {vehicle.model} ({vehicle.license_plate or ''})"
            try:
                await self.notifications.notify_admins(
                    f"New appointment created: {appointment.title} for {customer.name} - {vehicle_info}",
                    action=APPOINTMENTS_LINK,
                )
                await self.notifications.commit()
            except Exception:
                logger.exception("Notifying admins about appointment %s failed", appointment_id)
                self.notifications.discard_pending()
                await self.db.rollback()
        return await self.get(appointment_id)

    async def update(self, appointment_id: str, payload: AppointmentUpdate) -> Appointment:
        appointment = await self.get(appointment_id)
        update_data = payload.model_dump(exclude_unset=True)
        if not update_data:
            return appointment
        for field in ("title", "aw_estimate", "appointment_date", "priority"):
            if field in update_data and update_data[field] is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be empty")
        if update_data.get("service_id") is not None:
            await CatalogService(self.db).get_offered_service(update_data["service_id"])
        if update_data.get("sla_promised_at") is not None:
            update_data["sla_promised_at"] = clock.localize(update_data["sla_promised_at"])
        for field in ("required_skills", "flags"):
            if field in update_data and update_data[field] is None:
                update_data[field] = []
        for key, value in update_data.items():
            setattr(appointment, key, value)
        await self.db.commit()
        return await self.get(appointment_id)
