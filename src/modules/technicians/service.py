"""Technician roster and absence management."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import BusinessLogicError
from src.modules.notifications.service import NotificationService
from src.modules.schedule.models import ScheduleAssignment
from src.modules.technicians.models import Technician, TechnicianAbsence
from src.modules.technicians.schemas import AbsenceCreate, AbsenceRequest, TechnicianCreate, TechnicianUpdate
from src.modules.users.models import User
from src.shared.enums import AbsenceStatus, NotificationType, UserRole

logger = logging.getLogger(__name__)


class TechnicianService:
    def __init__(self, db: AsyncSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications

    async def list_technicians(self, include_inactive: bool = False) -> list[Technician]:
        stmt = select(Technician)
        if not include_inactive:
            stmt = stmt.where(Technician.is_active.is_(True))
        result = await self.db.execute(stmt.order_by(Technician.name))
        return list(result.scalars().all())

    async def get(self, technician_id: str) -> Technician:
        technician = await self.db.get(Technician, technician_id)
        if technician is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technician not found")
        return technician

    async def create(self, payload: TechnicianCreate) -> Technician:
        if payload.user_id is not None:
            await self._ensure_linkable_user(payload.user_id)
        technician = Technician(**payload.model_dump())
        self.db.add(technician)
        await self.db.commit()
        await self.db.refresh(technician)
        logger.info("Created technician %s", technician.technician_id)
        return technician

    async def update(self, technician_id: str, payload: TechnicianUpdate) -> Technician:
        technician = await self.get(technician_id)
        update_data = payload.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name cannot be empty")
        if update_data.get("user_id") and update_data["user_id"] != technician.user_id:
            await self._ensure_linkable_user(update_data["user_id"])
        if "skills" in update_data and update_data["skills"] is None:
            update_data["skills"] = []
        if "is_active" in update_data and update_data["is_active"] is None:
            update_data.pop("is_active")
        for key, value in update_data.items():
            setattr(technician, key, value)
        await self.db.commit()
        await self.db.refresh(technician)
        return technician

    async def delete(self, technician_id: str) -> None:
        technician = await self.get(technician_id)
        result = await self.db.execute(
            select(func.count())
            .select_from(ScheduleAssignment)
            .where(ScheduleAssignment.technician_id == technician_id)
        )
        if result.scalar_one() > 0:
            raise BusinessLogicError(
                "Technician has schedule assignments; deactivate instead",
                status_code=status.HTTP_409_CONFLICT,
            )
        await self.db.delete(technician)
        await self.db.commit()

    async def list_absences(
        self,
        technician_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TechnicianAbsence]:
        stmt = select(TechnicianAbsence)
        if technician_id is not None:
            stmt = stmt.where(TechnicianAbsence.technician_id == technician_id)
        if start is not None:
            stmt = stmt.where(TechnicianAbsence.absence_date >= start)
        if end is not None:
            stmt = stmt.where(TechnicianAbsence.absence_date <= end)
        result = await self.db.execute(stmt.order_by(TechnicianAbsence.absence_date, TechnicianAbsence.from_time))
        return list(result.scalars().all())

    async def create_absence(self, payload: AbsenceCreate) -> TechnicianAbsence:
        await self.get(payload.technician_id)
        absence = TechnicianAbsence(**payload.model_dump())
        self.db.add(absence)
        await self.db.commit()
        await self.db.refresh(absence)
        return absence

    async def request_absence(self, user: User, payload: AbsenceRequest) -> TechnicianAbsence:
        """A technician asks for time off; admins decide later."""
        technician_id = user.technician_id
        if technician_id is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No technician profile linked")
        absence = TechnicianAbsence(
            technician_id=technician_id,
            status=AbsenceStatus.PENDING,
            **payload.model_dump(),
        )
        self.db.add(absence)
        await self.db.commit()
        await self.db.refresh(absence)
        absence_id = absence.absence_id

        if self.notifications is not None:
            try:
                await self.notifications.notify_admins(
                    f"Absence requested by {user.display_name or user.email} for {payload.absence_date.isoformat()}",
                    NotificationType.INFO,
                    ("/technicians", "Review Absences"),
                )
                await self.notifications.commit()
            except Exception:
                logger.exception("Notifying admins about absence %s failed", absence_id)
                self.notifications.discard_pending()
                await self.db.rollback()
                await self.db.refresh(absence)
        return absence

    async def decide_absence(self, absence_id: str, decision: AbsenceStatus) -> TechnicianAbsence:
        absence = await self.db.get(TechnicianAbsence, absence_id)
        if absence is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Absence not found")
        absence.status = decision
        await self.db.commit()
        await self.db.refresh(absence)
        return absence

    async def delete_absence(self, absence_id: str) -> None:
        absence = await self.db.get(TechnicianAbsence, absence_id)
        if absence is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Absence not found")
        await self.db.delete(absence)
        await self.db.commit()

    async def _ensure_linkable_user(self, user_id: str) -> None:
        user = await self.db.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if user.role != UserRole.TECHNICIAN:
            raise BusinessLogicError("Only technician profiles can be linked")
        result = await self.db.execute(select(Technician.technician_id).where(Technician.user_id == user_id))
        if result.first() is not None:
            raise BusinessLogicError("Profile is already linked to a technician", status_code=status.HTTP_409_CONFLICT)
