"""Technician self-service routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_permission
from src.modules.notifications.push import build_push_gateway
from src.modules.notifications.service import NotificationService
from src.modules.technicians.models import TechnicianAbsence
from src.modules.technicians.schemas import AbsencePublic, AbsenceRequest
from src.modules.technicians.service import TechnicianService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/technicians", tags=["technicians"])


@router.get("/me/absences", response_model=list[AbsencePublic])
async def my_absences(
    current_user: User = Depends(require_permission("technician", "view_schedule")),
    db: AsyncSession = Depends(get_db),
) -> list[TechnicianAbsence]:
    if current_user.technician_id is None:
        return []
    return await TechnicianService(db).list_absences(current_user.technician_id)


@router.post("/me/absences", response_model=AbsencePublic, status_code=status.HTTP_201_CREATED)
async def request_absence(
    payload: AbsenceRequest,
    current_user: User = Depends(require_permission("technician", "request_absence")),
    db: AsyncSession = Depends(get_db),
) -> TechnicianAbsence:
    service = TechnicianService(db, NotificationService(db, build_push_gateway()))
    return await service.request_absence(current_user, payload)
