"""Appointments API routes."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin, require_permission
from src.modules.appointments.schemas import AppointmentCreate, AppointmentPublic, AppointmentUpdate
from src.modules.appointments.service import AppointmentService
from src.modules.notifications.push import build_push_gateway
from src.modules.notifications.service import NotificationService
from src.modules.users.models import User
from src.shared.enums import AppointmentStatus, normalize_status

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])
admin_router = APIRouter(prefix="/api/v1/admin/appointments", tags=["admin-appointments"])


def get_service(db: AsyncSession = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db, NotificationService(db, build_push_gateway()))


@router.get("", response_model=list[AppointmentPublic])
async def list_appointments(
    day: date | None = Query(None, alias="date"),
    status_filter: str | None = Query(None, alias="status"),
    current_user: User = Depends(require_permission("appointments", "read")),
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    resolved: AppointmentStatus | None = None
    if status_filter is not None:
        try:
            resolved = normalize_status(status_filter)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return await service.list_appointments(current_user, day=day, status_filter=resolved)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(require_permission("appointments", "read")),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.get_for_user(appointment_id, current_user)


@admin_router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def admin_create_appointment(
    payload: AppointmentCreate,
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.create(payload)


@admin_router.put("/{appointment_id}", response_model=AppointmentPublic)
async def admin_update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.update(appointment_id, payload)
