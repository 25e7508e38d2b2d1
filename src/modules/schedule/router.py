"""Schedule routes shared by admins and technicians."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core import rbac
from src.core.database import get_db
from src.core.deps import get_current_user, require_permission, require_technician
from src.modules.appointments.service import AppointmentService
from src.modules.notifications.push import build_push_gateway
from src.modules.notifications.service import NotificationService
from src.modules.schedule.lifecycle import AssignmentLifecycleManager, LifecycleResult
from src.modules.schedule.schemas import CapacityPublic, LifecycleResultPublic, TechnicianDayView, TimeSlotPublic
from src.modules.schedule.service import get_capacity, get_technician_day, get_time_slots
from src.modules.users.models import User
from src.shared import clock

router = APIRouter(prefix="/api/v1/schedule", tags=["schedule"])


def get_lifecycle(db: AsyncSession = Depends(get_db)) -> AssignmentLifecycleManager:
    return AssignmentLifecycleManager(db, NotificationService(db, build_push_gateway()))


def lifecycle_response(result: LifecycleResult) -> dict:
    return {
        "appointment": result.appointment,
        "report": result.report.as_payload() if result.report is not None else None,
    }


def _ensure_can_read_lane(user: User, technician_id: str) -> None:
    if not rbac.has_permission(user, "schedule_assignments", "read", {"technician_id": technician_id}):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.get("/slots", response_model=list[TimeSlotPublic])
async def time_slots(
    date_value: date | None = Query(None, alias="date"),
    _: User = Depends(get_current_user),
) -> list:
    return get_time_slots(date_value or clock.now().date())


@router.get("/technicians/{technician_id}/capacity", response_model=CapacityPublic)
async def technician_capacity(
    technician_id: str,
    date_value: date | None = Query(None, alias="date"),
    current_user: User = Depends(require_permission("schedule_assignments", "read")),
    db: AsyncSession = Depends(get_db),
):
    _ensure_can_read_lane(current_user, technician_id)
    return await get_capacity(technician_id, date_value or clock.now().date(), db)


@router.get("/me", response_model=TechnicianDayView)
async def my_day(
    date_value: date | None = Query(None, alias="date"),
    current_user: User = Depends(require_technician),
    db: AsyncSession = Depends(get_db),
):
    technician_id = current_user.technician_id
    if technician_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No technician profile linked")
    return await get_technician_day(technician_id, date_value or clock.now().date(), db)


@router.post("/appointments/{appointment_id}/advance", response_model=LifecycleResultPublic)
async def advance_appointment(
    appointment_id: str,
    current_user: User = Depends(require_permission("appointments", "update")),
    db: AsyncSession = Depends(get_db),
    lifecycle: AssignmentLifecycleManager = Depends(get_lifecycle),
):
    """Technician progress button: apply the next action for the current status."""
    await AppointmentService(db).ensure_can_update(appointment_id, current_user)
    return lifecycle_response(await lifecycle.advance_progress(appointment_id))
