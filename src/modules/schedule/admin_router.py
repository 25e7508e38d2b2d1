"""Admin planning-board routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin
from src.modules.appointments.schemas import StatusChangeRequest
from src.modules.schedule.lifecycle import AssignmentLifecycleManager
from src.modules.schedule.router import get_lifecycle, lifecycle_response
from src.modules.schedule.schemas import (
    AssignRequest,
    BoardView,
    LifecycleResultPublic,
    ValidateRequest,
    ValidateResponse,
)
from src.modules.schedule.service import get_board
from src.modules.users.models import User
from src.shared import clock

router = APIRouter(prefix="/api/v1/admin/schedule", tags=["admin-schedule"])


@router.get("/board", response_model=BoardView)
async def planning_board(
    date_value: date | None = Query(None, alias="date"),
    q: str | None = Query(None, max_length=100),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await get_board(date_value or clock.now().date(), db, query=q)


@router.post("/validate", response_model=ValidateResponse)
async def validate_assignment(
    payload: ValidateRequest,
    _: User = Depends(require_admin),
    lifecycle: AssignmentLifecycleManager = Depends(get_lifecycle),
):
    """Dry run of a lane drop; nothing is written."""
    plan = await lifecycle.prepare_assignment(payload.appointment_id, payload.technician_id, payload.start_time)
    return {"start_time": plan.start, "end_time": plan.end, "report": plan.report.as_payload()}


@router.post("/appointments/{appointment_id}/assign", response_model=LifecycleResultPublic)
async def assign_appointment(
    appointment_id: str,
    payload: AssignRequest,
    _: User = Depends(require_admin),
    lifecycle: AssignmentLifecycleManager = Depends(get_lifecycle),
):
    result = await lifecycle.drop_on_technician(
        appointment_id,
        payload.technician_id,
        start=payload.start_time,
        aw_planned=payload.aw_planned,
    )
    return lifecycle_response(result)


@router.post("/appointments/{appointment_id}/unassign", response_model=LifecycleResultPublic)
async def unassign_appointment(
    appointment_id: str,
    _: User = Depends(require_admin),
    lifecycle: AssignmentLifecycleManager = Depends(get_lifecycle),
):
    return lifecycle_response(await lifecycle.drop_to_inbox(appointment_id))


@router.post("/appointments/{appointment_id}/status", response_model=LifecycleResultPublic)
async def change_status(
    appointment_id: str,
    payload: StatusChangeRequest,
    _: User = Depends(require_admin),
    lifecycle: AssignmentLifecycleManager = Depends(get_lifecycle),
):
    return lifecycle_response(await lifecycle.move_to_status(appointment_id, payload.status))


@router.post("/appointments/{appointment_id}/cancel", response_model=LifecycleResultPublic)
async def cancel_appointment(
    appointment_id: str,
    _: User = Depends(require_admin),
    lifecycle: AssignmentLifecycleManager = Depends(get_lifecycle),
):
    return lifecycle_response(await lifecycle.cancel(appointment_id))
