"""Admin routes for the technician roster and absences."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin
from src.modules.technicians.models import Technician, TechnicianAbsence
from src.modules.technicians.schemas import (
    AbsenceCreate,
    AbsenceDecision,
    AbsencePublic,
    TechnicianCreate,
    TechnicianPublic,
    TechnicianUpdate,
)
from src.modules.technicians.service import TechnicianService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/admin/technicians", tags=["admin-technicians"])


def get_service(db: AsyncSession = Depends(get_db)) -> TechnicianService:
    return TechnicianService(db)


@router.get("", response_model=list[TechnicianPublic])
async def list_technicians(
    include_inactive: bool = False,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> list[Technician]:
    return await service.list_technicians(include_inactive=include_inactive)


@router.post("", response_model=TechnicianPublic, status_code=status.HTTP_201_CREATED)
async def create_technician(
    payload: TechnicianCreate,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> Technician:
    return await service.create(payload)


@router.get("/absences", response_model=list[AbsencePublic])
async def list_absences(
    technician_id: str | None = None,
    start: date | None = Query(None, alias="from"),
    end: date | None = Query(None, alias="to"),
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> list[TechnicianAbsence]:
    return await service.list_absences(technician_id, start, end)


@router.post("/absences", response_model=AbsencePublic, status_code=status.HTTP_201_CREATED)
async def create_absence(
    payload: AbsenceCreate,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> TechnicianAbsence:
    return await service.create_absence(payload)


@router.patch("/absences/{absence_id}", response_model=AbsencePublic)
async def decide_absence(
    absence_id: str,
    payload: AbsenceDecision,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> TechnicianAbsence:
    return await service.decide_absence(absence_id, payload.status)


@router.delete("/absences/{absence_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_absence(
    absence_id: str,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> None:
    await service.delete_absence(absence_id)


@router.get("/{technician_id}", response_model=TechnicianPublic)
async def get_technician(
    technician_id: str,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> Technician:
    return await service.get(technician_id)


@router.put("/{technician_id}", response_model=TechnicianPublic)
async def update_technician(
    technician_id: str,
    payload: TechnicianUpdate,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> Technician:
    return await service.update(technician_id, payload)


@router.delete("/{technician_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_technician(
    technician_id: str,
    _: User = Depends(require_admin),
    service: TechnicianService = Depends(get_service),
) -> None:
    await service.delete(technician_id)
