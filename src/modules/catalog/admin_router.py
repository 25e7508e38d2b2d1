"""Admin catalog CRUD routes (skills, services, technician skills)."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin
from src.modules.catalog.models import Service, Skill, TechnicianSkill
from src.modules.catalog.schemas import (
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
    SkillCreate,
    SkillPublic,
    SkillUpdate,
    TechnicianSkillAssign,
    TechnicianSkillPublic,
    TechnicianSkillUpdate,
)
from src.modules.catalog.service import CatalogService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/admin/catalog", tags=["admin-catalog"])


def get_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


async def _commit_unique(db: AsyncSession, duplicate: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=duplicate)


@router.get("/skills", response_model=list[SkillPublic])
async def list_skills(
    category: str | None = None,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[Skill]:
    stmt = select(Skill)
    if category:
        stmt = stmt.where(Skill.category == category)
    result = await db.execute(stmt.order_by(Skill.category, Skill.name))
    return list(result.scalars().all())


@router.post("/skills", response_model=SkillPublic, status_code=status.HTTP_201_CREATED)
async def create_skill(
    payload: SkillCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Skill:
    skill = Skill(**payload.model_dump())
    db.add(skill)
    await _commit_unique(db, "Skill with same name exists")
    await db.refresh(skill)
    return skill


@router.put("/skills/{skill_id}", response_model=SkillPublic)
async def update_skill(
    skill_id: str,
    payload: SkillUpdate,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> Skill:
    skill = await service.get_skill(skill_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "category"):
            continue
        setattr(skill, field, value)
    await _commit_unique(service.db, "Skill with same name exists")
    await service.db.refresh(skill)
    return skill


@router.delete("/skills/{skill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_skill(
    skill_id: str,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> None:
    skill = await service.get_skill(skill_id)
    await service.db.delete(skill)
    await service.db.commit()


@router.get("/services", response_model=list[ServicePublic])
async def list_services(
    include_inactive: bool = True,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> list[Service]:
    return await service.list_services(include_inactive=include_inactive)


@router.post("/services", response_model=ServicePublic, status_code=status.HTTP_201_CREATED)
async def create_service(
    payload: ServiceCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Service:
    offered = Service(**payload.model_dump())
    db.add(offered)
    await _commit_unique(db, "Service with same name exists")
    await db.refresh(offered)
    return offered


@router.put("/services/{service_id}", response_model=ServicePublic)
async def update_service(
    service_id: str,
    payload: ServiceUpdate,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> Service:
    offered = await service.get_service(service_id)
    update_data = payload.model_dump(exclude_unset=True)
    if "required_skills" in update_data and update_data["required_skills"] is None:
        update_data["required_skills"] = []
    for field, value in update_data.items():
        if value is None and field in ("name", "default_aw_estimate", "is_active"):
            continue
        setattr(offered, field, value)
    await _commit_unique(service.db, "Service with same name exists")
    await service.db.refresh(offered)
    return offered


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: str,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> None:
    """Appointments keep their AW estimate; only the service link is cleared."""
    offered = await service.get_service(service_id)
    await service.db.delete(offered)
    await service.db.commit()


@router.get("/technicians/{technician_id}/skills", response_model=list[TechnicianSkillPublic])
async def list_technician_skills(
    technician_id: str,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> list[TechnicianSkill]:
    return await service.list_technician_skills(technician_id)


@router.post(
    "/technicians/{technician_id}/skills",
    response_model=TechnicianSkillPublic,
    status_code=status.HTTP_201_CREATED,
)
async def assign_technician_skill(
    technician_id: str,
    payload: TechnicianSkillAssign,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> TechnicianSkill:
    return await service.assign_skill(technician_id, payload)


@router.patch("/technicians/{technician_id}/skills/{skill_id}", response_model=TechnicianSkillPublic)
async def update_technician_skill(
    technician_id: str,
    skill_id: str,
    payload: TechnicianSkillUpdate,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> TechnicianSkill:
    return await service.update_proficiency(technician_id, skill_id, payload.proficiency_level)


@router.delete("/technicians/{technician_id}/skills/{skill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_technician_skill(
    technician_id: str,
    skill_id: str,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_service),
) -> None:
    await service.remove_skill(technician_id, skill_id)
