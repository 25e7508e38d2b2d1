"""Catalog read routes for staff."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_permission
from src.modules.catalog.models import Service, Skill
from src.modules.catalog.schemas import ServicePublic, SkillPublic, TechnicianMatch
from src.modules.catalog.service import CatalogService, TechnicianSkillMatch
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


@router.get("/skills", response_model=list[SkillPublic])
async def list_skills(
    _: User = Depends(require_permission("skills", "read")),
    db: AsyncSession = Depends(get_db),
) -> list[Skill]:
    result = await db.execute(select(Skill).order_by(Skill.category, Skill.name))
    return list(result.scalars().all())


@router.get("/services", response_model=list[ServicePublic])
async def list_services(
    skill: str | None = None,
    _: User = Depends(require_permission("services", "read")),
    db: AsyncSession = Depends(get_db),
) -> list[Service]:
    return await CatalogService(db).list_services(skill=skill)


@router.get("/technicians", response_model=list[TechnicianMatch])
async def find_technicians(
    skills: list[str] = Query([], alias="skill"),
    partial: bool = False,
    _: User = Depends(require_permission("technicians", "read")),
    db: AsyncSession = Depends(get_db),
) -> list[TechnicianSkillMatch]:
    """Technicians able to take work needing every ``skill`` (or some, with ``partial``)."""
    return await CatalogService(db).find_technicians_by_skills(skills, partial=partial)
