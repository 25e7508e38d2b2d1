"""Technician skill assignments, skill matching and service lookups."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import BusinessLogicError
from src.modules.catalog.models import Service, Skill, TechnicianSkill
from src.modules.catalog.schemas import TechnicianSkillAssign
from src.modules.schedule.validator import missing_skills, technician_skills
from src.modules.technicians.models import Technician

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TechnicianSkillMatch:
    technician_id: str
    name: str
    matched_skills: list[str]
    missing_skills: list[str]


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_skill(self, skill_id: str) -> Skill:
        skill = await self.db.get(Skill, skill_id)
        if skill is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Skill not found")
        return skill

    async def get_service(self, service_id: str) -> Service:
        service = await self.db.get(Service, service_id)
        if service is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
        return service

    async def list_services(self, skill: str | None = None, include_inactive: bool = False) -> list[Service]:
        stmt = select(Service)
        if not include_inactive:
            stmt = stmt.where(Service.is_active.is_(True))
        result = await self.db.execute(stmt.order_by(Service.name))
        services = list(result.scalars().all())
        if skill:
            wanted = skill.strip().lower()
            services = [item for item in services if wanted in (name.lower() for name in item.required_skills or [])]
        return services

    async def _get_technician(self, technician_id: str) -> Technician:
        result = await self.db.execute(
            select(Technician)
            .options(selectinload(Technician.skill_links))
            .where(Technician.technician_id == technician_id)
            .execution_options(populate_existing=True)
        )
        technician = result.scalar_one_or_none()
        if technician is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technician not found")
        return technician

    async def list_technician_skills(self, technician_id: str) -> list[TechnicianSkill]:
        technician = await self._get_technician(technician_id)
        return sorted(technician.skill_links, key=lambda link: (link.skill.category, link.skill.name))

    async def _get_link(self, technician_id: str, skill_id: str) -> TechnicianSkill:
        result = await self.db.execute(
            select(TechnicianSkill)
            .where(
                TechnicianSkill.technician_id == technician_id,
                TechnicianSkill.skill_id == skill_id,
            )
            .execution_options(populate_existing=True)
        )
        link = result.scalar_one_or_none()
        if link is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technician has no such skill")
        return link

    async def assign_skill(self, technician_id: str, payload: TechnicianSkillAssign) -> TechnicianSkill:
        await self._get_technician(technician_id)
        await self.get_skill(payload.skill_id)
        link = TechnicianSkill(
            technician_id=technician_id,
            skill_id=payload.skill_id,
            proficiency_level=payload.proficiency_level,
        )
        self.db.add(link)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise BusinessLogicError(
                "Technician already has this skill",
                status_code=status.HTTP_409_CONFLICT,
            ) from exc
        logger.info("Assigned skill %s to technician %s", payload.skill_id, technician_id)
        return await self._get_link(technician_id, payload.skill_id)

    async def update_proficiency(self, technician_id: str, skill_id: str, level: int) -> TechnicianSkill:
        link = await self._get_link(technician_id, skill_id)
        link.proficiency_level = level
        await self.db.commit()
        return await self._get_link(technician_id, skill_id)

    async def remove_skill(self, technician_id: str, skill_id: str) -> None:
        link = await self._get_link(technician_id, skill_id)
        await self.db.delete(link)
        await self.db.commit()

    async def find_technicians_by_skills(
        self,
        required: Iterable[str],
        partial: bool = False,
    ) -> list[TechnicianSkillMatch]:
        """Active technicians covering ``required``; with ``partial`` anyone matching at least one skill."""
        required = [skill for skill in required if skill]
        result = await self.db.execute(
            select(Technician)
            .options(selectinload(Technician.skill_links))
            .where(Technician.is_active.is_(True))
            .order_by(Technician.name)
            .execution_options(populate_existing=True)
        )
        matches: list[TechnicianSkillMatch] = []
        for technician in result.scalars().all():
            lacking = missing_skills(required, technician_skills(technician))
            matched = [skill for skill in required if skill not in lacking]
            if lacking and not (partial and matched):
                continue
            matches.append(TechnicianSkillMatch(technician.technician_id, technician.name, matched, lacking))
        matches.sort(key=lambda item: len(item.missing_skills))
        return matches

    async def get_offered_service(self, service_id: str) -> Service:
        """A service appointments may still be booked for."""
        service = await self.get_service(service_id)
        if not service.is_active:
            raise BusinessLogicError(f"Service '{service.name}' is no longer offered")
        return service
