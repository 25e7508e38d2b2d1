"""Catalog schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.modules.catalog.models import DEFAULT_PROFICIENCY


class SkillPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    skill_id: str = Field(serialization_alias="id")
    name: str
    category: str
    description: str | None = None


class SkillCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category: str = Field(default="general", min_length=1, max_length=64)
    description: str | None = None


class SkillUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    category: str | None = Field(None, min_length=1, max_length=64)
    description: str | None = None


class TechnicianSkillPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    technician_id: str
    skill_id: str
    proficiency_level: int
    skill: SkillPublic


class TechnicianSkillAssign(BaseModel):
    skill_id: str
    proficiency_level: int = Field(DEFAULT_PROFICIENCY, ge=1, le=5)


class TechnicianSkillUpdate(BaseModel):
    proficiency_level: int = Field(ge=1, le=5)


class TechnicianMatch(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    technician_id: str = Field(serialization_alias="id")
    name: str
    matched_skills: list[str]
    missing_skills: list[str]


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    service_id: str = Field(serialization_alias="id")
    name: str
    description: str | None = None
    default_aw_estimate: int
    required_skills: list[str] = Field(default_factory=list)
    is_active: bool

    @field_validator("required_skills", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    default_aw_estimate: int = Field(10, gt=0)
    required_skills: list[str] = Field(default_factory=list)
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    default_aw_estimate: int | None = Field(None, gt=0)
    required_skills: list[str] | None = None
    is_active: bool | None = None
