"""Pydantic schemas for user profiles."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.shared.enums import UserRole


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="id")
    email: str
    role: UserRole
    display_name: str | None = None
    is_active: bool
    technician_id: str | None = None


class UserUpdate(BaseModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=100)


class UserCreate(BaseModel):
    user_id: str | None = Field(default=None, min_length=1, max_length=26)
    email: str = Field(min_length=3, max_length=255)
    role: UserRole = UserRole.TECHNICIAN
    display_name: str | None = Field(default=None, max_length=100)


class UserAdminUpdate(BaseModel):
    role: UserRole | None = None
    display_name: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class UserAdminPublic(UserPublic):
    created_at: datetime
