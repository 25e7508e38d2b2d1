"""Admin-facing routes for profile management."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin
from src.modules.users.models import User
from src.modules.users.schemas import UserAdminPublic, UserAdminUpdate, UserCreate

router = APIRouter(prefix="/api/v1/admin/users", tags=["admin-users"])


@router.get("", response_model=list[UserAdminPublic])
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


@router.post("", response_model=UserAdminPublic, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Register a profile for an identity issued by the auth provider."""
    data = payload.model_dump(exclude_none=True)
    user = User(**data)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile with same email exists")
    await db.refresh(user)
    return user


@router.patch("/{user_id}", response_model=UserAdminPublic)
async def update_user(
    user_id: str,
    payload: UserAdminUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    update_data = payload.model_dump(exclude_unset=True)
    if user.user_id == current_user.user_id and (
        update_data.get("is_active") is False or update_data.get("role") not in (None, user.role)
    ):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot demote or disable themselves")
    for key, value in update_data.items():
        if value is None and key in ("role", "is_active"):
            continue
        setattr(user, key, value)
    await db.commit()
    await db.refresh(user)
    return user
