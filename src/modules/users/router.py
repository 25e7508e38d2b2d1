"""Routes for the caller's own profile."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core import rbac
from src.core.database import get_db
from src.core.deps import get_current_user
from src.modules.users.models import User
from src.modules.users.schemas import UserPublic, UserUpdate

router = APIRouter(prefix="/api/v1/users", tags=["users"])

NAVIGATION_ITEMS = (
    {"id": "dashboard", "label": "Dashboard", "href": "/dashboard"},
    {"id": "jobs", "label": "Jobs", "href": "/jobs"},
    {"id": "customers", "label": "Customers", "href": "/customers"},
    {"id": "vehicles", "label": "Vehicles", "href": "/vehicles"},
    {"id": "technicians", "label": "Technicians", "href": "/technicians"},
    {"id": "leitstand", "label": "Control Board", "href": "/leitstand"},
    {"id": "plantafel", "label": "Planning Board", "href": "/plantafel"},
    {"id": "dayview", "label": "Day View", "href": "/dayview"},
    {"id": "calendar", "label": "Calendar", "href": "/calendar"},
)


@router.get("/me", response_model=UserPublic)
async def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.get("/me/permissions")
async def get_my_permissions(current_user: User = Depends(get_current_user)) -> dict:
    """Resources and navigation entries the caller's role grants."""
    return {
        "role": current_user.role.value,
        "resources": rbac.accessible_resources(current_user),
        "navigation": rbac.filter_navigation_items(current_user, NAVIGATION_ITEMS),
    }


@router.patch("/me", response_model=UserPublic)
async def update_me(
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    update_data = payload.model_dump(exclude_unset=True)
    if not update_data:
        return current_user
    if "display_name" in update_data:
        value = update_data["display_name"]
        if value is not None:
            value = value.strip()
            if not value:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="display_name cannot be empty")
        current_user.display_name = value
    await db.commit()
    await db.refresh(current_user)
    return current_user
