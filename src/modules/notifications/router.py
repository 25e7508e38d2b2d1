"""Routes for the caller's own notifications."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_permission
from src.modules.notifications.models import Notification
from src.modules.notifications.schemas import NotificationRead
from src.modules.notifications.service import NotificationService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead])
async def list_my_notifications(
    unread_only: bool = False,
    current_user: User = Depends(require_permission("notifications", "read")),
    db: AsyncSession = Depends(get_db),
) -> list[Notification]:
    return await NotificationService(db).list_for_user(current_user, unread_only=unread_only)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(require_permission("notifications", "read")),
    db: AsyncSession = Depends(get_db),
) -> Notification:
    return await NotificationService(db).mark_read(notification_id, current_user)


@router.post("/read-all", status_code=status.HTTP_204_NO_CONTENT)
async def mark_all_notifications_read(
    current_user: User = Depends(require_permission("notifications", "read")),
    db: AsyncSession = Depends(get_db),
) -> None:
    await NotificationService(db).mark_all_read(current_user)
