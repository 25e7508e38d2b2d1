"""Notification schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.shared.enums import NotificationType


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: str = Field(serialization_alias="id")
    message: str
    type: NotificationType
    is_read: bool
    action_link: str | None = None
    action_label: str | None = None
    created_at: datetime
