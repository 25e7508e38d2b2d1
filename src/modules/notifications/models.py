"""Notification ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import NotificationType, enum_values
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.users.models import User


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"
    __table_args__ = (UniqueConstraint("user_id", "dedupe_key", name="uq_notification_dedupe"),)

    notification_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(
            NotificationType,
            values_callable=enum_values,
            validate_strings=True,
            name="notificationtype",
        ),
        nullable=False,
        default=NotificationType.INFO,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    action_link: Mapped[str | None] = mapped_column(String(255))
    action_label: Mapped[str | None] = mapped_column(String(60))
    # Set by periodic checks so a reminder is only stored once per subject.
    dedupe_key: Mapped[str | None] = mapped_column(String(120))

    user: Mapped[User] = relationship(back_populates="notifications")


from src.modules.users.models import User  # noqa: E402
