"""ORM models for the users domain."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import UserRole, enum_values
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover - typing only
    from src.modules.notifications.models import Notification
    from src.modules.technicians.models import Technician


class User(Base, TimestampMixin):
    """Profile row for an authenticated account; the id is the token subject."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(26),
        primary_key=True,
        default=generate_ulid,
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            values_callable=enum_values,
            validate_strings=True,
            name="userrole",
        ),
        nullable=False,
        default=UserRole.TECHNICIAN,
    )
    display_name: Mapped[str | None] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    technician_profile: Mapped[Technician | None] = relationship(
        back_populates="user",
        uselist=False,
        lazy="selectin",
    )
    notifications: Mapped[list[Notification]] = relationship(
        back_populates="user",
        cascade="all,delete-orphan",
    )

    @property
    def technician_id(self) -> str | None:
        profile = self.technician_profile
        return profile.technician_id if profile is not None else None


# Late imports for type-checking relationship targets.
from src.modules.notifications.models import Notification  # noqa: E402
from src.modules.technicians.models import Technician  # noqa: E402
