"""Reusable ORM mixins and key helpers."""

from datetime import datetime

import ulid
from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


def generate_ulid() -> str:
    """Return a string ULID for primary keys."""
    return str(ulid.new())


class TimestampMixin:
    """Track creation/update times in UTC."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
