"""Customer and vehicle ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import CustomerStatus, enum_values
from src.shared.models import TimestampMixin, generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    customer_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(Text)
    status: Mapped[CustomerStatus] = mapped_column(
        Enum(
            CustomerStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="customerstatus",
        ),
        nullable=False,
        default=CustomerStatus.ACTIVE,
    )

    vehicles: Mapped[list[Vehicle]] = relationship(back_populates="customer", cascade="all,delete-orphan")
    appointments: Mapped[list[Appointment]] = relationship(back_populates="customer")


class Vehicle(Base, TimestampMixin):
    __tablename__ = "vehicles"

    vehicle_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    customer_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("customers.customer_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    make: Mapped[str] = mapped_column(String(60), nullable=False)
    model: Mapped[str] = mapped_column(String(60), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer)
    vin: Mapped[str | None] = mapped_column(String(17))
    license_plate: Mapped[str | None] = mapped_column(String(20), index=True)
    color: Mapped[str | None] = mapped_column(String(40))

    customer: Mapped[Customer] = relationship(back_populates="vehicles")
    appointments: Mapped[list[Appointment]] = relationship(back_populates="vehicle")


from src.modules.appointments.models import Appointment  # noqa: E402
