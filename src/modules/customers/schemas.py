"""Customer and vehicle schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.shared.enums import CustomerStatus


class CustomerBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    address: str | None = None
    status: CustomerStatus = CustomerStatus.ACTIVE


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    address: str | None = None
    status: CustomerStatus | None = None


class CustomerPublic(CustomerBase):
    model_config = ConfigDict(from_attributes=True)

    customer_id: str = Field(serialization_alias="id")
    created_at: datetime


class VehicleBase(BaseModel):
    make: str = Field(min_length=1, max_length=60)
    model: str = Field(min_length=1, max_length=60)
    year: int | None = Field(default=None, ge=1900, le=2100)
    vin: str | None = Field(default=None, max_length=17)
    license_plate: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=40)


class VehicleCreate(VehicleBase):
    pass


class VehicleUpdate(BaseModel):
    make: str | None = Field(default=None, min_length=1, max_length=60)
    model: str | None = Field(default=None, min_length=1, max_length=60)
    year: int | None = Field(default=None, ge=1900, le=2100)
    vin: str | None = Field(default=None, max_length=17)
    license_plate: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=40)


class VehiclePublic(VehicleBase):
    model_config = ConfigDict(from_attributes=True)

    vehicle_id: str = Field(serialization_alias="id")
    customer_id: str
