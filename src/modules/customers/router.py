"""Customer and vehicle routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_permission
from src.modules.customers.models import Customer, Vehicle
from src.modules.customers.schemas import (
    CustomerCreate,
    CustomerPublic,
    CustomerUpdate,
    VehicleCreate,
    VehiclePublic,
    VehicleUpdate,
)
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/customers", tags=["customers"])

NON_NULLABLE_CUSTOMER_FIELDS = ("name", "status")
NON_NULLABLE_VEHICLE_FIELDS = ("make", "model")


async def _get_customer(customer_id: str, db: AsyncSession) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


async def _get_vehicle(customer_id: str, vehicle_id: str, db: AsyncSession) -> Vehicle:
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None or vehicle.customer_id != customer_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return vehicle


def _apply_update(record, update_data: dict, required: tuple[str, ...]) -> None:
    for key, value in update_data.items():
        if key in required and value is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{key} cannot be empty")
        setattr(record, key, value)


@router.get("", response_model=list[CustomerPublic])
async def list_customers(
    q: str | None = Query(None, max_length=100),
    _: User = Depends(require_permission("customers", "read")),
    db: AsyncSession = Depends(get_db),
) -> list[Customer]:
    stmt = select(Customer)
    if q and q.strip():
        pattern = f"%{q.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Customer.name).like(pattern),
                func.lower(Customer.email).like(pattern),
                Customer.phone.like(pattern),
            )
        )
    result = await db.execute(stmt.order_by(Customer.name))
    return list(result.scalars().all())


@router.post("", response_model=CustomerPublic, status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    _: User = Depends(require_permission("customers", "create")),
    db: AsyncSession = Depends(get_db),
) -> Customer:
    customer = Customer(**payload.model_dump())
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return customer


@router.get("/{customer_id}", response_model=CustomerPublic)
async def get_customer(
    customer_id: str,
    _: User = Depends(require_permission("customers", "read")),
    db: AsyncSession = Depends(get_db),
) -> Customer:
    return await _get_customer(customer_id, db)


@router.put("/{customer_id}", response_model=CustomerPublic)
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    _: User = Depends(require_permission("customers", "update")),
    db: AsyncSession = Depends(get_db),
) -> Customer:
    customer = await _get_customer(customer_id, db)
    _apply_update(customer, payload.model_dump(exclude_unset=True), NON_NULLABLE_CUSTOMER_FIELDS)
    await db.commit()
    await db.refresh(customer)
    return customer


@router.get("/{customer_id}/vehicles", response_model=list[VehiclePublic])
async def list_vehicles(
    customer_id: str,
    _: User = Depends(require_permission("vehicles", "read")),
    db: AsyncSession = Depends(get_db),
) -> list[Vehicle]:
    await _get_customer(customer_id, db)
    result = await db.execute(select(Vehicle).where(Vehicle.customer_id == customer_id).order_by(Vehicle.make))
    return list(result.scalars().all())


@router.post("/{customer_id}/vehicles", response_model=VehiclePublic, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    customer_id: str,
    payload: VehicleCreate,
    _: User = Depends(require_permission("vehicles", "create")),
    db: AsyncSession = Depends(get_db),
) -> Vehicle:
    await _get_customer(customer_id, db)
    vehicle = Vehicle(customer_id=customer_id, **payload.model_dump())
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle


@router.put("/{customer_id}/vehicles/{vehicle_id}", response_model=VehiclePublic)
async def update_vehicle(
    customer_id: str,
    vehicle_id: str,
    payload: VehicleUpdate,
    _: User = Depends(require_permission("vehicles", "update")),
    db: AsyncSession = Depends(get_db),
) -> Vehicle:
    vehicle = await _get_vehicle(customer_id, vehicle_id, db)
    _apply_update(vehicle, payload.model_dump(exclude_unset=True), NON_NULLABLE_VEHICLE_FIELDS)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle
