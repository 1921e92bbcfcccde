# src/services/marketplace_api/routes/cars.py
"""
Каталог автомобилей.

Endpoints:
- GET /cars - каталог с фильтрами (публично)
- GET /cars/{id} - автомобиль (публично)
- POST /cars - добавить автомобиль в салон
- PUT /cars/{id} - изменить автомобиль
- DELETE /cars/{id} - удалить автомобиль
"""

from __future__ import annotations

from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from src.common.constants import CarAvailability
from src.core.cars import CarFilters, CarInput, CarService
from src.services.marketplace_api.dependencies import AdminUser, get_car_service

router = APIRouter(prefix="/cars", tags=["Cars"])

Cars = Annotated[CarService, Depends(get_car_service)]


@router.get("")
async def list_cars(
    service: Cars,
    roomid: Optional[str] = Query(default=None),
    brand: Optional[str] = Query(default=None),
    min_price: Optional[float] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(default=None, alias="maxPrice", ge=0),
    fuel_type: Optional[str] = Query(default=None, alias="fuelType"),
    availability: Optional[CarAvailability] = Query(default=None),
) -> dict[str, Any]:
    filters = CarFilters(
        roomid=roomid,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        fuel_type=fuel_type,
        availability=availability,
    )
    cars = await service.list_cars(filters)
    return {"cars": [car.model_dump(mode="json") for car in cars]}


@router.get("/{car_id}")
async def get_car(car_id: UUID, service: Cars) -> dict[str, Any]:
    car = await service.get(str(car_id))
    return {"car": car.model_dump(mode="json")}


@router.post("", status_code=201)
async def create_car(request: CarInput, actor: AdminUser, service: Cars) -> dict[str, Any]:
    """Админ добавляет автомобиль в свой салон, суперадмин может указать roomid."""
    car = await service.create(actor, request)
    return {"message": "Car added successfully", "car": car.model_dump(mode="json")}


@router.put("/{car_id}")
async def update_car(
    car_id: UUID,
    request: CarInput,
    actor: AdminUser,
    service: Cars,
) -> dict[str, Any]:
    car = await service.update(str(car_id), actor, request)
    return {"message": "Car updated successfully", "car": car.model_dump(mode="json")}


@router.delete("/{car_id}")
async def delete_car(car_id: UUID, actor: AdminUser, service: Cars) -> dict[str, Any]:
    await service.delete(str(car_id), actor)
    return {"message": "Car deleted successfully"}
