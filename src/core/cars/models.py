# src/core/cars/models.py
"""
Модели автомобилей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.common.constants import CarAvailability
from src.shared.models.common import EntityId

# Поля, без которых автомобиль не создаётся
REQUIRED_CAR_FIELDS = (
    "title",
    "brand",
    "model",
    "year",
    "price",
    "mileage",
    "fuel_type",
    "transmission",
    "ownership_history",
    "description",
    "condition",
)


class Car(BaseModel):
    """Автомобиль в салоне."""

    id: EntityId
    roomid: EntityId
    adminid: Optional[EntityId] = None
    title: str
    brand: str
    model: str
    year: int
    price: float
    mileage: int
    fuel_type: str
    transmission: str
    ownership_history: str
    description: str
    condition: str
    specifications: dict[str, Any] = Field(default_factory=dict)
    images: list[str] = Field(default_factory=list)
    availability: CarAvailability = CarAvailability.AVAILABLE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CarInput(BaseModel):
    """Поля автомобиля из тела запроса (все необязательные)."""

    roomid: Optional[str] = None
    title: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    price: Optional[float] = None
    mileage: Optional[int] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    ownership_history: Optional[str] = None
    description: Optional[str] = None
    condition: Optional[str] = None
    specifications: Optional[dict[str, Any]] = None
    images: Optional[list[str]] = None
    availability: Optional[CarAvailability] = None

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_CAR_FIELDS if getattr(self, name) in (None, "")]


class CarFilters(BaseModel):
    """Фильтры каталога."""

    roomid: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    fuel_type: Optional[str] = None
    availability: Optional[CarAvailability] = None
