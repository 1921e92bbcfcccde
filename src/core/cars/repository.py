# src/core/cars/repository.py
"""
Репозиторий автомобилей.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from src.common.constants import CarAvailability
from src.core.cars.models import Car, CarFilters, CarInput
from src.infra.database import DatabaseManager

_COLUMNS = """
    id, roomid, adminid, title, brand, model, year, price, mileage, fuel_type,
    transmission, ownership_history, description, condition, specifications,
    images, availability, created_at, updated_at
"""

# Колонки, которые можно менять через PUT
_UPDATABLE = (
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
    "specifications",
    "images",
    "availability",
)


def _db_value(column: str, value: Any) -> Any:
    if column == "price" and value is not None:
        return Decimal(str(value))
    if isinstance(value, CarAvailability):
        return value.value
    return value


def build_where(filters: CarFilters) -> tuple[str, list[Any]]:
    """Собирает WHERE и параметры по фильтрам каталога."""
    clauses: list[str] = []
    args: list[Any] = []

    def add(clause: str, value: Any) -> None:
        args.append(value)
        clauses.append(clause.format(n=len(args)))

    if filters.roomid:
        add("roomid = ${n}", filters.roomid)
    if filters.brand:
        add("brand ILIKE ${n}", f"%{filters.brand}%")
    if filters.min_price is not None:
        add("price >= ${n}", Decimal(str(filters.min_price)))
    if filters.max_price is not None:
        add("price <= ${n}", Decimal(str(filters.max_price)))
    if filters.fuel_type:
        add("fuel_type = ${n}", filters.fuel_type)
    if filters.availability is not None:
        add("availability = ${n}", filters.availability.value)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, args


class CarRepository:
    """Доступ к таблице cars."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_by_id(self, car_id: str) -> Optional[Car]:
        row = await self._db.fetchrow(f"SELECT {_COLUMNS} FROM cars WHERE id = $1", car_id)
        return Car(**dict(row)) if row else None

    async def list(self, filters: CarFilters) -> list[Car]:
        where, args = build_where(filters)
        rows = await self._db.fetch(
            f"SELECT {_COLUMNS} FROM cars {where} ORDER BY created_at DESC",
            *args,
        )
        return [Car(**dict(row)) for row in rows]

    async def create(self, room_id: str, admin_id: str, data: CarInput) -> Car:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO cars (
                roomid, adminid, title, brand, model, year, price, mileage, fuel_type,
                transmission, ownership_history, description, condition,
                specifications, images, availability
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16)
            RETURNING {_COLUMNS}
            """,
            room_id,
            admin_id,
            data.title,
            data.brand,
            data.model,
            data.year,
            _db_value("price", data.price),
            data.mileage,
            data.fuel_type,
            data.transmission,
            data.ownership_history,
            data.description,
            data.condition,
            data.specifications or {},
            data.images or [],
            (data.availability or CarAvailability.AVAILABLE).value,
        )
        return Car(**dict(row))

    async def update(self, car_id: str, data: CarInput) -> Optional[Car]:
        """Обновляет только переданные поля."""
        changes = {
            column: value
            for column, value in data.model_dump(exclude_unset=True).items()
            if column in _UPDATABLE and value is not None
        }
        if not changes:
            return await self.get_by_id(car_id)

        args: list[Any] = [car_id]
        assignments = []
        for column, value in changes.items():
            args.append(_db_value(column, value))
            assignments.append(f"{column} = ${len(args)}")

        row = await self._db.fetchrow(
            f"""
            UPDATE cars SET {', '.join(assignments)}, updated_at = NOW()
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            *args,
        )
        return Car(**dict(row)) if row else None

    async def delete(self, car_id: str) -> bool:
        deleted = await self._db.fetchval("DELETE FROM cars WHERE id = $1 RETURNING id", car_id)
        return deleted is not None
