# src/core/cars/service.py
"""
Сервис автомобилей.
"""

from __future__ import annotations

from src.common.constants import TypeMsg, UserRole
from src.common.errors import AuthorizationError, NotFoundError, ValidationError
from src.common.logger import log_info
from src.core.auth.tokens import TokenPayload
from src.core.cars.models import Car, CarFilters, CarInput
from src.core.cars.repository import CarRepository
from src.core.rooms.repository import RoomRepository
from src.infra.database import DatabaseManager
from src.shared.models.common import parse_uuid


class CarService:
    """Каталог и управление автомобилями салона."""

    def __init__(self, db: DatabaseManager) -> None:
        self._repo = CarRepository(db)
        self._rooms = RoomRepository(db)

    async def list_cars(self, filters: CarFilters) -> list[Car]:
        if filters.roomid:
            filters.roomid = parse_uuid(filters.roomid, "Invalid room id")
        return await self._repo.list(filters)

    async def get(self, car_id: str) -> Car:
        car = await self._repo.get_by_id(car_id)
        if car is None:
            raise NotFoundError("Car not found")
        return car

    async def _resolve_room_id(self, actor: TokenPayload, data: CarInput) -> str:
        """
        Салон для нового автомобиля: суперадмин может указать roomid,
        иначе используется собственный салон пользователя.
        """
        if actor.role == UserRole.SUPERADMIN and data.roomid:
            room = await self._rooms.get_by_id(parse_uuid(data.roomid, "Invalid room id"))
            if room is None:
                raise NotFoundError("Room not found")
            return room.id

        room = await self._rooms.get_by_admin(actor.user_id)
        if room is None:
            raise ValidationError("You must create a room before adding cars")
        return room.id

    async def create(self, actor: TokenPayload, data: CarInput) -> Car:
        missing = data.missing_fields()
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        room_id = await self._resolve_room_id(actor, data)
        car = await self._repo.create(room_id, actor.user_id, data)
        await log_info(f"Автомобиль {car.id} добавлен в салон {room_id}", type_msg=TypeMsg.INFO)
        return car

    async def _get_owned(self, car_id: str, actor: TokenPayload, forbidden: str) -> Car:
        car = await self.get(car_id)
        if actor.role == UserRole.SUPERADMIN:
            return car
        if actor.role == UserRole.ADMIN and car.adminid == actor.user_id:
            return car
        raise AuthorizationError(forbidden)

    async def update(self, car_id: str, actor: TokenPayload, data: CarInput) -> Car:
        await self._get_owned(car_id, actor, "Forbidden: You can only edit your own cars")
        car = await self._repo.update(car_id, data)
        if car is None:
            raise NotFoundError("Car not found")
        return car

    async def delete(self, car_id: str, actor: TokenPayload) -> None:
        await self._get_owned(car_id, actor, "Forbidden: You can only delete your own cars")
        await self._repo.delete(car_id)
        await log_info(f"Автомобиль {car_id} удалён", type_msg=TypeMsg.INFO)
