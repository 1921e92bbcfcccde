# src/core/rooms/service.py
"""
Сервис автосалонов.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import TypeMsg, UserRole
from src.common.errors import AuthorizationError, NotFoundError, ValidationError
from src.common.logger import log_info
from src.core.auth.tokens import TokenPayload
from src.core.rooms.models import Room, RoomInput
from src.core.rooms.repository import RoomRepository
from src.infra.database import DatabaseManager


def can_manage_room(room: Room, actor: TokenPayload) -> bool:
    """Суперадмин управляет любым салоном, админ только своим."""
    if actor.role == UserRole.SUPERADMIN:
        return True
    return actor.role == UserRole.ADMIN and room.adminid == actor.user_id


class RoomService:
    """Создание, изменение, удаление и публичный просмотр салонов."""

    def __init__(self, db: DatabaseManager) -> None:
        self._repo = RoomRepository(db)

    async def list_active(self) -> list[Room]:
        return await self._repo.list_active()

    async def get(self, room_id: str) -> Room:
        room = await self._repo.get_by_id(room_id)
        if room is None:
            raise NotFoundError("Room not found")
        return room

    async def get_admin_room(self, admin_id: str) -> Room:
        room = await self._repo.get_by_admin(admin_id)
        if room is None:
            raise NotFoundError("Room not found")
        return room

    async def _get_managed(self, room_id: str, actor: TokenPayload, forbidden: str) -> Room:
        room = await self._repo.get_by_id(room_id)
        if room is None:
            raise NotFoundError("Showroom not found")
        if not can_manage_room(room, actor):
            raise AuthorizationError(forbidden)
        return room

    async def create(self, actor: TokenPayload, data: RoomInput) -> Room:
        """
        Создаёт салон. Администратору разрешён только один салон,
        суперадмин этим ограничением не связан.
        """
        if not data.name or not data.description or not data.location:
            raise ValidationError("Please provide name, description, and location")

        if actor.role == UserRole.ADMIN and await self._repo.get_by_admin(actor.user_id) is not None:
            raise ValidationError("You already have a room. Each admin can have only one room.")

        room = await self._repo.create(actor.user_id, data)
        await log_info(f"Салон {room.id} создан пользователем {actor.user_id}", type_msg=TypeMsg.INFO)
        return room

    async def update(self, room_id: str, actor: TokenPayload, data: RoomInput) -> Room:
        if not data.name or not data.description or not data.location:
            raise ValidationError("Missing required fields")

        await self._get_managed(room_id, actor, "Forbidden: You can only edit your own showroom")
        room = await self._repo.update(room_id, data)
        if room is None:
            raise NotFoundError("Showroom not found")
        return room

    async def set_status(self, room_id: str, actor: TokenPayload, is_active: Any) -> Room:
        if not isinstance(is_active, bool):
            raise ValidationError("Invalid active status provided")

        await self._get_managed(
            room_id, actor, "Forbidden: You can only update your own showroom status"
        )
        room = await self._repo.set_active(room_id, is_active)
        if room is None:
            raise NotFoundError("Showroom not found")
        return room

    async def delete(self, room_id: str, actor: TokenPayload) -> None:
        await self._get_managed(room_id, actor, "Forbidden: You can only delete your own showroom")
        if not await self._repo.delete_with_cars(room_id):
            raise NotFoundError("Showroom not found")
        await log_info(f"Салон {room_id} удалён вместе с автомобилями", type_msg=TypeMsg.INFO)
