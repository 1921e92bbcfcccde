# src/core/rooms/repository.py
"""
Репозиторий автосалонов.
"""

from __future__ import annotations

from typing import Optional

from src.core.rooms.models import Room, RoomInput
from src.infra.database import DatabaseManager

_COLUMNS = (
    "id, name, description, location, contact_info, image, adminid, is_active, created_at, updated_at"
)


class RoomRepository:
    """Доступ к таблице rooms."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_by_id(self, room_id: str) -> Optional[Room]:
        row = await self._db.fetchrow(f"SELECT {_COLUMNS} FROM rooms WHERE id = $1", room_id)
        return Room(**dict(row)) if row else None

    async def get_by_admin(self, admin_id: str) -> Optional[Room]:
        row = await self._db.fetchrow(
            f"SELECT {_COLUMNS} FROM rooms WHERE adminid = $1 ORDER BY created_at LIMIT 1",
            admin_id,
        )
        return Room(**dict(row)) if row else None

    async def list_active(self) -> list[Room]:
        rows = await self._db.fetch(
            f"SELECT {_COLUMNS} FROM rooms WHERE is_active = TRUE ORDER BY created_at DESC"
        )
        return [Room(**dict(row)) for row in rows]

    async def create(self, admin_id: str, data: RoomInput) -> Room:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO rooms (name, description, location, contact_info, image, adminid)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING {_COLUMNS}
            """,
            data.name,
            data.description,
            data.location,
            data.contact_info or {},
            data.image,
            admin_id,
        )
        return Room(**dict(row))

    async def update(self, room_id: str, data: RoomInput) -> Optional[Room]:
        row = await self._db.fetchrow(
            f"""
            UPDATE rooms
            SET name = $2,
                description = $3,
                location = $4,
                contact_info = COALESCE($5, contact_info),
                image = COALESCE($6, image),
                updated_at = NOW()
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            room_id,
            data.name,
            data.description,
            data.location,
            data.contact_info,
            data.image,
        )
        return Room(**dict(row)) if row else None

    async def set_active(self, room_id: str, is_active: bool) -> Optional[Room]:
        row = await self._db.fetchrow(
            f"""
            UPDATE rooms SET is_active = $2, updated_at = NOW()
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            room_id,
            is_active,
        )
        return Room(**dict(row)) if row else None

    async def delete_with_cars(self, room_id: str) -> bool:
        """
        Удаляет салон вместе с автомобилями одной транзакцией.
        Бронирования, платежи и беседы уходят каскадом по внешним ключам.
        """
        async with self._db.transaction() as conn:
            await conn.execute("DELETE FROM cars WHERE roomid = $1", room_id)
            deleted = await conn.fetchval("DELETE FROM rooms WHERE id = $1 RETURNING id", room_id)
        return deleted is not None
