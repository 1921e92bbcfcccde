# src/core/bookings/repository.py
"""
Репозиторий бронирований.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from src.common.constants import BookingStatus, CarAvailability
from src.core.bookings.models import Booking, BookingDraft
from src.infra.database import DatabaseManager

_COLUMNS = """
    id, carid, userid, roomid, start_date, end_date, total_price, status, details,
    created_at, updated_at
"""

_SELECT_JOINED = """
    SELECT b.id, b.carid, b.userid, b.roomid, b.start_date, b.end_date, b.total_price,
           b.status, b.details, b.created_at, b.updated_at,
           r.adminid AS room_adminid,
           json_build_object(
               'id', c.id, 'title', c.title, 'brand', c.brand, 'model', c.model,
               'year', c.year, 'price', c.price, 'images', c.images,
               'availability', c.availability
           ) AS car,
           json_build_object(
               'id', u.id, 'username', u.username, 'email', u.email, 'phone', u.phone
           ) AS "user"
    FROM bookings b
    JOIN cars c ON c.id = b.carid
    JOIN rooms r ON r.id = b.roomid
    JOIN users u ON u.id = b.userid
"""


class BookingRepository:
    """Доступ к таблице bookings."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        row = await self._db.fetchrow(f"{_SELECT_JOINED} WHERE b.id = $1", booking_id)
        return Booking(**dict(row)) if row else None

    async def list_for_user(self, user_id: str) -> list[Booking]:
        rows = await self._db.fetch(
            f"{_SELECT_JOINED} WHERE b.userid = $1 ORDER BY b.created_at DESC",
            user_id,
        )
        return [Booking(**dict(row)) for row in rows]

    async def list_for_room(self, room_id: str) -> list[Booking]:
        rows = await self._db.fetch(
            f"{_SELECT_JOINED} WHERE b.roomid = $1 ORDER BY b.created_at DESC",
            room_id,
        )
        return [Booking(**dict(row)) for row in rows]

    async def list_all(self) -> list[Booking]:
        rows = await self._db.fetch(f"{_SELECT_JOINED} ORDER BY b.created_at DESC")
        return [Booking(**dict(row)) for row in rows]

    async def create_reserving_car(self, draft: BookingDraft) -> Optional[Booking]:
        """
        Резервирует автомобиль и создаёт бронирование одной транзакцией.

        Returns:
            Бронирование или None, если автомобиль уже не в статусе Available
        """
        async with self._db.transaction() as conn:
            reserved = await conn.fetchval(
                """
                UPDATE cars SET availability = $2, updated_at = NOW()
                WHERE id = $1 AND availability = $3
                RETURNING id
                """,
                draft.carid,
                CarAvailability.RESERVED.value,
                CarAvailability.AVAILABLE.value,
            )
            if reserved is None:
                return None

            row = await conn.fetchrow(
                f"""
                INSERT INTO bookings (carid, userid, roomid, start_date, end_date, total_price, status, details)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING {_COLUMNS}
                """,
                draft.carid,
                draft.userid,
                draft.roomid,
                draft.start_date,
                draft.end_date,
                Decimal(str(draft.total_price)),
                BookingStatus.PENDING.value,
                draft.details,
            )
        return Booking(**dict(row))

    async def update_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
        car_availability: Optional[CarAvailability],
    ) -> Optional[Booking]:
        """
        Меняет статус (только если он не изменился параллельно)
        и доступность автомобиля в одной транзакции.
        """
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE bookings SET status = $2, updated_at = NOW()
                WHERE id = $1 AND status = $3
                RETURNING {_COLUMNS}
                """,
                booking.id,
                new_status.value,
                booking.status.value,
            )
            if row is None:
                return None
            if car_availability is not None:
                await conn.execute(
                    "UPDATE cars SET availability = $2, updated_at = NOW() WHERE id = $1",
                    booking.carid,
                    car_availability.value,
                )
        return Booking(**dict(row))
