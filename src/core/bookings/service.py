# src/core/bookings/service.py
"""
Сервис бронирований.

Резерв автомобиля и запись бронирования выполняются одной транзакцией.
Оповещения администратора и клиента (realtime, уведомление, push, e-mail)
ставятся в очередь после фиксации и не влияют на ответ.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.common.constants import (
    BookingStatus,
    CarAvailability,
    NotificationType,
    RealtimeEvent,
    TypeMsg,
    UserRole,
)
from src.common.errors import AuthorizationError, NotFoundError, ValidationError
from src.common.logger import log_error, log_info
from src.core.auth.tokens import TokenPayload
from src.core.bookings.models import Booking, BookingDraft
from src.core.bookings.repository import BookingRepository
from src.core.bookings.state_machine import BookingStateMachine
from src.core.cars.models import Car
from src.core.cars.repository import CarRepository
from src.core.notifications import emails
from src.core.notifications.service import NotificationService
from src.core.realtime.channels import notification_channel
from src.core.rooms.models import Room
from src.core.rooms.repository import RoomRepository
from src.core.users.repository import UserRepository
from src.infra.database import DatabaseManager
from src.shared.models.common import parse_uuid


def _parse_date(value: Any, default: datetime) -> datetime:
    if value in (None, ""):
        return default
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("Invalid booking dates")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_amount(details: dict[str, Any]) -> float:
    raw = details.get("bookingAmount") or details.get("totalPrice") or 0
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid booking amount")
    if amount < 0:
        raise ValidationError("Invalid booking amount")
    return amount


class BookingService:
    """Бронирование автомобилей и смена статусов."""

    def __init__(self, db: DatabaseManager, notifier: NotificationService) -> None:
        self._repo = BookingRepository(db)
        self._cars = CarRepository(db)
        self._rooms = RoomRepository(db)
        self._users = UserRepository(db)
        self._notifier = notifier

    # =========================================================================
    # СОЗДАНИЕ
    # =========================================================================

    async def create(
        self,
        actor: TokenPayload,
        car_id: Optional[str],
        details: Optional[dict[str, Any]],
    ) -> Booking:
        """
        Создаёт бронирование в статусе Pending и резервирует автомобиль.

        Raises:
            ValidationError: Нет carId, свой автомобиль, автомобиль недоступен
            NotFoundError: Нет автомобиля или салона
        """
        if not car_id:
            raise ValidationError("Missing required fields")
        details = dict(details or {})

        car = await self._cars.get_by_id(parse_uuid(car_id, "Invalid car id"))
        if car is None:
            raise NotFoundError("Car not found")

        room = await self._rooms.get_by_id(car.roomid)
        if room is None:
            raise NotFoundError("Room not found for this car")
        if room.adminid == actor.user_id:
            raise ValidationError("Admin cannot book their own car")
        if car.availability != CarAvailability.AVAILABLE:
            raise ValidationError("Car is not available for booking")

        now = datetime.now(timezone.utc)
        start_date = _parse_date(details.get("startDate"), now)
        end_date = _parse_date(details.get("endDate"), start_date + timedelta(days=1))
        if end_date < start_date:
            raise ValidationError("Invalid booking dates")

        draft = BookingDraft(
            carid=car.id,
            userid=actor.user_id,
            roomid=room.id,
            start_date=start_date,
            end_date=end_date,
            total_price=_parse_amount(details),
            details={
                "phone": details.get("phone"),
                "notes": details.get("notes") or "",
            },
        )
        booking = await self._repo.create_reserving_car(draft)
        if booking is None:
            raise ValidationError("Car is not available for booking")

        await log_info(f"Бронирование {booking.id} автомобиля {car.id}", type_msg=TypeMsg.INFO)
        await self._announce_booking(booking, car, room)
        return booking

    async def _announce_booking(self, booking: Booking, car: Car, room: Room) -> None:
        """Оповещает администратора салона и клиента. Ошибки только логируются."""
        try:
            customer = await self._users.get_by_id(booking.userid)
            admin = await self._users.get_by_id(room.adminid) if room.adminid else None
        except Exception as e:
            await log_error(f"Не удалось загрузить участников бронирования {booking.id}: {e}")
            return

        car_info = car.model_dump(mode="json")
        if admin is not None and customer is not None:
            self._notifier.queue_realtime(
                notification_channel(admin.id),
                RealtimeEvent.NEW_BOOKING.value,
                {
                    "type": NotificationType.BOOKING.value,
                    "message": f"New booking for {car.title}",
                    "carId": car.id,
                    "bookingId": booking.id,
                    "userId": customer.id,
                    "userName": customer.username,
                    "userPhone": booking.details.get("phone") or "No phone provided",
                    "notes": booking.details.get("notes") or "",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )
            await self._notifier.notify(
                admin.id,
                NotificationType.BOOKING.value,
                "New Car Booking",
                f"New booking for {car.title} by {customer.username}",
                {"bookingId": booking.id, "carId": car.id, "senderId": customer.id},
            )
            subject, html = emails.booking_admin_email(
                admin.username, car_info, customer.model_dump(mode="json"), booking.details
            )
            self._notifier.queue_email(admin.email, subject, html)

        if customer is not None:
            subject, html = emails.booking_user_email(customer.username, car_info, booking.details)
            self._notifier.queue_email(customer.email, subject, html)

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get(self, booking_id: str, actor: TokenPayload) -> Booking:
        """Бронирование видят клиент, администратор салона и суперадмин."""
        booking = await self._repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        allowed = (
            actor.role == UserRole.SUPERADMIN
            or booking.userid == actor.user_id
            or (actor.role == UserRole.ADMIN and booking.room_adminid == actor.user_id)
        )
        if not allowed:
            raise AuthorizationError("Unauthorized access to booking")
        return booking

    async def list_for_user(self, user_id: str) -> list[Booking]:
        return await self._repo.list_for_user(user_id)

    async def list_for_admin(self, actor: TokenPayload) -> list[Booking]:
        """Админ видит бронирования своего салона, суперадмин все."""
        if actor.role == UserRole.SUPERADMIN:
            return await self._repo.list_all()

        room = await self._rooms.get_by_admin(actor.user_id)
        if room is None:
            return []
        return await self._repo.list_for_room(room.id)

    # =========================================================================
    # СТАТУС
    # =========================================================================

    async def update_status(self, booking_id: str, actor: TokenPayload, status: Optional[str]) -> Booking:
        try:
            new_status = BookingStatus(status)
        except ValueError:
            raise ValidationError("Invalid booking status")

        booking = await self._repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        is_room_admin = actor.role == UserRole.ADMIN and booking.room_adminid == actor.user_id
        if actor.role != UserRole.SUPERADMIN and not is_room_admin:
            raise AuthorizationError("Forbidden: You can only manage bookings for your own showroom")

        if not BookingStateMachine.can_transition(booking.status, new_status):
            raise ValidationError(
                f"Cannot change booking status from {booking.status.value} to {new_status.value}"
            )

        updated = await self._repo.update_status(
            booking, new_status, BookingStateMachine.car_availability_after(new_status)
        )
        if updated is None:
            raise ValidationError("Booking status was changed by another request")

        await log_info(
            f"Бронирование {booking_id}: {booking.status.value} -> {new_status.value}",
            type_msg=TypeMsg.INFO,
        )
        title = (booking.car or {}).get("title", "your car")
        await self._notifier.notify(
            booking.userid,
            NotificationType.BOOKING_STATUS.value,
            f"Booking {new_status.value}",
            f"Your booking for {title} is now {new_status.value}",
            {"bookingId": booking.id, "status": new_status.value},
        )
        return updated
