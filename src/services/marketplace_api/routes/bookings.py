# src/services/marketplace_api/routes/bookings.py
"""
Бронирования.

Endpoints:
- POST /bookings - забронировать автомобиль
- GET /bookings - свои бронирования
- GET /bookings/{id} - бронирование
- PUT /bookings/{id}/status - сменить статус (админ салона, суперадмин)
"""

from __future__ import annotations

from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.core.bookings import BookingService
from src.services.marketplace_api.dependencies import AdminUser, CurrentUser, get_booking_service

router = APIRouter(prefix="/bookings", tags=["Bookings"])

Bookings = Annotated[BookingService, Depends(get_booking_service)]


class CreateBookingRequest(BaseModel):
    car_id: Optional[str] = Field(None, alias="carId")
    booking_details: Optional[dict[str, Any]] = Field(None, alias="bookingDetails")

    model_config = {"populate_by_name": True}


class BookingStatusRequest(BaseModel):
    status: Optional[str] = None


@router.post("", status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    actor: CurrentUser,
    service: Bookings,
) -> dict[str, Any]:
    """Автомобиль резервируется, администратор салона получает оповещения."""
    booking = await service.create(actor, request.car_id, request.booking_details)
    return {
        "message": "Car booking created successfully and email notifications sent",
        "booking": booking.model_dump(mode="json"),
    }


@router.get("")
async def list_my_bookings(actor: CurrentUser, service: Bookings) -> dict[str, Any]:
    bookings = await service.list_for_user(actor.user_id)
    return {"bookings": [booking.model_dump(mode="json") for booking in bookings]}


@router.get("/{booking_id}")
async def get_booking(booking_id: UUID, actor: CurrentUser, service: Bookings) -> dict[str, Any]:
    booking = await service.get(str(booking_id), actor)
    return {"booking": booking.model_dump(mode="json")}


@router.put("/{booking_id}/status")
async def update_booking_status(
    booking_id: UUID,
    request: BookingStatusRequest,
    actor: AdminUser,
    service: Bookings,
) -> dict[str, Any]:
    booking = await service.update_status(str(booking_id), actor, request.status)
    return {"message": "Booking status updated successfully", "booking": booking.model_dump(mode="json")}
