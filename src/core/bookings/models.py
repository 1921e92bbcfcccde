# src/core/bookings/models.py
"""
Модели бронирований.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.common.constants import BookingStatus
from src.shared.models.common import EntityId


class Booking(BaseModel):
    """Бронирование автомобиля."""

    id: EntityId
    carid: EntityId
    userid: EntityId
    roomid: EntityId
    start_date: datetime
    end_date: datetime
    total_price: float = 0
    status: BookingStatus = BookingStatus.PENDING
    details: dict[str, Any] = Field(default_factory=dict, description="Телефон, заметки клиента")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Поля из JOIN, заполняются не во всех выборках
    room_adminid: Optional[EntityId] = Field(None, exclude=True)
    car: Optional[dict[str, Any]] = None
    user: Optional[dict[str, Any]] = None


class BookingDraft(BaseModel):
    """Подготовленные данные нового бронирования."""

    carid: str
    userid: str
    roomid: str
    start_date: datetime
    end_date: datetime
    total_price: float
    details: dict[str, Any] = Field(default_factory=dict)
