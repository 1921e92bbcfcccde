# src/core/bookings/__init__.py
"""Домен бронирований."""

from src.core.bookings.models import Booking, BookingDraft
from src.core.bookings.repository import BookingRepository
from src.core.bookings.service import BookingService
from src.core.bookings.state_machine import BookingStateMachine

__all__ = [
    "Booking",
    "BookingDraft",
    "BookingRepository",
    "BookingService",
    "BookingStateMachine",
]
