# src/core/payments/models.py
"""
Модели платежей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.common.constants import PaymentStatus
from src.shared.models.common import EntityId

# Статусы, которые может выставить администратор при проверке
REVIEW_STATUSES = (PaymentStatus.APPROVED, PaymentStatus.REJECTED, PaymentStatus.COMPLETED)


class Payment(BaseModel):
    """Платёж по бронированию."""

    id: EntityId
    booking_id: EntityId
    user_id: EntityId
    amount: float
    payment_receipt_image: Optional[str] = Field(None, description="URL чека клиента")
    payment_method: str = "bank_transfer"
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_details: dict[str, Any] = Field(default_factory=dict)
    admin_notes: Optional[str] = None
    admin_scanner_image: Optional[str] = Field(None, description="URL скана, загруженного администратором")
    approved_by: Optional[EntityId] = None
    approved_at: Optional[datetime] = None
    expected_delivery_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    room_adminid: Optional[EntityId] = Field(None, exclude=True)
    user: Optional[dict[str, Any]] = None
    car: Optional[dict[str, Any]] = None
    booking: Optional[dict[str, Any]] = None


class PaymentInput(BaseModel):
    """Новый платёж клиента."""

    booking_id: Optional[str] = Field(None, alias="bookingId")
    amount: Optional[float] = None
    payment_receipt_image: Optional[str] = Field(None, alias="paymentReceiptImage")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    payment_details: Optional[dict[str, Any]] = Field(None, alias="paymentDetails")
    expected_delivery_date: Optional[datetime] = Field(None, alias="expectedDeliveryDate")

    model_config = {"populate_by_name": True}


class PaymentReview(BaseModel):
    """Решение администратора по платежу."""

    payment_status: Optional[str] = None
    admin_notes: Optional[str] = None
    admin_scanner_image: Optional[str] = None
    otp: Optional[str] = None
