# src/services/marketplace_api/routes/payments.py
"""
Платежи клиентов.

Endpoints:
- POST /payments - оплатить бронирование
- GET /payments - платежи (по роли)
- GET /payments/{id} - платёж
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends

from src.core.payments import PaymentInput, PaymentService
from src.services.marketplace_api.dependencies import CurrentUser, get_payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])

Payments = Annotated[PaymentService, Depends(get_payment_service)]


@router.post("", status_code=201)
async def create_payment(
    request: PaymentInput,
    actor: CurrentUser,
    service: Payments,
) -> dict[str, Any]:
    payment = await service.create(actor, request)
    return {
        "message": "Payment created successfully and notification sent",
        "payment": payment.model_dump(mode="json"),
    }


@router.get("")
async def list_payments(actor: CurrentUser, service: Payments) -> dict[str, Any]:
    payments = await service.list_payments(actor)
    return {"payments": [payment.model_dump(mode="json") for payment in payments]}


@router.get("/{payment_id}")
async def get_payment(payment_id: UUID, actor: CurrentUser, service: Payments) -> dict[str, Any]:
    payment = await service.get(str(payment_id), actor)
    return {"payment": payment.model_dump(mode="json")}
