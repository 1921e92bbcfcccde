# src/core/payments/repository.py
"""
Репозиторий платежей.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from src.common.constants import PaymentStatus
from src.core.payments.models import Payment
from src.infra.database import DatabaseManager

_COLUMNS = """
    id, booking_id, user_id, amount, payment_receipt_image, payment_method,
    payment_status, payment_details, admin_notes, admin_scanner_image,
    approved_by, approved_at, expected_delivery_date, created_at, updated_at
"""

_SELECT_JOINED = """
    SELECT p.id, p.booking_id, p.user_id, p.amount, p.payment_receipt_image, p.payment_method,
           p.payment_status, p.payment_details, p.admin_notes, p.admin_scanner_image,
           p.approved_by, p.approved_at, p.expected_delivery_date, p.created_at, p.updated_at,
           r.adminid AS room_adminid,
           json_build_object('username', u.username, 'email', u.email, 'phone', u.phone) AS "user",
           json_build_object(
               'id', c.id, 'title', c.title, 'brand', c.brand, 'model', c.model, 'year', c.year
           ) AS car,
           json_build_object('start_date', b.start_date, 'end_date', b.end_date) AS booking
    FROM payments p
    JOIN bookings b ON b.id = p.booking_id
    JOIN cars c ON c.id = b.carid
    JOIN rooms r ON r.id = b.roomid
    JOIN users u ON u.id = p.user_id
"""


class PaymentRepository:
    """Доступ к таблице payments."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create(
        self,
        booking_id: str,
        user_id: str,
        amount: float,
        receipt_image: Optional[str],
        payment_method: str,
        details: dict[str, Any],
        expected_delivery_date: Optional[datetime],
    ) -> Payment:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO payments (
                booking_id, user_id, amount, payment_receipt_image, payment_method,
                payment_details, expected_delivery_date
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING {_COLUMNS}
            """,
            booking_id,
            user_id,
            Decimal(str(amount)),
            receipt_image,
            payment_method,
            details,
            expected_delivery_date,
        )
        return Payment(**dict(row))

    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        row = await self._db.fetchrow(f"{_SELECT_JOINED} WHERE p.id = $1", payment_id)
        return Payment(**dict(row)) if row else None

    async def list_for_user(self, user_id: str) -> list[Payment]:
        rows = await self._db.fetch(
            f"{_SELECT_JOINED} WHERE p.user_id = $1 ORDER BY p.created_at DESC",
            user_id,
        )
        return [Payment(**dict(row)) for row in rows]

    async def list_for_room_admin(self, admin_id: str) -> list[Payment]:
        rows = await self._db.fetch(
            f"{_SELECT_JOINED} WHERE r.adminid = $1 ORDER BY p.created_at DESC",
            admin_id,
        )
        return [Payment(**dict(row)) for row in rows]

    async def list_all(self) -> list[Payment]:
        rows = await self._db.fetch(f"{_SELECT_JOINED} ORDER BY p.created_at DESC")
        return [Payment(**dict(row)) for row in rows]

    async def review(
        self,
        payment_id: str,
        status: PaymentStatus,
        reviewer_id: str,
        admin_notes: Optional[str],
        scanner_image: Optional[str],
        approved: bool,
    ) -> Optional[Payment]:
        """Сохраняет решение; approved_by/approved_at только для одобрения."""
        row = await self._db.fetchrow(
            f"""
            UPDATE payments
            SET payment_status = $2,
                admin_notes = COALESCE($3, admin_notes),
                admin_scanner_image = COALESCE($4, admin_scanner_image),
                approved_by = CASE WHEN $5 THEN $6::uuid ELSE approved_by END,
                approved_at = CASE WHEN $5 THEN NOW() ELSE approved_at END,
                updated_at = NOW()
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            payment_id,
            status.value,
            admin_notes,
            scanner_image,
            approved,
            reviewer_id,
        )
        return Payment(**dict(row)) if row else None
