# src/core/payments/service.py
"""
Сервис платежей: оплата бронирования клиентом и проверка администратором.

Прикрепление скана администратором подтверждается одноразовым кодом
(назначение scanner_upload), который высылается на e-mail администратора.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import (
    MSG_INVALID_OTP,
    NotificationType,
    OtpPurpose,
    PaymentStatus,
    TypeMsg,
    UserRole,
)
from src.common.errors import AuthorizationError, NotFoundError, ValidationError
from src.common.logger import log_error, log_info, log_warning
from src.core.auth.tokens import TokenPayload
from src.core.bookings.repository import BookingRepository
from src.core.notifications import emails
from src.core.notifications.service import NotificationService
from src.core.otp.service import OtpService
from src.core.payments.models import REVIEW_STATUSES, Payment, PaymentInput, PaymentReview
from src.core.payments.repository import PaymentRepository
from src.core.users.models import User
from src.core.users.repository import UserRepository
from src.infra.database import DatabaseManager
from src.shared.models.common import parse_uuid

DEFAULT_PAYMENT_METHOD = "bank_transfer"


class PaymentService:
    """Платежи по бронированиям."""

    def __init__(self, db: DatabaseManager, notifier: NotificationService, otp: OtpService) -> None:
        self._repo = PaymentRepository(db)
        self._bookings = BookingRepository(db)
        self._users = UserRepository(db)
        self._notifier = notifier
        self._otp = otp

    # =========================================================================
    # КЛИЕНТ
    # =========================================================================

    async def create(self, actor: TokenPayload, data: PaymentInput) -> Payment:
        """
        Регистрирует платёж по собственному бронированию клиента
        и оповещает администратора салона.
        """
        if not data.booking_id or data.amount is None:
            raise ValidationError("Booking ID and amount are required")
        if data.amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        booking = await self._bookings.get_by_id(parse_uuid(data.booking_id, "Invalid booking id"))
        if booking is None or booking.userid != actor.user_id:
            raise NotFoundError("Booking not found or does not belong to user")

        payment = await self._repo.create(
            booking_id=booking.id,
            user_id=actor.user_id,
            amount=data.amount,
            receipt_image=data.payment_receipt_image,
            payment_method=data.payment_method or DEFAULT_PAYMENT_METHOD,
            details=data.payment_details or {},
            expected_delivery_date=data.expected_delivery_date,
        )
        await log_info(f"Платёж {payment.id} по бронированию {booking.id}", type_msg=TypeMsg.INFO)

        if booking.room_adminid:
            await self._announce_payment(payment, booking.room_adminid, (booking.car or {}).get("title"))
        return payment

    async def _announce_payment(self, payment: Payment, admin_id: str, car_title: Optional[str]) -> None:
        try:
            admin = await self._users.get_by_id(admin_id)
            customer = await self._users.get_by_id(payment.user_id)
        except Exception as e:
            await log_error(f"Не удалось загрузить участников платежа {payment.id}: {e}")
            return
        if admin is None:
            return

        customer_name = customer.username if customer else "A customer"
        await self._notifier.notify(
            admin.id,
            NotificationType.PAYMENT.value,
            "New Payment Received",
            f"{customer_name} submitted a payment of {payment.amount} for {car_title or 'a booking'}",
            {"paymentId": payment.id, "bookingId": payment.booking_id},
        )
        subject, html = emails.payment_admin_email(
            admin.username, customer_name, payment.amount, car_title, payment.payment_method
        )
        self._notifier.queue_email(admin.email, subject, html)

    # =========================================================================
    # ПРОСМОТР
    # =========================================================================

    async def list_payments(self, actor: TokenPayload) -> list[Payment]:
        """Клиент видит свои платежи, админ платежи своего салона, суперадмин все."""
        if actor.role == UserRole.SUPERADMIN:
            return await self._repo.list_all()
        if actor.role == UserRole.ADMIN:
            return await self._repo.list_for_room_admin(actor.user_id)
        return await self._repo.list_for_user(actor.user_id)

    async def get(self, payment_id: str, actor: TokenPayload) -> Payment:
        payment = await self._repo.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")

        allowed = (
            actor.role == UserRole.SUPERADMIN
            or payment.user_id == actor.user_id
            or (actor.role == UserRole.ADMIN and payment.room_adminid == actor.user_id)
        )
        if not allowed:
            raise AuthorizationError("Unauthorized access to payment")
        return payment

    # =========================================================================
    # ПРОВЕРКА АДМИНИСТРАТОРОМ
    # =========================================================================

    async def _get_reviewer(self, actor: TokenPayload) -> User:
        user = await self._users.get_by_id(actor.user_id)
        if user is None or not user.email:
            raise NotFoundError("Admin email not found")
        return user

    async def send_scanner_otp(self, actor: TokenPayload) -> None:
        reviewer = await self._get_reviewer(actor)
        await self._otp.generate_and_send(reviewer.email, OtpPurpose.SCANNER_UPLOAD)

    async def check_scanner_otp(self, actor: TokenPayload, code: Optional[str]) -> None:
        """Предварительная проверка кода; код остаётся действительным до review."""
        if not code:
            raise ValidationError("OTP is required")
        reviewer = await self._get_reviewer(actor)
        result = await self._otp.check(reviewer.email, code, OtpPurpose.SCANNER_UPLOAD)
        if not result.success:
            raise ValidationError(MSG_INVALID_OTP)

    async def review(self, payment_id: str, actor: TokenPayload, data: PaymentReview) -> Payment:
        """
        Одобряет, отклоняет или завершает платёж.

        Raises:
            ValidationError: Неверный статус или код подтверждения
            AuthorizationError: Платёж не относится к салону администратора
        """
        try:
            status = PaymentStatus(data.payment_status)
        except ValueError:
            raise ValidationError("Invalid payment status")
        if status not in REVIEW_STATUSES:
            raise ValidationError("Invalid payment status")

        payment = await self._repo.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        if actor.role != UserRole.SUPERADMIN and payment.room_adminid != actor.user_id:
            raise AuthorizationError("Unauthorized - Payment does not belong to your room")

        if data.admin_scanner_image:
            if not data.otp:
                raise ValidationError("OTP is required to attach a scanner image")
            reviewer = await self._get_reviewer(actor)
            result = await self._otp.verify(reviewer.email, data.otp, OtpPurpose.SCANNER_UPLOAD)
            if not result.success:
                await log_warning(f"Платёж {payment_id}: код скана отклонён ({result.reason.value})")
                raise ValidationError(MSG_INVALID_OTP)

        updated = await self._repo.review(
            payment_id,
            status,
            actor.user_id,
            data.admin_notes,
            data.admin_scanner_image,
            approved=status in (PaymentStatus.APPROVED, PaymentStatus.COMPLETED),
        )
        if updated is None:
            raise NotFoundError("Payment not found")

        await log_info(f"Платёж {payment_id} -> {status.value}", type_msg=TypeMsg.INFO)
        await self._notifier.notify(
            payment.user_id,
            NotificationType.PAYMENT_STATUS.value,
            f"Payment {status.value}",
            f"Your payment of {payment.amount} has been {status.value}",
            {"paymentId": payment.id, "status": status.value},
        )
        return updated
