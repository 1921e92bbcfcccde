# tests/core/test_payments_service.py
"""
Тесты для сервиса платежей.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import pytest

from src.common.constants import OtpPurpose, PaymentStatus, UserRole
from src.common.errors import AuthorizationError, NotFoundError, ValidationError
from src.core.otp.models import OtpVerification
from src.core.otp.state_machine import OtpFailure
from src.core.payments.models import PaymentInput, PaymentReview
from src.core.payments.service import PaymentService


@pytest.fixture
def payment_row() -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "id": uuid.uuid4(),
        "booking_id": uuid.uuid4(),
        "user_id": uuid.uuid4(),
        "amount": 1500,
        "payment_receipt_image": "https://cdn.example.com/receipt.png",
        "payment_method": "bank_transfer",
        "payment_status": "pending",
        "payment_details": {},
        "admin_notes": None,
        "admin_scanner_image": None,
        "approved_by": None,
        "approved_at": None,
        "expected_delivery_date": None,
        "created_at": now,
        "updated_at": now,
        "room_adminid": uuid.uuid4(),
        "user": None,
        "car": {"title": "BMW X5"},
        "booking": None,
    }


@pytest.fixture
def service(mock_db, mock_notifier, mock_otp) -> PaymentService:
    return PaymentService(mock_db, mock_notifier, mock_otp)


class TestPaymentCreate:
    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, service: PaymentService, user_actor) -> None:
        with pytest.raises(ValidationError, match="greater than zero"):
            await service.create(user_actor, PaymentInput(bookingId=str(uuid.uuid4()), amount=0))

    @pytest.mark.asyncio
    async def test_required_fields(self, service: PaymentService, user_actor) -> None:
        with pytest.raises(ValidationError, match="Booking ID and amount are required"):
            await service.create(user_actor, PaymentInput(amount=10))

    @pytest.mark.asyncio
    async def test_foreign_booking(self, service: PaymentService, mock_db, user_actor) -> None:
        """Платить можно только по своему бронированию."""
        mock_db.fetchrow.return_value = {
            "id": uuid.uuid4(),
            "carid": uuid.uuid4(),
            "userid": uuid.uuid4(),
            "roomid": uuid.uuid4(),
            "start_date": datetime.now(timezone.utc),
            "end_date": datetime.now(timezone.utc),
            "total_price": 0,
            "status": "Pending",
            "details": {},
        }

        with pytest.raises(NotFoundError, match="does not belong to user"):
            await service.create(user_actor, PaymentInput(bookingId=str(uuid.uuid4()), amount=100))


class TestPaymentReview:
    """Тесты для проверки платежа администратором."""

    @pytest.mark.asyncio
    async def test_invalid_status(self, service: PaymentService, superadmin_actor) -> None:
        with pytest.raises(ValidationError, match="Invalid payment status"):
            await service.review("id", superadmin_actor, PaymentReview(payment_status="pending"))

    @pytest.mark.asyncio
    async def test_foreign_room(self, service: PaymentService, mock_db, admin_actor, payment_row) -> None:
        mock_db.fetchrow.return_value = payment_row

        with pytest.raises(AuthorizationError, match="does not belong to your room"):
            await service.review(str(payment_row["id"]), admin_actor, PaymentReview(payment_status="approved"))

    @pytest.mark.asyncio
    async def test_scanner_image_requires_otp(
        self, service: PaymentService, mock_db, superadmin_actor, payment_row
    ) -> None:
        mock_db.fetchrow.return_value = payment_row

        with pytest.raises(ValidationError, match="OTP is required"):
            await service.review(
                str(payment_row["id"]),
                superadmin_actor,
                PaymentReview(payment_status="approved", admin_scanner_image="https://cdn/scan.png"),
            )

    @pytest.mark.asyncio
    async def test_scanner_image_wrong_otp(
        self, service: PaymentService, mock_db, mock_otp, superadmin_actor, payment_row, sample_user_row
    ) -> None:
        mock_db.fetchrow.side_effect = [payment_row, sample_user_row]
        mock_otp.verify.return_value = OtpVerification.fail(OtpFailure.MISMATCH)

        with pytest.raises(ValidationError, match="Invalid or expired OTP"):
            await service.review(
                str(payment_row["id"]),
                superadmin_actor,
                PaymentReview(payment_status="approved", admin_scanner_image="https://cdn/scan.png", otp="1"),
            )

    @pytest.mark.asyncio
    async def test_approve_with_scanner(
        self,
        service: PaymentService,
        mock_db,
        mock_otp,
        mock_notifier,
        actor_factory,
        payment_row,
        sample_user_row,
    ) -> None:
        """Одобрение со сканом расходует код и уведомляет клиента."""
        owner = actor_factory(UserRole.ADMIN, str(payment_row["room_adminid"]))
        approved_row = {**payment_row, "payment_status": "approved", "approved_by": payment_row["room_adminid"]}
        mock_db.fetchrow.side_effect = [payment_row, sample_user_row, approved_row]
        mock_otp.verify.return_value = OtpVerification.ok({})

        updated = await service.review(
            str(payment_row["id"]),
            owner,
            PaymentReview(payment_status="approved", admin_scanner_image="https://cdn/scan.png", otp="123456"),
        )

        assert updated.payment_status == PaymentStatus.APPROVED
        mock_otp.verify.assert_awaited_once_with("user@example.com", "123456", OtpPurpose.SCANNER_UPLOAD)
        review_args = mock_db.fetchrow.call_args.args
        assert review_args[5] is True
        assert mock_notifier.notify.call_args.args[0] == str(payment_row["user_id"])

    @pytest.mark.asyncio
    async def test_reject_does_not_mark_approved(
        self, service: PaymentService, mock_db, superadmin_actor, payment_row
    ) -> None:
        mock_db.fetchrow.side_effect = [payment_row, {**payment_row, "payment_status": "rejected"}]

        await service.review(str(payment_row["id"]), superadmin_actor, PaymentReview(payment_status="rejected"))

        assert mock_db.fetchrow.call_args.args[5] is False


class TestScannerOtp:
    @pytest.mark.asyncio
    async def test_send_to_reviewer_email(
        self, service: PaymentService, mock_db, mock_otp, admin_actor, sample_user_row
    ) -> None:
        mock_db.fetchrow.return_value = sample_user_row

        await service.send_scanner_otp(admin_actor)

        mock_otp.generate_and_send.assert_awaited_once_with("user@example.com", OtpPurpose.SCANNER_UPLOAD)

    @pytest.mark.asyncio
    async def test_check_uses_non_consuming_verify(
        self, service: PaymentService, mock_db, mock_otp, admin_actor, sample_user_row
    ) -> None:
        mock_db.fetchrow.return_value = sample_user_row
        mock_otp.check.return_value = OtpVerification.ok({})

        await service.check_scanner_otp(admin_actor, "123456")

        mock_otp.check.assert_awaited_once()
        mock_otp.verify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reviewer_without_email(self, service: PaymentService, admin_actor) -> None:
        with pytest.raises(NotFoundError, match="Admin email not found"):
            await service.send_scanner_otp(admin_actor)


class TestPaymentAccess:
    @pytest.mark.asyncio
    async def test_list_by_role(self, service: PaymentService, mock_db, user_actor, admin_actor, superadmin_actor) -> None:
        await service.list_payments(user_actor)
        assert "p.user_id = $1" in mock_db.fetch.call_args.args[0]

        await service.list_payments(admin_actor)
        assert "r.adminid = $1" in mock_db.fetch.call_args.args[0]

        await service.list_payments(superadmin_actor)
        assert "WHERE" not in mock_db.fetch.call_args.args[0].split("JOIN users")[-1]

    @pytest.mark.asyncio
    async def test_stranger_cannot_read(self, service: PaymentService, mock_db, user_actor, payment_row) -> None:
        mock_db.fetchrow.return_value = payment_row

        with pytest.raises(AuthorizationError):
            await service.get(str(payment_row["id"]), user_actor)
