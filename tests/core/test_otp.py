# tests/core/test_otp.py
"""
Тесты для одноразовых кодов: состояния, выдача, проверка, повторная отправка.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.common.constants import OtpPurpose
from src.common.errors import ValidationError
from src.core.otp.service import OtpService, is_valid_email
from src.core.otp.state_machine import OtpFailure, OtpState, OtpStateMachine


class TestOtpStateMachine:
    """Тесты для состояний кода."""

    def test_allowed_transitions(self) -> None:
        assert OtpStateMachine.can_transition("issued", "verified")
        assert OtpStateMachine.can_transition("issued", "expired")
        assert OtpStateMachine.can_transition("verified", "consumed")

    def test_terminal_states(self) -> None:
        assert not OtpStateMachine.can_transition("consumed", "issued")
        assert not OtpStateMachine.can_transition("expired", "verified")

    def test_unknown_state(self) -> None:
        assert not OtpStateMachine.can_transition("issued", "unknown")

    def test_state_of(self) -> None:
        now = datetime.now(timezone.utc)

        assert OtpStateMachine.state_of(True, now + timedelta(minutes=1), now) == OtpState.CONSUMED
        assert OtpStateMachine.state_of(False, now - timedelta(seconds=1), now) == OtpState.EXPIRED
        assert OtpStateMachine.state_of(False, now + timedelta(minutes=1), now) == OtpState.ISSUED


class TestIsValidEmail:
    @pytest.mark.parametrize("email", ["a@b.co", "user.name@example.com"])
    def test_valid(self, email: str) -> None:
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.d"])
    def test_invalid(self, email: str) -> None:
        assert not is_valid_email(email)


class TestOtpService:
    """Тесты для OtpService."""

    @pytest.fixture
    def mail(self) -> MagicMock:
        mail = MagicMock()
        mail.send = AsyncMock(return_value=True)
        return mail

    @pytest.fixture
    def service(self, mock_db, mock_dispatcher, mail) -> OtpService:
        return OtpService(mock_db, mock_dispatcher, mail, resend_cooldown_seconds=60)

    @pytest.mark.asyncio
    async def test_generate_replaces_and_queues_email(
        self, service: OtpService, mock_conn, mock_dispatcher, sample_otp_row: dict[str, Any]
    ) -> None:
        """Новый код удаляет прежние и ставит письмо в очередь."""
        mock_conn.fetchrow.return_value = sample_otp_row

        otp = await service.generate_and_send("user@example.com", OtpPurpose.REGISTRATION, {"a": 1})

        assert otp.otp_code == "123456"
        delete_sql = mock_conn.execute.call_args.args[0]
        assert "DELETE FROM otp_codes" in delete_sql
        insert_args = mock_conn.fetchrow.call_args.args
        assert len(insert_args[3]) == 6 and insert_args[3].isdigit()
        assert mock_dispatcher.jobs[0][0] == "email.otp"

    @pytest.mark.asyncio
    async def test_generate_rejects_bad_email(self, service: OtpService) -> None:
        with pytest.raises(ValidationError, match="Invalid email format"):
            await service.generate_and_send("bad", OtpPurpose.REGISTRATION)

    @pytest.mark.asyncio
    async def test_verify_success_consumes(
        self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]
    ) -> None:
        """Успешная проверка помечает код использованным и отдаёт payload."""
        mock_db.fetchrow.return_value = sample_otp_row
        mock_db.fetchval.return_value = sample_otp_row["id"]

        result = await service.verify("user@example.com", "123456", OtpPurpose.REGISTRATION)

        assert result.success
        assert result.payload["username"] == "test_user"
        assert "used = TRUE" in mock_db.fetchval.call_args.args[0]

    @pytest.mark.asyncio
    async def test_verify_mismatch_counts_attempt(
        self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_otp_row

        result = await service.verify("user@example.com", "000000", OtpPurpose.REGISTRATION)

        assert not result.success
        assert result.reason == OtpFailure.MISMATCH
        assert "attempts = attempts + 1" in mock_db.execute.call_args.args[0]

    @pytest.mark.asyncio
    async def test_verify_expired(self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]) -> None:
        """Просроченный код не проходит, даже если совпадает."""
        sample_otp_row["expires_at"] = datetime.now(timezone.utc) - timedelta(seconds=1)
        mock_db.fetchrow.return_value = sample_otp_row

        result = await service.verify("user@example.com", "123456", OtpPurpose.REGISTRATION)

        assert result.reason == OtpFailure.EXPIRED
        mock_db.fetchval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_verify_already_used(
        self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]
    ) -> None:
        sample_otp_row["used"] = True
        mock_db.fetchrow.return_value = sample_otp_row

        result = await service.verify("user@example.com", "123456", OtpPurpose.REGISTRATION)

        assert result.reason == OtpFailure.ALREADY_USED

    @pytest.mark.asyncio
    async def test_verify_lost_race(self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]) -> None:
        """Из двух параллельных проверок проходит одна."""
        mock_db.fetchrow.return_value = sample_otp_row
        mock_db.fetchval.return_value = None

        result = await service.verify("user@example.com", "123456", OtpPurpose.REGISTRATION)

        assert result.reason == OtpFailure.ALREADY_USED

    @pytest.mark.asyncio
    async def test_verify_not_found(self, service: OtpService) -> None:
        result = await service.verify("user@example.com", "123456", OtpPurpose.REGISTRATION)
        assert result.reason == OtpFailure.NOT_FOUND

    @pytest.mark.asyncio
    async def test_check_does_not_consume(
        self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_otp_row

        result = await service.check("user@example.com", "123456", OtpPurpose.SCANNER_UPLOAD)

        assert result.success
        mock_db.fetchval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resend_without_pending(self, service: OtpService) -> None:
        with pytest.raises(ValidationError, match="No pending verification"):
            await service.resend("user@example.com", OtpPurpose.REGISTRATION)

    @pytest.mark.asyncio
    async def test_resend_cooldown(self, service: OtpService, mock_db, sample_otp_row: dict[str, Any]) -> None:
        """Повторная отправка раньше паузы запрещена."""
        sample_otp_row["created_at"] = datetime.now(timezone.utc) - timedelta(seconds=10)
        mock_db.fetchrow.return_value = sample_otp_row

        with pytest.raises(ValidationError, match="Please wait"):
            await service.resend("user@example.com", OtpPurpose.REGISTRATION)

    @pytest.mark.asyncio
    async def test_resend_keeps_payload(
        self, service: OtpService, mock_db, mock_conn, sample_otp_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_otp_row
        mock_conn.fetchrow.return_value = sample_otp_row

        await service.resend("user@example.com", OtpPurpose.REGISTRATION)

        insert_args = mock_conn.fetchrow.call_args.args
        assert insert_args[4] == sample_otp_row["payload"]
