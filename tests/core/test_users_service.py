# tests/core/test_users_service.py
"""
Тесты для AuthService и UserAdminService.
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.common.constants import OtpPurpose, UserRole
from src.common.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from src.core.auth.passwords import hash_password, verify_password
from src.core.auth.tokens import decode_token
from src.core.otp.models import OtpVerification
from src.core.otp.state_machine import OtpFailure
from src.core.users.models import ProfileUpdateDTO
from src.core.users.repository import SUPERADMIN_LOCK_ID
from src.core.users.service import FORGOT_PASSWORD_MESSAGE, AuthService, UserAdminService


@pytest.fixture
def service(mock_db, mock_otp, mock_notifier) -> AuthService:
    return AuthService(
        mock_db,
        mock_otp,
        mock_notifier,
        password_min_length=6,
        reset_ttl_minutes=60,
        app_base_url="http://localhost:3000/",
    )


class TestLogin:
    """Тесты для входа."""

    @pytest.mark.asyncio
    async def test_login_success(self, service: AuthService, mock_db, sample_user_row: dict[str, Any]) -> None:
        sample_user_row["password"] = hash_password("secret123")
        mock_db.fetchrow.return_value = sample_user_row

        token, user = await service.login("user@example.com", "secret123")

        assert user.email == "user@example.com"
        assert decode_token(token).user_id == str(sample_user_row["id"])

    @pytest.mark.asyncio
    async def test_login_wrong_password(
        self, service: AuthService, mock_db, sample_user_row: dict[str, Any]
    ) -> None:
        sample_user_row["password"] = hash_password("secret123")
        mock_db.fetchrow.return_value = sample_user_row

        with pytest.raises(ValidationError, match="Invalid credentials"):
            await service.login("user@example.com", "nope")

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, service: AuthService) -> None:
        """Неизвестный e-mail и неверный пароль неразличимы для клиента."""
        with pytest.raises(ValidationError, match="Invalid credentials"):
            await service.login("ghost@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, service: AuthService) -> None:
        with pytest.raises(ValidationError, match="Please provide email and password"):
            await service.login("", None)


class TestRegistration:
    """Тесты для регистрации через OTP."""

    @pytest.mark.asyncio
    async def test_register_sends_otp_without_creating_user(
        self, service: AuthService, mock_db, mock_otp
    ) -> None:
        mock_db.fetchval.return_value = False

        message = await service.register("new_user", "new@example.com", "secret123", "admin")

        assert message == "OTP sent successfully to your email"
        args = mock_otp.generate_and_send.call_args
        assert args.args[1] == OtpPurpose.REGISTRATION
        payload = args.kwargs["payload"]
        assert payload["role"] == "admin"
        assert verify_password("secret123", payload["password_hash"])
        mock_db.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_register_rejects_superadmin_role(self, service: AuthService) -> None:
        with pytest.raises(ValidationError, match="Invalid role"):
            await service.register("new_user", "new@example.com", "secret123", "superadmin")

    @pytest.mark.asyncio
    async def test_register_short_password(self, service: AuthService) -> None:
        with pytest.raises(ValidationError, match="at least 6"):
            await service.register("new_user", "new@example.com", "123")

    @pytest.mark.asyncio
    async def test_register_existing_email(self, service: AuthService, mock_db) -> None:
        mock_db.fetchval.return_value = True

        with pytest.raises(ValidationError, match="already exists"):
            await service.register("new_user", "new@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_verify_creates_user(
        self, service: AuthService, mock_db, mock_otp, sample_user_row: dict[str, Any]
    ) -> None:
        mock_otp.verify.return_value = OtpVerification.ok(
            {"username": "test_user", "password_hash": "hash", "role": "user"}
        )
        mock_db.fetchval.return_value = False
        mock_db.fetchrow.return_value = sample_user_row

        token, user = await service.verify_registration("user@example.com", "123456")

        assert user.username == "test_user"
        assert decode_token(token).role == UserRole.USER

    @pytest.mark.asyncio
    async def test_verify_expired_code_creates_nothing(self, service: AuthService, mock_db, mock_otp) -> None:
        """Просроченный код не создаёт аккаунт."""
        mock_otp.verify.return_value = OtpVerification.fail(OtpFailure.EXPIRED)

        with pytest.raises(ValidationError, match="Invalid or expired OTP"):
            await service.verify_registration("user@example.com", "123456")

        mock_db.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resend(self, service: AuthService, mock_otp) -> None:
        assert await service.resend_registration_otp("user@example.com") == "OTP resent successfully"
        mock_otp.resend.assert_awaited_once_with("user@example.com", OtpPurpose.REGISTRATION)


class TestPasswordReset:
    """Тесты для сброса и смены пароля."""

    @pytest.mark.asyncio
    async def test_forgot_unknown_email_same_answer(self, service: AuthService, mock_notifier) -> None:
        assert await service.forgot_password("ghost@example.com") == FORGOT_PASSWORD_MESSAGE
        mock_notifier.queue_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_forgot_known_email_sends_link(
        self, service: AuthService, mock_db, mock_notifier, sample_user_row: dict[str, Any]
    ) -> None:
        reset_row = {
            "id": uuid.uuid4(),
            "user_id": sample_user_row["id"],
            "token": "t" * 32,
            "expires_at": datetime.now(timezone.utc) + timedelta(hours=1),
            "used": False,
            "created_at": datetime.now(timezone.utc),
        }
        mock_db.fetchrow.side_effect = [sample_user_row, reset_row]

        assert await service.forgot_password("user@example.com") == FORGOT_PASSWORD_MESSAGE

        to, subject, html = mock_notifier.queue_email.call_args.args
        assert to == "user@example.com"
        assert "http://localhost:3000/reset-password?token=" in html

    @pytest.mark.asyncio
    async def test_reset_expired_token(self, service: AuthService, mock_db) -> None:
        mock_db.fetchrow.return_value = {
            "id": uuid.uuid4(),
            "user_id": uuid.uuid4(),
            "token": "abc",
            "expires_at": datetime.now(timezone.utc) - timedelta(minutes=1),
            "used": False,
            "created_at": None,
        }

        with pytest.raises(ValidationError, match="expired"):
            await service.reset_password("abc", "newpass1")

    @pytest.mark.asyncio
    async def test_reset_used_token(self, service: AuthService, mock_db) -> None:
        mock_db.fetchrow.return_value = {
            "id": uuid.uuid4(),
            "user_id": uuid.uuid4(),
            "token": "abc",
            "expires_at": datetime.now(timezone.utc) + timedelta(minutes=10),
            "used": True,
            "created_at": None,
        }

        with pytest.raises(ValidationError, match="already been used"):
            await service.reset_password("abc", "newpass1")

    @pytest.mark.asyncio
    async def test_superadmin_cannot_change_password(self, service: AuthService) -> None:
        with pytest.raises(AuthorizationError):
            await service.update_password("id", UserRole.SUPERADMIN, "old", "newpass1")

    @pytest.mark.asyncio
    async def test_update_password_wrong_current(
        self, service: AuthService, mock_db, sample_user_row: dict[str, Any]
    ) -> None:
        sample_user_row["password"] = hash_password("secret123")
        mock_db.fetchrow.return_value = sample_user_row

        with pytest.raises(ValidationError, match="Current password is incorrect"):
            await service.update_password(str(sample_user_row["id"]), UserRole.USER, "bad", "newpass1")


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_profile_requires_username_and_email(self, service: AuthService) -> None:
        with pytest.raises(ValidationError, match="Username and email are required"):
            await service.update_profile("id", ProfileUpdateDTO(username="x"))

    @pytest.mark.asyncio
    async def test_update_profile_email_taken(
        self, service: AuthService, mock_db, sample_user_row: dict[str, Any]
    ) -> None:
        mock_db.fetchrow.return_value = sample_user_row

        with pytest.raises(ValidationError, match="already exists"):
            await service.update_profile(
                str(uuid.uuid4()), ProfileUpdateDTO(username="x", email="user@example.com")
            )

    @pytest.mark.asyncio
    async def test_get_profile_not_found(self, service: AuthService) -> None:
        with pytest.raises(NotFoundError):
            await service.get_profile("id")


class TestSuperadminBootstrap:
    """Тесты для создания первого суперадмина."""

    @pytest.mark.asyncio
    async def test_wrong_setup_key(self, service: AuthService) -> None:
        with pytest.raises(AuthenticationError, match="Invalid setup key"):
            await service.create_superadmin("key", "other", "root", "root@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_only_one_superadmin(self, service: AuthService, mock_db) -> None:
        mock_db.fetchval.return_value = 1

        with pytest.raises(ValidationError, match="already exists"):
            await service.create_superadmin("key", "key", "root", "root@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_creates_superadmin(
        self, service: AuthService, mock_db, mock_conn, sample_user_row: dict[str, Any]
    ) -> None:
        sample_user_row["role"] = "superadmin"
        mock_db.fetchval.side_effect = [0, False]
        mock_conn.fetchval.return_value = 0
        mock_conn.fetchrow.return_value = sample_user_row

        token, user = await service.create_superadmin("key", "key", "root", "root@example.com", "secret123")

        assert user.is_superadmin
        assert decode_token(token).role == UserRole.SUPERADMIN
        assert mock_conn.execute.await_args.args[1] == SUPERADMIN_LOCK_ID

    @pytest.mark.asyncio
    async def test_existing_superadmin_found_under_lock(self, service: AuthService, mock_db, mock_conn) -> None:
        mock_db.fetchval.side_effect = [0, False]
        mock_conn.fetchval.return_value = 1

        with pytest.raises(ValidationError, match="already exists"):
            await service.create_superadmin("key", "key", "root", "root@example.com", "secret123")

        mock_conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_bootstrap_creates_one(
        self, mock_otp, mock_notifier, sample_user_row: dict[str, Any]
    ) -> None:
        """Два одновременных запроса: суперадмин создаётся ровно один раз."""
        advisory_lock = asyncio.Lock()
        superadmins: list[dict[str, Any]] = []

        async def lock(query: str, *args: Any) -> str:
            await advisory_lock.acquire()
            return "SELECT 1"

        async def count(query: str, *args: Any) -> int:
            await asyncio.sleep(0)
            return len(superadmins)

        async def insert(query: str, *args: Any) -> dict[str, Any]:
            await asyncio.sleep(0)
            row = {**sample_user_row, "id": uuid.uuid4(), "username": args[0], "role": "superadmin"}
            superadmins.append(row)
            return row

        conn = MagicMock()
        conn.execute = AsyncMock(side_effect=lock)
        conn.fetchval = AsyncMock(side_effect=count)
        conn.fetchrow = AsyncMock(side_effect=insert)

        @asynccontextmanager
        async def transaction():
            try:
                yield conn
            finally:
                if advisory_lock.locked():
                    advisory_lock.release()

        async def fetchval(query: str, *args: Any) -> int:
            await asyncio.sleep(0)
            return 0

        db = MagicMock()
        db.fetchval = AsyncMock(side_effect=fetchval)
        db.transaction = MagicMock(side_effect=transaction)
        service = AuthService(db, mock_otp, mock_notifier)

        results = await asyncio.gather(
            service.create_superadmin("key", "key", "root_a", "a@example.com", "secret123"),
            service.create_superadmin("key", "key", "root_b", "b@example.com", "secret123"),
            return_exceptions=True,
        )

        assert len(superadmins) == 1
        assert sum(isinstance(result, tuple) for result in results) == 1
        errors = [result for result in results if isinstance(result, ValidationError)]
        assert len(errors) == 1
        assert "already exists" in str(errors[0])


class TestUserAdminService:
    """Тесты для управления пользователями суперадмином."""

    @pytest.mark.asyncio
    async def test_cannot_change_own_role(self, mock_db) -> None:
        with pytest.raises(ValidationError, match="own role"):
            await UserAdminService(mock_db).update_role("me", "me", "user")

    @pytest.mark.asyncio
    async def test_invalid_role(self, mock_db) -> None:
        with pytest.raises(ValidationError, match="Invalid role"):
            await UserAdminService(mock_db).update_role("me", "other", "manager")

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, mock_db) -> None:
        with pytest.raises(ValidationError, match="cannot delete themselves"):
            await UserAdminService(mock_db).delete_user("me", "me")

    @pytest.mark.asyncio
    async def test_cannot_delete_last_superadmin(self, mock_db, sample_user_row: dict[str, Any]) -> None:
        sample_user_row["role"] = "superadmin"
        mock_db.fetchrow.return_value = sample_user_row
        mock_db.fetchval.return_value = 1

        with pytest.raises(ValidationError, match="last super admin"):
            await UserAdminService(mock_db).delete_user("me", str(sample_user_row["id"]))

    @pytest.mark.asyncio
    async def test_create_user_validates_email(self, mock_db) -> None:
        with pytest.raises(ValidationError, match="Invalid email format"):
            await UserAdminService(mock_db).create_user("name", "bad", "secret123", "admin")
