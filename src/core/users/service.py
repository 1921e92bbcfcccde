# src/core/users/service.py
"""
Сервисы пользователей: аутентификация, профиль, управление учётными
записями суперадмином.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.common.constants import MSG_INVALID_OTP, OtpPurpose, TypeMsg, UserRole
from src.common.errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.common.logger import log_info, log_warning
from src.core.auth.passwords import hash_password, verify_password
from src.core.auth.tokens import encode_token
from src.core.notifications import emails
from src.core.notifications.service import NotificationService
from src.core.otp.service import OtpService, is_valid_email
from src.core.users.models import ProfileUpdateDTO, User
from src.core.users.repository import PasswordResetRepository, UserRepository
from src.infra.database import DatabaseManager

FORGOT_PASSWORD_MESSAGE = "If an account with this email exists, a password reset link has been sent."
SELF_REGISTER_ROLES = (UserRole.USER, UserRole.ADMIN)


def parse_role(value: Optional[str], allowed: tuple[UserRole, ...], message: str) -> UserRole:
    try:
        role = UserRole(value)
    except ValueError:
        raise ValidationError(message)
    if role not in allowed:
        raise ValidationError(message)
    return role


class AuthService:
    """
    Вход, регистрация через OTP, сброс и смена пароля, профиль.
    """

    def __init__(
        self,
        db: DatabaseManager,
        otp: OtpService,
        notifier: NotificationService,
        *,
        password_min_length: int = 6,
        reset_ttl_minutes: int = 60,
        app_base_url: str = "",
    ) -> None:
        self._users = UserRepository(db)
        self._resets = PasswordResetRepository(db)
        self._otp = otp
        self._notifier = notifier
        self.password_min_length = password_min_length
        self.reset_ttl = timedelta(minutes=reset_ttl_minutes)
        self.app_base_url = app_base_url.rstrip("/")

    def _check_password_length(self, password: str, message: str) -> None:
        if len(password) < self.password_min_length:
            raise ValidationError(message.format(n=self.password_min_length))

    # =========================================================================
    # ВХОД И РЕГИСТРАЦИЯ
    # =========================================================================

    async def login(self, email: Optional[str], password: Optional[str]) -> tuple[str, User]:
        """
        Проверяет e-mail и пароль.

        Returns:
            (токен, пользователь)
        """
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = await self._users.get_by_email(email)
        if user is None or not verify_password(password, user.password):
            raise ValidationError("Invalid credentials")

        await log_info(f"Вход пользователя {user.id} ({user.role.value})", type_msg=TypeMsg.DEBUG)
        return encode_token(user.id, user.role), user

    async def register(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
    ) -> str:
        """
        Проверяет данные и отправляет код подтверждения.
        Аккаунт создаётся только после verify_registration.
        """
        if not username or not email or not password:
            raise ValidationError("Please provide username, email, and password")
        if len(username.strip()) < 3:
            raise ValidationError("Username must be at least 3 characters")
        self._check_password_length(password, "Password must be at least {n} characters")
        user_role = parse_role(
            role or UserRole.USER.value,
            SELF_REGISTER_ROLES,
            "Invalid role. Role must be user or admin",
        )
        if not is_valid_email(email):
            raise ValidationError("Invalid email format")
        if await self._users.exists(email):
            raise ValidationError("User with this email already exists")

        # Пароль хранится в коде уже захешированным
        await self._otp.generate_and_send(
            email,
            OtpPurpose.REGISTRATION,
            payload={
                "username": username.strip(),
                "password_hash": hash_password(password),
                "role": user_role.value,
            },
        )
        return "OTP sent successfully to your email"

    async def verify_registration(self, email: Optional[str], code: Optional[str]) -> tuple[str, User]:
        if not email or not code:
            raise ValidationError("Please provide email and otp")

        result = await self._otp.verify(email, code, OtpPurpose.REGISTRATION)
        if not result.success:
            await log_warning(f"Регистрация {email}: код отклонён ({result.reason.value})")
            raise ValidationError(MSG_INVALID_OTP)

        if await self._users.exists(email):
            raise ValidationError("User with this email already exists")

        payload = result.payload
        user = await self._users.create(
            username=payload["username"],
            email=email,
            password_hash=payload["password_hash"],
            role=UserRole(payload.get("role", UserRole.USER.value)),
        )
        await log_info(f"Зарегистрирован пользователь {user.id}", type_msg=TypeMsg.INFO)
        return encode_token(user.id, user.role), user

    async def resend_registration_otp(self, email: Optional[str]) -> str:
        if not email:
            raise ValidationError("Email is required")
        await self._otp.resend(email, OtpPurpose.REGISTRATION)
        return "OTP resent successfully"

    # =========================================================================
    # ПАРОЛИ
    # =========================================================================

    async def forgot_password(self, email: Optional[str]) -> str:
        """
        Отправляет ссылку сброса. Ответ одинаков для существующих
        и несуществующих адресов.
        """
        if not email:
            raise ValidationError("Email is required")

        user = await self._users.get_by_email(email)
        if user is None:
            return FORGOT_PASSWORD_MESSAGE

        token = secrets.token_hex(16)
        await self._resets.create(user.id, token, datetime.now(timezone.utc) + self.reset_ttl)

        reset_url = f"{self.app_base_url}/reset-password?token={token}"
        subject, html = emails.password_reset_email(
            user.username, reset_url, int(self.reset_ttl.total_seconds() // 60)
        )
        self._notifier.queue_email(user.email, subject, html)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: Optional[str], new_password: Optional[str]) -> None:
        if not token or not new_password:
            raise ValidationError("Token and new password are required")
        self._check_password_length(new_password, "New password must be at least {n} characters")

        reset = await self._resets.get_by_token(token)
        if reset is None:
            raise ValidationError("Invalid or expired reset token")
        if reset.used:
            raise ValidationError("Reset token has already been used")
        if reset.expires_at <= datetime.now(timezone.utc):
            raise ValidationError("Reset token has expired")

        if not await self._resets.mark_used(reset.id):
            raise ValidationError("Reset token has already been used")
        await self._users.update_password(reset.user_id, hash_password(new_password))
        await log_info(f"Пароль пользователя {reset.user_id} сброшен", type_msg=TypeMsg.INFO)

    async def update_password(
        self,
        user_id: str,
        role: UserRole,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if role == UserRole.SUPERADMIN:
            raise AuthorizationError("Super admins cannot change passwords")
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        self._check_password_length(new_password, "New password must be at least {n} characters")

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(current_password, user.password):
            raise ValidationError("Current password is incorrect")

        await self._users.update_password(user_id, hash_password(new_password))

    # =========================================================================
    # ПРОФИЛЬ
    # =========================================================================

    async def get_profile(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: str, dto: ProfileUpdateDTO) -> User:
        if not dto.username or not dto.email:
            raise ValidationError("Username and email are required")
        if not is_valid_email(dto.email):
            raise ValidationError("Invalid email format")

        existing = await self._users.get_by_email(dto.email)
        if existing is not None and existing.id != user_id:
            raise ValidationError("User with this email already exists")

        user = await self._users.update_profile(user_id, dto)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # =========================================================================
    # ПЕРВЫЙ СУПЕРАДМИН
    # =========================================================================

    async def create_superadmin(
        self,
        expected_key: str,
        provided_key: Optional[str],
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> tuple[str, User]:
        """Создаёт единственного суперадмина по ключу установки."""
        if not expected_key or not provided_key or not secrets.compare_digest(provided_key, expected_key):
            raise AuthenticationError("Unauthorized: Invalid setup key")
        if not username or not email or not password:
            raise ValidationError("Please provide username, email, and password")
        if await self._users.count_by_role(UserRole.SUPERADMIN) > 0:
            raise ValidationError("A super admin already exists. Cannot create another one.")
        if await self._users.exists(email, username):
            raise ValidationError("User with this email or username already exists")

        user = await self._users.create_first_superadmin(username, email, hash_password(password))
        if user is None:
            raise ValidationError("A super admin already exists. Cannot create another one.")
        await log_info(f"Создан суперадмин {user.id}", type_msg=TypeMsg.INFO)
        return encode_token(user.id, user.role), user


class UserAdminService:
    """Управление пользователями (только суперадмин)."""

    def __init__(self, db: DatabaseManager) -> None:
        self._users = UserRepository(db)

    async def list_users(self) -> list[User]:
        return await self._users.list_all()

    async def get_user(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def create_user(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Optional[str],
    ) -> User:
        if not username or not email or not password or not role:
            raise ValidationError("Please provide username, email, password, and role")
        user_role = parse_role(
            role, tuple(UserRole), "Invalid role. Role must be user, admin, or superadmin"
        )
        if not is_valid_email(email):
            raise ValidationError("Invalid email format")
        if await self._users.exists(email):
            raise ValidationError("User with this email already exists")
        return await self._users.create(username, email, hash_password(password), user_role)

    async def update_role(self, actor_id: str, user_id: str, role: Optional[str]) -> User:
        new_role = parse_role(
            role, tuple(UserRole), "Invalid role. Role must be user, admin, or superadmin"
        )
        if actor_id == user_id:
            raise ValidationError("Super admins cannot change their own role")

        user = await self._users.update_role(user_id, new_role)
        if user is None:
            raise NotFoundError("User not found")
        await log_info(f"Роль пользователя {user_id} изменена на {new_role.value}", type_msg=TypeMsg.INFO)
        return user

    async def delete_user(self, actor_id: str, user_id: str) -> None:
        if actor_id == user_id:
            raise ValidationError("Super admins cannot delete themselves")

        user = await self.get_user(user_id)
        if user.is_superadmin and await self._users.count_by_role(UserRole.SUPERADMIN) <= 1:
            raise ValidationError("Cannot delete the last super admin")

        await self._users.delete(user_id)
        await log_info(f"Пользователь {user_id} удалён", type_msg=TypeMsg.INFO)
