# src/services/marketplace_api/dependencies.py
"""
Dependency Injection для API маркетплейса.

Инфраструктура (БД, Redis, диспетчер, HTTP-клиенты) создаётся один раз
в lifespan; сервисы предметной области собираются на каждый запрос.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Callable, Optional

from fastapi import Depends, Header

from src.common.constants import UserRole
from src.common.errors import AuthenticationError, AuthorizationError
from src.core.auth.access import authorize
from src.core.auth.tokens import TokenPayload, decode_token, extract_bearer

if TYPE_CHECKING:
    from src.core.api_logs import ApiLogService
    from src.core.bookings import BookingService
    from src.core.cars import CarService
    from src.core.chats import ChatService
    from src.core.notifications import NotificationService
    from src.core.otp import OtpService
    from src.core.payments import PaymentService
    from src.core.realtime import RealtimePublisher
    from src.core.realtime.service import RealtimeAuthService
    from src.core.rooms import RoomService
    from src.core.system_settings import SystemSettingsService
    from src.core.users import AuthService, UserAdminService
    from src.infra.database import DatabaseManager
    from src.infra.dispatcher import SideEffectDispatcher
    from src.infra.http_clients import MailClient, PushClient
    from src.infra.redis_client import RedisClient


# Синглтоны
_db: "DatabaseManager | None" = None
_redis: "RedisClient | None" = None
_dispatcher: "SideEffectDispatcher | None" = None
_publisher: "RealtimePublisher | None" = None
_push: "PushClient | None" = None
_mail: "MailClient | None" = None


async def init_dependencies(
    db: "DatabaseManager",
    redis: "RedisClient",
    dispatcher: "SideEffectDispatcher",
    publisher: "RealtimePublisher",
    push: "PushClient",
    mail: "MailClient",
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _db, _redis, _dispatcher, _publisher, _push, _mail
    _db = db
    _redis = redis
    _dispatcher = dispatcher
    _publisher = publisher
    _push = push
    _mail = mail


async def cleanup_dependencies() -> None:
    """Сбросить ссылки при остановке приложения."""
    global _db, _redis, _dispatcher, _publisher, _push, _mail
    _db = None
    _redis = None
    _dispatcher = None
    _publisher = None
    _push = None
    _mail = None


# =============================================================================
# ИНФРАСТРУКТУРА
# =============================================================================

def get_db() -> "DatabaseManager":
    if _db is None:
        raise RuntimeError("Database не инициализирована. Вызовите init_dependencies()")
    return _db


def get_redis() -> "RedisClient":
    if _redis is None:
        raise RuntimeError("Redis не инициализирован. Вызовите init_dependencies()")
    return _redis


def get_dispatcher() -> "SideEffectDispatcher":
    if _dispatcher is None:
        raise RuntimeError("Dispatcher не инициализирован. Вызовите init_dependencies()")
    return _dispatcher


def get_publisher() -> "RealtimePublisher":
    if _publisher is None:
        raise RuntimeError("RealtimePublisher не инициализирован. Вызовите init_dependencies()")
    return _publisher


def get_push() -> "PushClient":
    if _push is None:
        raise RuntimeError("PushClient не инициализирован. Вызовите init_dependencies()")
    return _push


def get_mail() -> "MailClient":
    if _mail is None:
        raise RuntimeError("MailClient не инициализирован. Вызовите init_dependencies()")
    return _mail


# =============================================================================
# СЕРВИСЫ
# =============================================================================

def get_settings_service() -> "SystemSettingsService":
    from src.core.system_settings import SystemSettingsService
    return SystemSettingsService(get_db())


def get_api_log_service() -> "ApiLogService":
    from src.core.api_logs import ApiLogService
    return ApiLogService(get_db())


def get_notification_service() -> "NotificationService":
    from src.core.notifications import NotificationService
    return NotificationService(get_db(), get_dispatcher(), get_publisher(), get_push(), get_mail())


def get_otp_service() -> "OtpService":
    from src.config import settings
    from src.core.otp import OtpService

    return OtpService(
        get_db(),
        get_dispatcher(),
        get_mail(),
        ttl_minutes=settings.otp.OTP_TTL_MINUTES,
        length=settings.otp.OTP_LENGTH,
        resend_cooldown_seconds=settings.otp.OTP_RESEND_COOLDOWN_SECONDS,
    )


def get_auth_service() -> "AuthService":
    from src.config import settings
    from src.core.users import AuthService

    return AuthService(
        get_db(),
        get_otp_service(),
        get_notification_service(),
        password_min_length=settings.auth.PASSWORD_MIN_LENGTH,
        reset_ttl_minutes=settings.auth.PASSWORD_RESET_TTL_MINUTES,
        app_base_url=settings.auth.APP_BASE_URL,
    )


def get_user_admin_service() -> "UserAdminService":
    from src.core.users import UserAdminService
    return UserAdminService(get_db())


def get_room_service() -> "RoomService":
    from src.core.rooms import RoomService
    return RoomService(get_db())


def get_car_service() -> "CarService":
    from src.core.cars import CarService
    return CarService(get_db())


def get_booking_service() -> "BookingService":
    from src.core.bookings import BookingService
    return BookingService(get_db(), get_notification_service())


def get_payment_service() -> "PaymentService":
    from src.core.payments import PaymentService
    return PaymentService(get_db(), get_notification_service(), get_otp_service())


def get_chat_service() -> "ChatService":
    from src.core.chats import ChatService
    return ChatService(get_db(), get_notification_service())


def get_realtime_auth_service() -> "RealtimeAuthService":
    from src.config import settings
    from src.core.realtime.service import RealtimeAuthService

    return RealtimeAuthService(
        get_chat_service(),
        key=settings.realtime.REALTIME_KEY,
        secret=settings.realtime.REALTIME_SECRET,
    )


# =============================================================================
# АУТЕНТИФИКАЦИЯ
# =============================================================================

async def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None,
) -> TokenPayload:
    """
    Расшифровать токен из заголовка Authorization: Bearer <token>.
    Отсутствующий или недействительный токен даёт 401.
    """
    payload = decode_token(extract_bearer(authorization))
    if payload is None:
        raise AuthenticationError()
    return payload


def require_roles(*roles: UserRole) -> Callable[..., object]:
    """
    Зависимость, пропускающая только перечисленные роли (403 иначе).

    Example:
        actor: Annotated[TokenPayload, Depends(require_roles(UserRole.SUPERADMIN))]
    """

    async def dependency(
        actor: Annotated[TokenPayload, Depends(get_current_user)],
    ) -> TokenPayload:
        if not authorize(actor, roles):
            raise AuthorizationError()
        return actor

    return dependency


CurrentUser = Annotated[TokenPayload, Depends(get_current_user)]
AdminUser = Annotated[TokenPayload, Depends(require_roles(UserRole.ADMIN, UserRole.SUPERADMIN))]
SuperAdminUser = Annotated[TokenPayload, Depends(require_roles(UserRole.SUPERADMIN))]
