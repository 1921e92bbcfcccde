# src/core/auth/tokens.py
"""
Кодек JWT-токенов доступа.

Токен несёт {userId, role, iat, exp}, подписан HS256 секретом JWT_SECRET.
decode_token никогда не бросает исключений: любая проблема даёт None.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.common.constants import UserRole


class TokenPayload(BaseModel):
    """Расшифрованное содержимое токена."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userId")
    role: UserRole
    iat: int
    exp: int


def _auth_settings() -> tuple[str, str, int]:
    from src.config import settings

    return (
        settings.auth.JWT_SECRET,
        settings.auth.JWT_ALGORITHM,
        settings.auth.JWT_EXPIRE_DAYS,
    )


def encode_token(
    user_id: str,
    role: UserRole | str,
    expires_delta: timedelta | None = None,
    *,
    secret: str | None = None,
) -> str:
    """
    Выпускает подписанный токен.

    Args:
        user_id: Идентификатор пользователя
        role: Роль пользователя
        expires_delta: Время жизни (по умолчанию JWT_EXPIRE_DAYS)
        secret: Секрет подписи (по умолчанию JWT_SECRET)
    """
    default_secret, algorithm, expire_days = _auth_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(days=expire_days))

    claims = {
        "userId": str(user_id),
        "role": UserRole(role).value,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, secret or default_secret, algorithm=algorithm)


def decode_token(token: str | None, *, secret: str | None = None) -> TokenPayload | None:
    """
    Проверяет подпись и срок действия токена.

    Returns:
        TokenPayload или None, если токен отсутствует, испорчен, просрочен,
        подписан другим секретом или содержит неизвестную роль
    """
    if not token:
        return None

    default_secret, algorithm, _ = _auth_settings()
    try:
        claims = jwt.decode(token, secret or default_secret, algorithms=[algorithm])
        return TokenPayload.model_validate(claims)
    except (JWTError, ValidationError, TypeError, ValueError):
        return None


def extract_bearer(authorization: str | None) -> str | None:
    """Достаёт токен из заголовка 'Authorization: Bearer <token>'."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
