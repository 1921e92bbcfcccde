# tests/core/test_auth.py
"""
Тесты для JWT-токенов, проверки ролей и хеширования паролей.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from src.common.constants import UserRole
from src.config import settings
from src.core.auth.access import authorize, has_role, is_admin_or_superadmin
from src.core.auth.passwords import hash_password, verify_password
from src.core.auth.tokens import TokenPayload, decode_token, encode_token, extract_bearer


class TestTokens:
    """Тесты для encode_token / decode_token."""

    def test_roundtrip_keeps_user_and_role(self) -> None:
        """Проверяет, что токен несёт userId и роль."""
        token = encode_token("user-1", UserRole.ADMIN)
        payload = decode_token(token)

        assert payload is not None
        assert payload.user_id == "user-1"
        assert payload.role == UserRole.ADMIN
        assert payload.exp > payload.iat

    def test_default_lifetime_is_seven_days(self) -> None:
        """Проверяет срок жизни по умолчанию."""
        payload = decode_token(encode_token("user-1", "user"))

        assert payload.exp - payload.iat == settings.auth.JWT_EXPIRE_DAYS * 24 * 3600

    def test_expired_token_rejected(self) -> None:
        """Просроченный токен даёт None."""
        token = encode_token("user-1", UserRole.USER, expires_delta=timedelta(seconds=-30))
        assert decode_token(token) is None

    def test_foreign_secret_rejected(self) -> None:
        """Токен, подписанный другим секретом, отклоняется."""
        token = encode_token("user-1", UserRole.USER, secret="another-secret")
        assert decode_token(token) is None

    def test_garbage_rejected(self) -> None:
        assert decode_token("not-a-jwt") is None
        assert decode_token("") is None
        assert decode_token(None) is None

    def test_unknown_role_rejected(self) -> None:
        """Токен с ролью вне перечисления отклоняется."""
        token = jwt.encode(
            {"userId": "user-1", "role": "manager", "iat": 0, "exp": 4102444800},
            settings.auth.JWT_SECRET,
            algorithm=settings.auth.JWT_ALGORITHM,
        )
        assert decode_token(token) is None


class TestExtractBearer:
    """Тесты для разбора заголовка Authorization."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc", "abc"),
            ("bearer abc ", "abc"),
            ("Basic abc", None),
            ("Bearer ", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, header, expected) -> None:
        assert extract_bearer(header) == expected


class TestAccess:
    """Тесты для проверки ролей."""

    def _payload(self, role: UserRole) -> TokenPayload:
        return TokenPayload(userId="u", role=role, iat=0, exp=1)

    def test_authorize_allowed_role(self) -> None:
        assert authorize(self._payload(UserRole.ADMIN), [UserRole.ADMIN])

    def test_roles_are_flat(self) -> None:
        """Суперадмин не получает права admin автоматически."""
        assert not authorize(self._payload(UserRole.SUPERADMIN), [UserRole.ADMIN])

    def test_authorize_without_payload(self) -> None:
        assert not authorize(None, [UserRole.USER])

    def test_accepts_string_roles(self) -> None:
        assert authorize(self._payload(UserRole.USER), ["user", "admin"])

    def test_unknown_roles_do_not_match(self) -> None:
        """Неизвестная роль в списке допустимых не ломает проверку."""
        assert not authorize(self._payload(UserRole.ADMIN), ["manager"])
        assert authorize(self._payload(UserRole.ADMIN), ["manager", "admin"])
        assert not has_role(self._payload(UserRole.USER), "manager")

    def test_has_role(self) -> None:
        assert has_role(self._payload(UserRole.USER), "user")
        assert not has_role(None, "user")

    def test_is_admin_or_superadmin(self) -> None:
        assert is_admin_or_superadmin(self._payload(UserRole.ADMIN))
        assert is_admin_or_superadmin(self._payload(UserRole.SUPERADMIN))
        assert not is_admin_or_superadmin(self._payload(UserRole.USER))


class TestPasswords:
    """Тесты для хеширования паролей."""

    def test_hash_and_verify(self) -> None:
        hashed = hash_password("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_without_hash(self) -> None:
        assert not verify_password("secret123", None)
        assert not verify_password("secret123", "")

    def test_verify_unknown_hash_format(self) -> None:
        """Хеш неизвестного формата не вызывает исключения."""
        assert not verify_password("secret123", "plain-text-not-a-hash")
