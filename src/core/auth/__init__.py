# src/core/auth/__init__.py
"""
Аутентификация и авторизация: JWT, проверка ролей, хеширование паролей.
"""

from src.core.auth.tokens import TokenPayload, encode_token, decode_token
from src.core.auth.access import authorize, has_role, is_admin_or_superadmin
from src.core.auth.passwords import hash_password, verify_password

__all__ = [
    "TokenPayload",
    "encode_token",
    "decode_token",
    "authorize",
    "has_role",
    "is_admin_or_superadmin",
    "hash_password",
    "verify_password",
]
