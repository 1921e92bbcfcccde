# src/core/realtime/signing.py
"""
Подпись подписок на каналы: HMAC-SHA256(secret, "socket_id:channel_name").
"""

from __future__ import annotations

import hashlib
import hmac


def sign_subscription(secret: str, socket_id: str, channel_name: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        f"{socket_id}:{channel_name}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def build_auth(key: str, secret: str, socket_id: str, channel_name: str) -> str:
    """Строка auth для клиента: '<key>:<signature>'."""
    return f"{key}:{sign_subscription(secret, socket_id, channel_name)}"


def verify_auth(auth: str, key: str, secret: str, socket_id: str, channel_name: str) -> bool:
    """Проверяет auth-строку, которую клиент предъявляет шлюзу."""
    if not auth or ":" not in auth:
        return False
    auth_key, _, signature = auth.partition(":")
    if not hmac.compare_digest(auth_key, key):
        return False
    expected = sign_subscription(secret, socket_id, channel_name)
    return hmac.compare_digest(signature, expected)
