# src/core/realtime/__init__.py
"""
Realtime-рассылка: имена каналов, публикация в Redis Pub/Sub,
подпись и авторизация подписок.
"""

from src.core.realtime.channels import (
    chat_channel,
    notification_channel,
    parse_channel,
    user_channel,
)
from src.core.realtime.publisher import RealtimePublisher
from src.core.realtime.signing import build_auth, sign_subscription, verify_auth

__all__ = [
    "chat_channel",
    "notification_channel",
    "parse_channel",
    "user_channel",
    "RealtimePublisher",
    "build_auth",
    "sign_subscription",
    "verify_auth",
]
