# src/core/realtime/channels.py
"""
Имена realtime-каналов.
"""

from __future__ import annotations

from typing import Optional

NOTIFICATION_PREFIX = "notification-"
CHAT_PREFIX = "chat-"
USER_PREFIX = "user-"

# Префикс приватных каналов в клиентской библиотеке
PRIVATE_PREFIX = "private-"


def notification_channel(user_id: str) -> str:
    return f"{NOTIFICATION_PREFIX}{user_id}"


def chat_channel(conversation_id: str) -> str:
    return f"{CHAT_PREFIX}{conversation_id}"


def user_channel(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def parse_channel(channel_name: str) -> Optional[tuple[str, str]]:
    """
    Разбирает имя канала на (префикс, идентификатор).

    Returns:
        None, если канал неизвестного вида
    """
    name = channel_name
    if name.startswith(PRIVATE_PREFIX):
        name = name[len(PRIVATE_PREFIX):]

    for prefix in (NOTIFICATION_PREFIX, CHAT_PREFIX, USER_PREFIX):
        if name.startswith(prefix):
            entity_id = name[len(prefix):]
            if entity_id:
                return prefix, entity_id
    return None
