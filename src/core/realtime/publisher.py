# src/core/realtime/publisher.py
"""
Публикация realtime-событий в Redis Pub/Sub.

Конверт сообщения: {"channel": ..., "event": ..., "data": ...}.
Realtime-шлюз пересылает конверт WebSocket-клиентам, подписанным на channel.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import RealtimeEvent, TypeMsg
from src.common.logger import log_error, log_info
from src.core.realtime.channels import chat_channel, notification_channel, user_channel
from src.infra.redis_client import RedisClient


class RealtimePublisher:
    """Отправка событий в каналы notification-*, chat-*, user-*."""

    def __init__(self, redis: RedisClient, prefix: str) -> None:
        """
        Args:
            redis: Клиент Redis
            prefix: Префикс Pub/Sub-каналов приложения (кластер и app id)
        """
        self._redis = redis
        self._prefix = prefix

    def redis_channel(self, channel: str) -> str:
        return f"{self._prefix}:{channel}"

    async def send(self, channel: str, event: str, payload: Any) -> int:
        """Публикует событие; ошибки Redis пробрасываются (для повторов в очереди)."""
        envelope = {"channel": channel, "event": str(event), "data": payload}
        receivers = await self._redis.publish(self.redis_channel(channel), envelope)
        await log_info(
            f"Realtime {event} -> {channel} ({receivers} подписчиков)",
            type_msg=TypeMsg.DEBUG,
        )
        return receivers

    async def publish(self, channel: str, event: str, payload: Any) -> bool:
        """Публикует событие. False при ошибке, без повторов."""
        try:
            await self.send(channel, event, payload)
        except Exception as e:
            await log_error(f"Не удалось опубликовать {event} в {channel}: {e}")
            return False
        return True

    # =========================================================================
    # СОБЫТИЯ ЧАТА
    # =========================================================================

    async def send_new_message(self, conversation_id: str, data: dict[str, Any]) -> bool:
        return await self.publish(chat_channel(conversation_id), RealtimeEvent.NEW_MESSAGE.value, data)

    async def send_delivery_status(self, conversation_id: str, data: dict[str, Any]) -> bool:
        return await self.publish(chat_channel(conversation_id), RealtimeEvent.MESSAGE_DELIVERED.value, data)

    async def send_typing_status(self, conversation_id: str, data: dict[str, Any]) -> bool:
        return await self.publish(chat_channel(conversation_id), RealtimeEvent.TYPING_STATUS.value, data)

    # =========================================================================
    # ПОЛЬЗОВАТЕЛЬСКИЕ КАНАЛЫ
    # =========================================================================

    async def send_unread_count_update(self, user_id: str, data: dict[str, Any]) -> bool:
        return await self.publish(user_channel(user_id), RealtimeEvent.UNREAD_COUNT_UPDATE.value, data)

    async def send_notification(self, user_id: str, data: dict[str, Any]) -> bool:
        return await self.publish(notification_channel(user_id), RealtimeEvent.NEW_NOTIFICATION.value, data)

    async def send_new_booking(self, admin_id: str, data: dict[str, Any]) -> bool:
        return await self.publish(notification_channel(admin_id), RealtimeEvent.NEW_BOOKING.value, data)
