# src/services/realtime_ws/redis_subscriber.py
"""
Подписчик на Redis Pub/Sub.

Слушает каналы приложения по шаблону '<namespace>:realtime:<cluster>:<app_id>:*'
и передаёт конверты {channel, event, data} обработчику.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from src.common.logger import log_error, log_warning

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value) if value is not None else ""


class RedisSubscriber:
    """
    Получает сообщения из Redis и пересылает их через WebSocket.
    """

    def __init__(
        self,
        pubsub: "PubSub",
        pattern: str,
        message_handler: Callable[[dict[str, Any]], Coroutine[Any, Any, None]],
    ) -> None:
        """
        Args:
            pubsub: Объект подписки Redis
            pattern: Шаблон каналов для PSUBSCRIBE
            message_handler: Callback для обработки конверта
        """
        self._pubsub = pubsub
        self._pattern = pattern
        self._handler = message_handler
        self._task: asyncio.Task | None = None
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        await self._pubsub.psubscribe(self._pattern)
        self._running = True
        self._task = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        await self._pubsub.punsubscribe()
        await self._pubsub.aclose()

    async def _listen(self) -> None:
        while self._running:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )
                if message is None:
                    continue
                await self.process_message(message)

            except asyncio.CancelledError:
                break
            except Exception as e:
                # Ошибка одного сообщения не останавливает подписчика
                await log_error(f"Redis subscriber error: {e}")
                await asyncio.sleep(1)

    async def process_message(self, message: dict[str, Any]) -> None:
        """Разобрать сообщение Redis и передать конверт обработчику."""
        if message.get("type") not in ("message", "pmessage"):
            return

        raw = _decode(message.get("data"))
        try:
            envelope = json.loads(raw)
        except json.JSONDecodeError:
            await log_warning(f"Некорректный конверт в {_decode(message.get('channel'))}: {raw[:200]}")
            return

        if not isinstance(envelope, dict) or not envelope.get("channel") or not envelope.get("event"):
            await log_warning(f"Конверт без channel/event в {_decode(message.get('channel'))}")
            return

        await self._handler(envelope)
