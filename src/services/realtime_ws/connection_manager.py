# src/services/realtime_ws/connection_manager.py
"""
Менеджер WebSocket соединений шлюза.
Соединение идентифицируется socket_id, подписки хранятся по имени канала.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

from src.common.logger import log_warning
from src.core.realtime.channels import PRIVATE_PREFIX


def new_socket_id() -> str:
    """Идентификатор сокета вида '<digits>.<digits>'."""
    return f"{secrets.randbelow(10 ** 9)}.{secrets.randbelow(10 ** 9)}"


def normalize_channel(channel: str) -> str:
    """Имя канала без клиентского префикса private-."""
    return channel[len(PRIVATE_PREFIX):] if channel.startswith(PRIVATE_PREFIX) else channel


@dataclass
class ConnectionInfo:
    """Информация о соединении."""
    websocket: WebSocket
    socket_id: str
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # Нормализованное имя -> имя, под которым подписался клиент
    subscriptions: dict[str, str] = field(default_factory=dict)


class ConnectionManager:
    """
    Подключение и отключение сокетов, подписки на каналы
    и рассылка событий подписчикам.
    """

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionInfo] = {}
        # channel -> set of socket_id
        self._subscriptions: dict[str, set[str]] = {}

        self._total_connections: int = 0
        self._total_messages_sent: int = 0

    @property
    def active_connections(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> str:
        """Принять соединение и выдать ему socket_id."""
        await websocket.accept()
        socket_id = new_socket_id()
        self._connections[socket_id] = ConnectionInfo(websocket=websocket, socket_id=socket_id)
        self._total_connections += 1
        return socket_id

    async def disconnect(self, socket_id: str) -> None:
        conn = self._connections.pop(socket_id, None)
        if conn is None:
            return
        for channel in list(conn.subscriptions):
            self._remove_subscriber(channel, socket_id)

    def subscribe(self, socket_id: str, channel_name: str) -> bool:
        conn = self._connections.get(socket_id)
        if conn is None:
            return False

        channel = normalize_channel(channel_name)
        conn.subscriptions[channel] = channel_name
        self._subscriptions.setdefault(channel, set()).add(socket_id)
        return True

    def unsubscribe(self, socket_id: str, channel_name: str) -> None:
        channel = normalize_channel(channel_name)
        conn = self._connections.get(socket_id)
        if conn is not None:
            conn.subscriptions.pop(channel, None)
        self._remove_subscriber(channel, socket_id)

    def _remove_subscriber(self, channel: str, socket_id: str) -> None:
        subscribers = self._subscriptions.get(channel)
        if subscribers is None:
            return
        subscribers.discard(socket_id)
        if not subscribers:
            del self._subscriptions[channel]

    async def send_personal(self, socket_id: str, message: dict[str, Any]) -> bool:
        """
        Returns:
            True если сообщение отправлено, False если сокет не подключен
        """
        conn = self._connections.get(socket_id)
        if conn is None:
            return False

        try:
            await conn.websocket.send_json(message)
        except Exception as e:
            await log_warning(f"Сокет {socket_id} недоступен: {e}")
            await self.disconnect(socket_id)
            return False
        self._total_messages_sent += 1
        return True

    async def broadcast_to_channel(self, channel: str, event: str, data: Any) -> int:
        """
        Отправить событие всем подписчикам канала.

        Returns:
            Количество успешно отправленных сообщений
        """
        channel = normalize_channel(channel)
        sent_count = 0
        for socket_id in list(self._subscriptions.get(channel, ())):
            conn = self._connections.get(socket_id)
            if conn is None:
                continue
            message = {"event": event, "channel": conn.subscriptions.get(channel, channel), "data": data}
            if await self.send_personal(socket_id, message):
                sent_count += 1
        return sent_count

    def get_channel_subscribers(self, channel: str) -> set[str]:
        return set(self._subscriptions.get(normalize_channel(channel), set()))

    def get_stats(self) -> dict[str, Any]:
        return {
            "active_connections": len(self._connections),
            "total_channels": len(self._subscriptions),
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
        }


# Глобальный экземпляр
manager = ConnectionManager()
