# tests/services/test_realtime_ws_gateway.py
"""
Тесты для Realtime WebSocket Gateway.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config import settings
from src.core.realtime.signing import build_auth
from src.services.realtime_ws import app as gateway
from src.services.realtime_ws.connection_manager import ConnectionManager, new_socket_id, normalize_channel
from src.services.realtime_ws.redis_subscriber import RedisSubscriber


def _websocket() -> MagicMock:
    websocket = MagicMock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock()
    return websocket


class TestConnectionManager:
    """Тесты для ConnectionManager."""

    def test_socket_id_format(self) -> None:
        left, _, right = new_socket_id().partition(".")
        assert left.isdigit() and right.isdigit()

    def test_normalize_channel(self) -> None:
        assert normalize_channel("private-chat-1") == "chat-1"
        assert normalize_channel("chat-1") == "chat-1"

    @pytest.mark.asyncio
    async def test_broadcast_uses_client_channel_name(self) -> None:
        """Подписчик получает событие под тем именем канала, на которое подписался."""
        manager = ConnectionManager()
        websocket = _websocket()
        socket_id = await manager.connect(websocket)
        manager.subscribe(socket_id, "private-chat-1")

        sent = await manager.broadcast_to_channel("chat-1", "new-message", {"id": "m1"})

        assert sent == 1
        websocket.send_json.assert_awaited_once_with(
            {"event": "new-message", "channel": "private-chat-1", "data": {"id": "m1"}}
        )

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        manager = ConnectionManager()
        socket_id = await manager.connect(_websocket())
        manager.subscribe(socket_id, "user-1")

        manager.unsubscribe(socket_id, "user-1")

        assert manager.get_channel_subscribers("user-1") == set()
        assert await manager.broadcast_to_channel("user-1", "unread-count-update", {}) == 0

    @pytest.mark.asyncio
    async def test_failed_send_disconnects(self) -> None:
        manager = ConnectionManager()
        websocket = _websocket()
        websocket.send_json.side_effect = RuntimeError("closed")
        socket_id = await manager.connect(websocket)
        manager.subscribe(socket_id, "chat-1")

        assert await manager.broadcast_to_channel("chat-1", "typing-status", {}) == 0
        assert manager.active_connections == 0
        assert manager.get_stats()["total_channels"] == 0

    def test_subscribe_unknown_socket(self) -> None:
        assert ConnectionManager().subscribe("1.1", "chat-1") is False


class TestHandleClientMessage:
    """Тесты протокола клиента."""

    @staticmethod
    async def _connect(monkeypatch: pytest.MonkeyPatch):
        manager = ConnectionManager()
        monkeypatch.setattr(gateway, "manager", manager)
        websocket = _websocket()
        socket_id = await manager.connect(websocket)
        return manager, websocket, socket_id

    @pytest.mark.asyncio
    async def test_subscribe_with_valid_auth(self, monkeypatch: pytest.MonkeyPatch) -> None:
        manager, websocket, socket_id = await self._connect(monkeypatch)
        auth = build_auth(
            settings.realtime.REALTIME_KEY, settings.realtime.REALTIME_SECRET, socket_id, "private-chat-1"
        )

        await gateway.handle_client_message(
            socket_id, {"event": "subscribe", "data": {"channel": "private-chat-1", "auth": auth}}
        )

        assert manager.get_channel_subscribers("chat-1") == {socket_id}
        assert websocket.send_json.call_args.args[0]["event"] == "subscription_succeeded"

    @pytest.mark.asyncio
    async def test_subscribe_with_foreign_signature(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Подпись, выданная для другого сокета, не принимается."""
        manager, websocket, socket_id = await self._connect(monkeypatch)
        auth = build_auth(settings.realtime.REALTIME_KEY, settings.realtime.REALTIME_SECRET, "9.9", "chat-1")

        await gateway.handle_client_message(
            socket_id, {"event": "subscribe", "data": {"channel": "chat-1", "auth": auth}}
        )

        assert manager.get_channel_subscribers("chat-1") == set()
        reply = websocket.send_json.call_args.args[0]
        assert reply["event"] == "subscription_error"
        assert reply["data"] == {"status": 403}

    @pytest.mark.asyncio
    async def test_ping(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _, websocket, socket_id = await self._connect(monkeypatch)

        await gateway.handle_client_message(socket_id, {"event": "ping"})

        assert websocket.send_json.call_args.args[0] == {"event": "pong", "data": {}}

    @pytest.mark.asyncio
    async def test_invalid_message(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _, websocket, socket_id = await self._connect(monkeypatch)

        await gateway.handle_client_message(socket_id, ["not", "a", "dict"])

        assert websocket.send_json.call_args.args[0]["event"] == "error"


class TestRedisSubscriber:
    """Тесты для разбора сообщений Redis."""

    @pytest.fixture
    def handler(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def subscriber(self, handler: AsyncMock) -> RedisSubscriber:
        return RedisSubscriber(MagicMock(), "showroom:realtime:eu:app:*", handler)

    @pytest.mark.asyncio
    async def test_envelope_forwarded(self, subscriber: RedisSubscriber, handler: AsyncMock) -> None:
        envelope = {"channel": "chat-1", "event": "new-message", "data": {"id": "m1"}}

        await subscriber.process_message(
            {"type": "pmessage", "channel": b"showroom:realtime:eu:app:chat-1", "data": json.dumps(envelope)}
        )

        handler.assert_awaited_once_with(envelope)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message",
        [
            {"type": "psubscribe", "channel": "x", "data": 1},
            {"type": "pmessage", "channel": "x", "data": "not json"},
            {"type": "pmessage", "channel": "x", "data": json.dumps({"event": "new-message"})},
        ],
    )
    async def test_ignored(self, subscriber: RedisSubscriber, handler: AsyncMock, message) -> None:
        await subscriber.process_message(message)

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_stop(self, handler: AsyncMock) -> None:
        pubsub = MagicMock()
        pubsub.psubscribe = AsyncMock()
        pubsub.punsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        pubsub.get_message = AsyncMock(return_value=None)
        subscriber = RedisSubscriber(pubsub, "showroom:realtime:*", handler)

        await subscriber.start()
        await subscriber.stop()

        pubsub.psubscribe.assert_awaited_once_with("showroom:realtime:*")
        pubsub.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_handle_envelope_broadcasts(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = MagicMock()
    manager.broadcast_to_channel = AsyncMock(return_value=1)
    monkeypatch.setattr(gateway, "manager", manager)

    await gateway.handle_envelope({"channel": "notification-u1", "event": "new-notification", "data": {}})

    manager.broadcast_to_channel.assert_awaited_once_with("notification-u1", "new-notification", {})
