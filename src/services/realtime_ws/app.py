# src/services/realtime_ws/app.py
"""
FastAPI приложение Realtime WebSocket Gateway.

WebSocket endpoints:
- /ws - соединение клиента; после подключения клиент получает socket_id

Протокол клиента:
- {"event": "subscribe", "data": {"channel": "...", "auth": "<key>:<signature>"}}
- {"event": "unsubscribe", "data": {"channel": "..."}}
- {"event": "ping"}

Подпись выдаёт API (POST /api/realtime/auth) для пары socket_id и канала.

REST endpoints:
- GET /health - проверка здоровья
- GET /stats - статистика соединений
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings
from src.core.realtime.signing import verify_auth
from src.services.realtime_ws.connection_manager import manager
from src.services.realtime_ws.redis_subscriber import RedisSubscriber
from src.shared.models.common import HealthStatus

SERVICE_NAME = "realtime_ws_gateway"


# === MODELS ===

class StatsResponse(BaseModel):
    """Статистика соединений."""
    active_connections: int
    total_channels: int
    total_connections_ever: int
    total_messages_sent: int


# === REDIS HANDLER ===

async def handle_envelope(envelope: dict[str, Any]) -> None:
    """Переслать конверт {channel, event, data} подписчикам канала."""
    await manager.broadcast_to_channel(envelope["channel"], envelope["event"], envelope.get("data"))


# === LIFESPAN ===

_redis_subscriber: RedisSubscriber | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    global _redis_subscriber
    from src.infra.redis_client import close_redis, init_redis

    setup_logging()
    redis = await init_redis()

    pattern = redis.channel_pattern(f"{settings.realtime.channel_prefix}:*")
    _redis_subscriber = RedisSubscriber(redis.pubsub(), pattern, handle_envelope)
    await _redis_subscriber.start()
    await log_info(f"{SERVICE_NAME} слушает {pattern}", type_msg=TypeMsg.INFO)

    yield

    if _redis_subscriber:
        await _redis_subscriber.stop()
        _redis_subscriber = None
    await close_redis()


# === APP ===

app = FastAPI(
    title="Realtime WebSocket Gateway",
    description="Доставка realtime-событий маркетплейса WebSocket-клиентам.",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        service=SERVICE_NAME,
        version=settings.system.VERSION,
    )


@app.get("/stats", response_model=StatsResponse, tags=["Stats"])
async def get_stats() -> StatsResponse:
    return StatsResponse(**manager.get_stats())


# === WEBSOCKET ===

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    socket_id = await manager.connect(websocket)
    await manager.send_personal(
        socket_id,
        {"event": "connection_established", "data": {"socket_id": socket_id}},
    )

    try:
        while True:
            data = await websocket.receive_json()
            await handle_client_message(socket_id, data)

    except WebSocketDisconnect:
        await manager.disconnect(socket_id)
    except Exception as e:
        await log_error(f"Сокет {socket_id}: {e}")
        await manager.disconnect(socket_id)


async def handle_client_message(socket_id: str, message: Any) -> None:
    """Обработать сообщение клиента."""
    if not isinstance(message, dict):
        await manager.send_personal(socket_id, {"event": "error", "data": {"message": "Invalid message"}})
        return

    event = message.get("event")
    data = message.get("data") if isinstance(message.get("data"), dict) else {}
    channel = data.get("channel")

    if event == "subscribe":
        auth = data.get("auth") or ""
        key = settings.realtime.REALTIME_KEY
        secret = settings.realtime.REALTIME_SECRET
        if not channel or not verify_auth(auth, key, secret, socket_id, channel):
            await manager.send_personal(
                socket_id,
                {"event": "subscription_error", "channel": channel, "data": {"status": 403}},
            )
            return
        manager.subscribe(socket_id, channel)
        await manager.send_personal(socket_id, {"event": "subscription_succeeded", "channel": channel, "data": {}})

    elif event == "unsubscribe":
        if channel:
            manager.unsubscribe(socket_id, channel)

    elif event == "ping":
        await manager.send_personal(socket_id, {"event": "pong", "data": {}})

    else:
        await manager.send_personal(socket_id, {"event": "error", "data": {"message": "Unknown event"}})


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.deployment.REALTIME_WS_HOST, port=settings.deployment.REALTIME_WS_PORT)
