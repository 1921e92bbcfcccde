# src/services/marketplace_api/app.py
"""
FastAPI приложение маркетплейса автосалонов.

Все маршруты подключаются с префиксом API_PREFIX (по умолчанию /api).
Журнал запросов пишет ApiLogMiddleware, ошибки приводятся
к ответу {"error": message} обработчиками из errors.py.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings
from src.services.marketplace_api.dependencies import (
    cleanup_dependencies,
    get_db,
    get_redis,
    init_dependencies,
)
from src.services.marketplace_api.errors import register_error_handlers
from src.services.marketplace_api.middleware import ApiLogMiddleware
from src.services.marketplace_api.routes import ROUTERS
from src.shared.models.common import HealthStatus

SERVICE_NAME = "marketplace_api"

_started_at = time.monotonic()


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    from src.core.realtime import RealtimePublisher
    from src.infra.database import close_db, init_db
    from src.infra.dispatcher import close_dispatcher, init_dispatcher
    from src.infra.http_clients import close_http_clients, get_mail_client, get_push_client
    from src.infra.redis_client import close_redis, init_redis

    setup_logging()

    missing = settings.missing_required()
    if missing:
        await log_error(f"Не заданы обязательные переменные окружения: {', '.join(missing)}")
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    db = await init_db()
    redis = await init_redis()
    dispatcher = await init_dispatcher()

    await init_dependencies(
        db=db,
        redis=redis,
        dispatcher=dispatcher,
        publisher=RealtimePublisher(redis, settings.realtime.channel_prefix),
        push=get_push_client(),
        mail=get_mail_client(),
    )
    await log_info(f"{SERVICE_NAME} запущен", type_msg=TypeMsg.INFO)

    yield

    await cleanup_dependencies()
    await close_dispatcher()
    await close_http_clients()
    await close_redis()
    await close_db()
    await log_info(f"{SERVICE_NAME} остановлен", type_msg=TypeMsg.INFO)


# === APP ===

def create_app() -> FastAPI:
    app = FastAPI(
        title="Car Showroom Marketplace API",
        description="Салоны, автомобили, бронирования, платежи и чат.",
        version=settings.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.deployment.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Добавлен последним, поэтому внешний относительно CORS
    app.add_middleware(
        ApiLogMiddleware,
        excluded_paths=settings.api_logs.API_LOG_EXCLUDED_PATHS,
        max_payload_bytes=settings.api_logs.API_LOG_MAX_PAYLOAD_BYTES,
    )

    register_error_handlers(app)

    for router in ROUTERS:
        app.include_router(router, prefix=settings.deployment.API_PREFIX)

    app.add_api_route("/health", health_check, methods=["GET"], response_model=HealthStatus, tags=["Health"])
    return app


# === HEALTH CHECK ===

async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и его зависимостей."""
    dependencies: dict[str, str] = {}
    for name, getter in (("database", get_db), ("redis", get_redis)):
        try:
            healthy = await getter().health_check()
        except RuntimeError:
            healthy = False
        dependencies[name] = "healthy" if healthy else "unhealthy"

    status = "healthy" if all(v == "healthy" for v in dependencies.values()) else "degraded"
    return HealthStatus(
        service=SERVICE_NAME,
        status=status,
        version=settings.system.VERSION,
        uptime_seconds=round(time.monotonic() - _started_at, 1),
        dependencies=dependencies,
    )


app = create_app()


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.deployment.API_HOST, port=settings.deployment.API_PORT)
