#!/usr/bin/env python3
# entrypoint_api.py
"""
Точка входа для HTTP API маркетплейса.
Порт по умолчанию: 8000
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

import uvicorn

from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.config import settings


async def main() -> None:
    """Запуск Marketplace API."""
    await log_info(
        f"Запуск Marketplace API на порту {settings.deployment.API_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.marketplace_api.app:app",
        host=settings.deployment.API_HOST,
        port=settings.deployment.API_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
