#!/usr/bin/env python3
# main.py
"""
Главная точка входа маркетплейса автосалонов.
Запускает HTTP API, realtime-шлюз или оба компонента (COMPONENT_MODE).
"""

from __future__ import annotations

import asyncio
import signal
import sys

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings

VALID_MODES = ("api", "realtime_ws", "all")

# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None
_running_tasks: list[asyncio.Task] = []


def setup_signal_handlers() -> None:
    """Настраивает обработчики SIGINT и SIGTERM."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        if _shutdown_event and not _shutdown_event.is_set():
            _shutdown_event.set()
            for task in _running_tasks:
                if not task.done():
                    task.cancel()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def _serve(app_path: str, host: str, port: int, name: str) -> None:
    import uvicorn

    await log_info(f"Запуск {name} на {host}:{port}...", type_msg=TypeMsg.INFO)
    config = uvicorn.Config(
        app_path,
        host=host,
        port=port,
        log_level="debug" if settings.system.DEBUG else "info",
    )
    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info(f"{name}: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_api() -> None:
    """HTTP API маркетплейса."""
    await _serve(
        "src.services.marketplace_api.app:app",
        settings.deployment.API_HOST,
        settings.deployment.API_PORT,
        "Marketplace API",
    )


async def run_realtime_ws_gateway() -> None:
    """Realtime WebSocket Gateway."""
    await _serve(
        "src.services.realtime_ws.app:app",
        settings.deployment.REALTIME_WS_HOST,
        settings.deployment.REALTIME_WS_PORT,
        "Realtime WS Gateway",
    )


def resolve_mode(argv: list[str]) -> str:
    """Режим из аргумента командной строки, иначе из COMPONENT_MODE."""
    mode = argv[1] if len(argv) > 1 else settings.system.COMPONENT_MODE
    if mode not in VALID_MODES:
        raise SystemExit(f"Неизвестный режим '{mode}'. Допустимые: {', '.join(VALID_MODES)}")
    return mode


async def main(mode: str) -> None:
    setup_logging()
    setup_signal_handlers()

    await log_info(
        f"{settings.system.PROJECT_NAME} v{settings.system.VERSION}: запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    runners = {
        "api": [run_api],
        "realtime_ws": [run_realtime_ws_gateway],
        "all": [run_api, run_realtime_ws_gateway],
    }[mode]

    _running_tasks.extend(asyncio.create_task(runner()) for runner in runners)
    try:
        await asyncio.gather(*_running_tasks)
    except asyncio.CancelledError:
        pass
    except Exception as e:
        await log_error(f"Компонент завершился с ошибкой: {e}", exc_info=True)
        raise
    finally:
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


if __name__ == "__main__":
    asyncio.run(main(resolve_mode(sys.argv)))
