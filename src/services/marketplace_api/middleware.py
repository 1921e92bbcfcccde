# src/services/marketplace_api/middleware.py
"""
ASGI middleware журнала API-запросов.

Подключается самым внешним слоем: видит итоговый статус (включая 500 от
обработчика ошибок), тела запроса и ответа. Флаг api_logging_enabled
читается из system_settings на каждый запрос; запись уходит в очередь
диспетчера и не задерживает ответ.
"""

from __future__ import annotations

import json
import time
from typing import Any, Iterable, Optional

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.core.api_logs.models import LogEntry
from src.core.api_logs.sanitize import prepare_payload
from src.core.auth.tokens import decode_token, extract_bearer
from src.services.marketplace_api import dependencies

# Порядок заголовков, из которых берётся IP клиента
CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "x-client-ip", "cf-connecting-ip")


def client_ip(headers: Headers, peer: Optional[tuple[str, int]]) -> Optional[str]:
    """IP клиента: первый адрес x-forwarded-for, затем прочие заголовки прокси, затем сокет."""
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value:
            return value.split(",")[0].strip() or None
    return peer[0] if peer else None


def _error_message(status_code: int, body: bytes) -> Optional[str]:
    if status_code < 400:
        return None
    try:
        parsed = json.loads(body) if body else None
    except (ValueError, UnicodeDecodeError):
        return None
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), str):
        return parsed["error"]
    return None


class _Capture:
    """Накопитель тела с ограничением размера."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.size = 0
        self.chunks: list[bytes] = []

    def add(self, chunk: bytes) -> None:
        self.size += len(chunk)
        kept = sum(len(c) for c in self.chunks)
        if kept <= self.limit:
            self.chunks.append(chunk[: self.limit + 1 - kept])

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)


class ApiLogMiddleware:
    """
    Журналирует HTTP-запросы в таблицу api_logs.

    Args:
        app: Следующее ASGI-приложение
        excluded_paths: Префиксы путей, которые не журналируются
        max_payload_bytes: Предел сохраняемого тела
    """

    def __init__(
        self,
        app: ASGIApp,
        excluded_paths: Iterable[str] = (),
        max_payload_bytes: int = 10000,
    ) -> None:
        self.app = app
        self.excluded_paths = tuple(excluded_paths)
        self.max_payload_bytes = max_payload_bytes

    def _is_excluded(self, path: str) -> bool:
        return any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in self.excluded_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self._is_excluded(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        try:
            settings_service = dependencies.get_settings_service()
        except RuntimeError:
            await self.app(scope, receive, send)
            return

        # Ошибка чтения флага означает "не журналировать"
        enabled = await settings_service.is_api_logging_enabled()
        if not enabled:
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request_body = _Capture(self.max_payload_bytes)
        response_body = _Capture(self.max_payload_bytes)
        state: dict[str, Any] = {"status": None}

        async def receive_wrapper() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_body.add(message.get("body", b""))
            return message

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                state["status"] = message["status"]
            elif message["type"] == "http.response.body":
                response_body.add(message.get("body", b""))
            await send(message)

        error: Optional[str] = None
        try:
            await self.app(scope, receive_wrapper, send_wrapper)
        except Exception as e:
            error = str(e) or type(e).__name__
            raise
        finally:
            status_code = state["status"] or 500
            elapsed_ms = max(0, int((time.perf_counter() - started) * 1000))
            self._submit(scope, status_code, elapsed_ms, request_body, response_body, error)

    def _submit(
        self,
        scope: Scope,
        status_code: int,
        elapsed_ms: int,
        request_body: _Capture,
        response_body: _Capture,
        error: Optional[str],
    ) -> None:
        headers = Headers(scope=scope)
        path = scope.get("path", "")
        query = scope.get("query_string", b"").decode("latin-1")
        token = decode_token(extract_bearer(headers.get("authorization")))

        entry = LogEntry(
            endpoint=f"{path}?{query}" if query else path,
            method=scope.get("method", ""),
            status_code=status_code,
            response_time_ms=elapsed_ms,
            user_id=token.user_id if token else None,
            ip_address=client_ip(headers, scope.get("client")),
            user_agent=headers.get("user-agent"),
            request_payload=prepare_payload(request_body.body, self.max_payload_bytes),
            response_payload=prepare_payload(response_body.body, self.max_payload_bytes),
            error_message=error or _error_message(status_code, response_body.body),
        )

        try:
            api_logs = dependencies.get_api_log_service()
            dispatcher = dependencies.get_dispatcher()
        except RuntimeError:
            return

        # Переполнение очереди диспетчер логирует сам
        dispatcher.submit(
            "api_log.write",
            lambda: api_logs.record(entry, enabled=True),
            endpoint=entry.endpoint,
        )
