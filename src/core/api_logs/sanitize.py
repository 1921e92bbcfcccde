# src/core/api_logs/sanitize.py
"""
Подготовка тел запроса/ответа к записи в журнал:
разбор JSON, маскирование секретов, обрезка больших тел.
"""

from __future__ import annotations

import json
from typing import Any

SENSITIVE_KEYS = (
    "password",
    "currentpassword",
    "newpassword",
    "token",
    "otp",
    "secret",
    "authorization",
    "api_key",
    "setup_key",
)

MASK = "***"


def _is_sensitive(key: str) -> bool:
    normalized = key.lower().replace("-", "_")
    compact = normalized.replace("_", "")
    return any(marker in normalized or marker in compact for marker in SENSITIVE_KEYS)


def mask_sensitive(value: Any) -> Any:
    """Рекурсивно заменяет значения чувствительных ключей на ***."""
    if isinstance(value, dict):
        return {
            key: MASK if isinstance(key, str) and _is_sensitive(key) else mask_sensitive(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [mask_sensitive(item) for item in value]
    return value


def prepare_payload(body: bytes, max_bytes: int) -> Any:
    """
    Превращает сырое тело в значение для JSONB-колонки.

    Пустое тело -> None. JSON разбирается и маскируется; не-JSON и слишком
    большие тела сохраняются как обрезанная строка.
    """
    if not body:
        return None

    if len(body) > max_bytes:
        return {"truncated": True, "size": len(body), "preview": body[:max_bytes].decode("utf-8", "replace")}

    try:
        parsed = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return {"raw": body.decode("utf-8", "replace")}

    return mask_sensitive(parsed)
