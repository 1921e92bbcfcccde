# src/common/errors.py
"""
Иерархия прикладных ошибок.
Сервисы бросают наследников AppError, обработчики FastAPI превращают их
в ответ {"error": message} с соответствующим HTTP-статусом.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Базовая прикладная ошибка."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Тело ответа API."""
        return {"error": self.message}


class ValidationError(AppError):
    """Некорректные входные данные или нарушение бизнес-правила."""
    status_code = 400


class AuthenticationError(AppError):
    """Отсутствует или недействителен токен."""
    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs: Any):
        super().__init__(message, **kwargs)


class AuthorizationError(AppError):
    """Роль или владение ресурсом не позволяют выполнить действие."""
    status_code = 403

    def __init__(self, message: str = "Access denied", **kwargs: Any):
        super().__init__(message, **kwargs)


class NotFoundError(AppError):
    """Сущность не найдена."""
    status_code = 404


class UpstreamError(AppError):
    """Ошибка внешнего сервиса (почта, push, хранилище)."""
    status_code = 500
