# src/shared/models/common.py
"""
Общие модели для всех модулей API.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, Field

from src.common.errors import ValidationError


def _id_to_str(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    return value


# UUID из asyncpg приводится к строке, чтобы сравнивать с userId из токена
EntityId = Annotated[str, BeforeValidator(_id_to_str)]


def parse_uuid(value: Any, message: str = "Invalid identifier") -> str:
    """Проверяет строковый идентификатор из тела запроса."""
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(message)


class PaginationParams(BaseModel):
    """Параметры пагинации."""

    page: int = Field(default=1, ge=1, description="Номер страницы")
    limit: int = Field(default=20, ge=1, le=100, description="Размер страницы")

    @property
    def offset(self) -> int:
        """Смещение для SQL-запроса."""
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    """Блок пагинации в ответе журнала API."""

    currentPage: int
    totalPages: int
    totalLogs: int
    hasNextPage: bool
    hasPrevPage: bool
    limit: int

    @classmethod
    def create(cls, total: int, params: PaginationParams) -> "Pagination":
        total_pages = (total + params.limit - 1) // params.limit
        return cls(
            currentPage=params.page,
            totalPages=total_pages,
            totalLogs=total,
            hasNextPage=params.page < total_pages,
            hasPrevPage=params.page > 1,
            limit=params.limit,
        )


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded, unhealthy
    version: str | None = None
    uptime_seconds: float | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
