# src/core/api_logs/models.py
"""
Модели журнала API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.shared.models.common import EntityId

# Статусы, которые не считаются ошибкой при фильтре errorOnly
SUCCESS_STATUS_CODES = (200, 201, 204)


class LogEntry(BaseModel):
    """Запись, которую формирует middleware для одного запроса."""

    endpoint: str
    method: str
    status_code: int
    response_time_ms: int = Field(..., ge=0)
    user_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_payload: Optional[Any] = None
    response_payload: Optional[Any] = None
    error_message: Optional[str] = None


class ApiLog(LogEntry):
    """Сохранённая запись журнала."""

    id: int
    user_id: Optional[EntityId] = None
    created_at: datetime


class LogFilters(BaseModel):
    """Фильтры выборки журнала."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    endpoint: Optional[str] = None
    status_code: Optional[int] = None
    method: Optional[str] = None
    error_only: bool = False
