# src/core/notifications/models.py
"""
Модели уведомлений.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.shared.models.common import EntityId


class Notification(BaseModel):
    """Уведомление пользователя."""

    id: EntityId
    user_id: EntityId
    type: str = Field(..., description="Тип уведомления")
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime
