# src/core/system_settings/models.py
"""
Модели системных настроек.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.shared.models.common import EntityId


class SystemSetting(BaseModel):
    """Запись таблицы system_settings."""

    setting_key: str = Field(..., description="Ключ настройки")
    setting_value: str = Field(..., description="Значение (строка)")
    description: Optional[str] = Field(None, description="Описание")
    updated_at: Optional[datetime] = Field(None, description="Дата изменения")
    updated_by: Optional[EntityId] = Field(None, description="Кто изменил")
