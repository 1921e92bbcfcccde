# src/core/system_settings/__init__.py
"""
Хранилище системных настроек (ключ-значение в таблице system_settings).
"""

from src.core.system_settings.models import SystemSetting
from src.core.system_settings.repository import SystemSettingsRepository
from src.core.system_settings.service import SystemSettingsService

__all__ = ["SystemSetting", "SystemSettingsRepository", "SystemSettingsService"]
