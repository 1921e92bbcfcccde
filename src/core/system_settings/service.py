# src/core/system_settings/service.py
"""
Сервис системных настроек.
Значения читаются из БД на каждый вызов, без кэширования в процессе.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import SettingKey
from src.common.errors import ValidationError
from src.common.logger import log_error, log_info
from src.core.system_settings.models import SystemSetting
from src.core.system_settings.repository import SystemSettingsRepository
from src.infra.database import DatabaseManager

DEFAULT_RETENTION_DAYS = 30


class SystemSettingsService:
    """Чтение и изменение системных настроек."""

    def __init__(self, db: DatabaseManager) -> None:
        self._repo = SystemSettingsRepository(db)

    async def list_settings(self) -> list[SystemSetting]:
        return await self._repo.list_all()

    async def update_setting(
        self,
        key: Optional[str],
        value: object,
        updated_by: Optional[str] = None,
    ) -> SystemSetting:
        """Создаёт или обновляет настройку. Значение хранится строкой."""
        if not key:
            raise ValidationError("Setting key is required")
        if value is None:
            raise ValidationError("Setting value is required")

        if isinstance(value, bool):
            value = "true" if value else "false"
        setting = await self._repo.upsert(key, str(value), updated_by=updated_by)
        await log_info(f"Системная настройка {key} = {setting.setting_value}")
        return setting

    # =========================================================================
    # ЖУРНАЛ API
    # =========================================================================

    async def is_api_logging_enabled(self) -> bool:
        """
        Флаг журналирования API на момент вызова.
        Ошибка чтения означает "не журналировать".
        """
        try:
            value = await self._repo.get_value(SettingKey.API_LOGGING_ENABLED.value)
        except Exception as e:
            await log_error(f"Не удалось прочитать флаг журналирования API: {e}")
            return False
        return value == "true"

    async def set_api_logging_enabled(self, enabled: bool, updated_by: Optional[str] = None) -> bool:
        if not isinstance(enabled, bool):
            raise ValidationError("Enabled parameter must be a boolean")
        await self._repo.upsert(
            SettingKey.API_LOGGING_ENABLED.value,
            "true" if enabled else "false",
            updated_by=updated_by,
            description="Enable or disable API request logging",
        )
        return enabled

    async def get_log_retention_days(self) -> int:
        """Срок хранения журнала из настроек (по умолчанию 30 дней)."""
        value = await self._repo.get_value(SettingKey.API_LOG_RETENTION_DAYS.value)
        try:
            days = int(value) if value is not None else DEFAULT_RETENTION_DAYS
        except ValueError:
            return DEFAULT_RETENTION_DAYS
        return days if days > 0 else DEFAULT_RETENTION_DAYS
