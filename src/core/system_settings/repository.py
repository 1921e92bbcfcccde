# src/core/system_settings/repository.py
"""
Репозиторий системных настроек.
"""

from __future__ import annotations

from typing import Optional

from src.core.system_settings.models import SystemSetting
from src.infra.database import DatabaseManager


class SystemSettingsRepository:
    """Доступ к таблице system_settings."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, key: str) -> Optional[SystemSetting]:
        row = await self._db.fetchrow(
            """
            SELECT setting_key, setting_value, description, updated_at, updated_by
            FROM system_settings
            WHERE setting_key = $1
            """,
            key,
        )
        return SystemSetting(**dict(row)) if row else None

    async def get_value(self, key: str) -> Optional[str]:
        return await self._db.fetchval(
            "SELECT setting_value FROM system_settings WHERE setting_key = $1",
            key,
        )

    async def list_all(self) -> list[SystemSetting]:
        rows = await self._db.fetch(
            """
            SELECT setting_key, setting_value, description, updated_at, updated_by
            FROM system_settings
            ORDER BY setting_key
            """
        )
        return [SystemSetting(**dict(row)) for row in rows]

    async def upsert(
        self,
        key: str,
        value: str,
        updated_by: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SystemSetting:
        row = await self._db.fetchrow(
            """
            INSERT INTO system_settings (setting_key, setting_value, description, updated_by, updated_at)
            VALUES ($1, $2, $3, $4, NOW())
            ON CONFLICT (setting_key) DO UPDATE SET
                setting_value = EXCLUDED.setting_value,
                description = COALESCE(EXCLUDED.description, system_settings.description),
                updated_by = EXCLUDED.updated_by,
                updated_at = NOW()
            RETURNING setting_key, setting_value, description, updated_at, updated_by
            """,
            key,
            value,
            description,
            updated_by,
        )
        return SystemSetting(**dict(row))
