# src/core/api_logs/service.py
"""
Сервис журнала API.
"""

from __future__ import annotations

from typing import Optional

from src.common.errors import ValidationError
from src.common.logger import log_error, log_info
from src.core.api_logs.models import ApiLog, LogEntry, LogFilters
from src.core.api_logs.repository import ApiLogRepository
from src.infra.database import DatabaseManager
from src.shared.models.common import Pagination, PaginationParams


class ApiLogService:
    """Запись и чтение журнала API."""

    def __init__(self, db: DatabaseManager) -> None:
        self._repo = ApiLogRepository(db)

    async def record(self, entry: LogEntry, enabled: bool) -> bool:
        """
        Сохраняет запись, если журналирование включено.

        Args:
            entry: Данные запроса
            enabled: Значение флага api_logging_enabled на момент запроса

        Returns:
            True, если запись сохранена
        """
        if not enabled:
            return False

        try:
            await self._repo.insert(entry)
        except Exception as e:
            await log_error(
                f"Не удалось записать журнал API {entry.method} {entry.endpoint}: {e}",
                extra={"status_code": entry.status_code},
            )
            return False
        return True

    async def list_logs(
        self,
        filters: LogFilters,
        pagination: PaginationParams,
    ) -> tuple[list[ApiLog], Pagination]:
        logs, total = await self._repo.list(filters, limit=pagination.limit, offset=pagination.offset)
        return logs, Pagination.create(total, pagination)

    async def cleanup(self, retention_days: int) -> int:
        """Удаляет записи старше retention_days дней."""
        if retention_days < 1:
            raise ValidationError("Retention days must be a positive integer")

        deleted = await self._repo.delete_older_than(retention_days)
        await log_info(f"Очистка журнала API: удалено {deleted} записей старше {retention_days} дней")
        return deleted


def parse_retention_days(value: Optional[str]) -> Optional[int]:
    """Срок хранения из query-параметра (None, если не задан)."""
    if value is None or value == "":
        return None
    try:
        days = int(value)
    except ValueError:
        raise ValidationError("Retention days must be a positive integer")
    if days < 1:
        raise ValidationError("Retention days must be a positive integer")
    return days
