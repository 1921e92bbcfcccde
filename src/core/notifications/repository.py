# src/core/notifications/repository.py
"""
Репозиторий уведомлений.
"""

from __future__ import annotations

from typing import Any, Optional

from src.core.notifications.models import Notification
from src.infra.database import DatabaseManager

_COLUMNS = "id, user_id, type, title, message, data, is_read, created_at"


class NotificationRepository:
    """Доступ к таблице notifications."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create(
        self,
        user_id: str,
        type_: str,
        title: str,
        message: str,
        data: dict[str, Any],
    ) -> Notification:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO notifications (user_id, type, title, message, data)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {_COLUMNS}
            """,
            user_id,
            type_,
            title,
            message,
            data,
        )
        return Notification(**dict(row))

    async def list_for_user(self, user_id: str, limit: int = 100) -> list[Notification]:
        rows = await self._db.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM notifications
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        return [Notification(**dict(row)) for row in rows]

    async def count_unread(self, user_id: str) -> int:
        count = await self._db.fetchval(
            "SELECT COUNT(*) FROM notifications WHERE user_id = $1 AND is_read = FALSE",
            user_id,
        )
        return int(count or 0)

    async def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        """Повторная отметка не ошибка: строка просто возвращается как есть."""
        row = await self._db.fetchrow(
            f"""
            UPDATE notifications
            SET is_read = TRUE
            WHERE id = $1 AND user_id = $2
            RETURNING {_COLUMNS}
            """,
            notification_id,
            user_id,
        )
        return Notification(**dict(row)) if row else None

    async def mark_all_read(self, user_id: str) -> int:
        status = await self._db.execute(
            "UPDATE notifications SET is_read = TRUE WHERE user_id = $1 AND is_read = FALSE",
            user_id,
        )
        # asyncpg возвращает статус вида "UPDATE 3"
        return int(status.split()[-1]) if status else 0
