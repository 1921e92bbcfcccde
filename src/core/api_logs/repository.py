# src/core/api_logs/repository.py
"""
Репозиторий журнала API.
"""

from __future__ import annotations

from typing import Any

from src.core.api_logs.models import ApiLog, LogEntry, LogFilters, SUCCESS_STATUS_CODES
from src.infra.database import DatabaseManager

_COLUMNS = """
    id, endpoint, method, status_code, response_time_ms, user_id, ip_address,
    user_agent, request_payload, response_payload, error_message, created_at
"""


def build_where(filters: LogFilters) -> tuple[str, list[Any]]:
    """Собирает WHERE и параметры по фильтрам."""
    clauses: list[str] = []
    args: list[Any] = []

    def add(clause: str, value: Any) -> None:
        args.append(value)
        clauses.append(clause.format(n=len(args)))

    if filters.start_date is not None:
        add("created_at >= ${n}", filters.start_date)
    if filters.end_date is not None:
        add("created_at <= ${n}", filters.end_date)
    if filters.endpoint:
        add("endpoint ILIKE ${n}", f"%{filters.endpoint}%")
    if filters.status_code is not None:
        add("status_code = ${n}", filters.status_code)
    if filters.method:
        add("method = ${n}", filters.method.upper())
    if filters.error_only:
        add("NOT (status_code = ANY(${n}::int[]))", list(SUCCESS_STATUS_CODES))

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, args


class ApiLogRepository:
    """Доступ к таблице api_logs."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert(self, entry: LogEntry) -> None:
        await self._db.execute(
            """
            INSERT INTO api_logs (
                endpoint, method, status_code, response_time_ms, user_id, ip_address,
                user_agent, request_payload, response_payload, error_message
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            """,
            entry.endpoint,
            entry.method,
            entry.status_code,
            entry.response_time_ms,
            entry.user_id,
            entry.ip_address,
            entry.user_agent,
            entry.request_payload,
            entry.response_payload,
            entry.error_message,
        )

    async def list(self, filters: LogFilters, limit: int, offset: int) -> tuple[list[ApiLog], int]:
        where, args = build_where(filters)

        total = await self._db.fetchval(f"SELECT COUNT(*) FROM api_logs {where}", *args)

        page_args = [*args, limit, offset]
        rows = await self._db.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM api_logs
            {where}
            ORDER BY created_at DESC
            LIMIT ${len(args) + 1} OFFSET ${len(args) + 2}
            """,
            *page_args,
        )
        return [ApiLog(**dict(row)) for row in rows], int(total or 0)

    async def delete_older_than(self, days: int) -> int:
        """Удаляет записи старше days дней. Возвращает число удалённых."""
        deleted = await self._db.fetchval(
            """
            WITH removed AS (
                DELETE FROM api_logs
                WHERE created_at < NOW() - make_interval(days => $1)
                RETURNING 1
            )
            SELECT COUNT(*) FROM removed
            """,
            days,
        )
        return int(deleted or 0)
