# src/core/otp/repository.py
"""
Репозиторий одноразовых кодов.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from src.core.otp.models import OtpCode
from src.infra.database import DatabaseManager

_COLUMNS = "id, email, purpose, otp_code, payload, expires_at, used, attempts, created_at"


class OtpRepository:
    """Доступ к таблице otp_codes."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def replace(
        self,
        email: str,
        purpose: str,
        code: str,
        expires_at: datetime,
        payload: dict[str, Any],
    ) -> OtpCode:
        """Удаляет прежние коды пары (email, purpose) и сохраняет новый."""
        async with self._db.transaction() as conn:
            await conn.execute(
                "DELETE FROM otp_codes WHERE email = $1 AND purpose = $2",
                email,
                purpose,
            )
            row = await conn.fetchrow(
                f"""
                INSERT INTO otp_codes (email, purpose, otp_code, payload, expires_at)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {_COLUMNS}
                """,
                email,
                purpose,
                code,
                payload,
                expires_at,
            )
        return OtpCode(**dict(row))

    async def get_latest(self, email: str, purpose: str) -> Optional[OtpCode]:
        row = await self._db.fetchrow(
            f"""
            SELECT {_COLUMNS}
            FROM otp_codes
            WHERE email = $1 AND purpose = $2
            ORDER BY created_at DESC
            LIMIT 1
            """,
            email,
            purpose,
        )
        return OtpCode(**dict(row)) if row else None

    async def increment_attempts(self, otp_id: str) -> None:
        await self._db.execute(
            "UPDATE otp_codes SET attempts = attempts + 1 WHERE id = $1",
            otp_id,
        )

    async def consume(self, otp_id: str) -> bool:
        """Помечает код использованным. False, если его уже использовали."""
        consumed_id = await self._db.fetchval(
            "UPDATE otp_codes SET used = TRUE WHERE id = $1 AND used = FALSE RETURNING id",
            otp_id,
        )
        return consumed_id is not None
