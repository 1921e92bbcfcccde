# src/core/users/repository.py
"""
Репозиторий для работы с пользователями в БД.
Реализует паттерн Repository для абстракции доступа к данным.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.common.constants import UserRole
from src.core.users.models import PasswordResetToken, ProfileUpdateDTO, User
from src.infra.database import DatabaseManager

_COLUMNS = (
    "id, username, email, role, phone, location, profile_image, password, created_at, updated_at"
)

# Идентификатор advisory-лока для создания первого суперадмина
SUPERADMIN_LOCK_ID = 724310554


class UserRepository:
    """Репозиторий пользователей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """
        Получает пользователя по ID.

        Args:
            user_id: UUID пользователя

        Returns:
            Пользователь или None
        """
        row = await self._db.fetchrow(f"SELECT {_COLUMNS} FROM users WHERE id = $1", user_id)
        return User(**dict(row)) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        row = await self._db.fetchrow(
            f"SELECT {_COLUMNS} FROM users WHERE lower(email) = lower($1)",
            email,
        )
        return User(**dict(row)) if row else None

    async def exists(self, email: str, username: Optional[str] = None) -> bool:
        """Есть ли пользователь с таким e-mail (или username, если передан)."""
        found = await self._db.fetchval(
            """
            SELECT EXISTS (
                SELECT 1 FROM users
                WHERE lower(email) = lower($1)
                   OR ($2::text IS NOT NULL AND username = $2)
            )
            """,
            email,
            username,
        )
        return bool(found)

    async def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: UserRole,
        phone: Optional[str] = None,
    ) -> User:
        """
        Создаёт нового пользователя.

        Args:
            username: Имя пользователя
            email: E-mail
            password_hash: Уже захешированный пароль
            role: Роль

        Returns:
            Созданный пользователь
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO users (username, email, password, role, phone)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {_COLUMNS}
            """,
            username,
            email,
            password_hash,
            role.value,
            phone,
        )
        return User(**dict(row))

    async def create_first_superadmin(self, username: str, email: str, password_hash: str) -> Optional[User]:
        """
        Создаёт суперадмина, только если в системе его ещё нет.

        Проверка и вставка идут в одной транзакции под advisory-локом,
        параллельные вызовы выполняются по очереди.

        Returns:
            Созданный пользователь или None, если суперадмин уже существует
        """
        async with self._db.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock($1)", SUPERADMIN_LOCK_ID)
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM users WHERE role = $1", UserRole.SUPERADMIN.value
            )
            if int(count or 0) > 0:
                return None
            row = await conn.fetchrow(
                f"""
                INSERT INTO users (username, email, password, role)
                VALUES ($1, $2, $3, $4)
                RETURNING {_COLUMNS}
                """,
                username,
                email,
                password_hash,
                UserRole.SUPERADMIN.value,
            )
        return User(**dict(row))

    async def list_all(self) -> list[User]:
        rows = await self._db.fetch(f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC")
        return [User(**dict(row)) for row in rows]

    async def count_by_role(self, role: UserRole) -> int:
        count = await self._db.fetchval("SELECT COUNT(*) FROM users WHERE role = $1", role.value)
        return int(count or 0)

    async def update_profile(self, user_id: str, dto: ProfileUpdateDTO) -> Optional[User]:
        """Обновляет поля профиля; незаданные поля не меняются."""
        row = await self._db.fetchrow(
            f"""
            UPDATE users
            SET username = COALESCE($2, username),
                email = COALESCE($3, email),
                phone = COALESCE($4, phone),
                location = COALESCE($5, location),
                profile_image = COALESCE($6, profile_image),
                updated_at = NOW()
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            user_id,
            dto.username,
            dto.email,
            dto.phone,
            dto.location,
            dto.profile_image,
        )
        return User(**dict(row)) if row else None

    async def update_password(self, user_id: str, password_hash: str) -> None:
        await self._db.execute(
            "UPDATE users SET password = $2, updated_at = NOW() WHERE id = $1",
            user_id,
            password_hash,
        )

    async def update_role(self, user_id: str, role: UserRole) -> Optional[User]:
        row = await self._db.fetchrow(
            f"""
            UPDATE users SET role = $2, updated_at = NOW()
            WHERE id = $1
            RETURNING {_COLUMNS}
            """,
            user_id,
            role.value,
        )
        return User(**dict(row)) if row else None

    async def delete(self, user_id: str) -> bool:
        deleted = await self._db.fetchval("DELETE FROM users WHERE id = $1 RETURNING id", user_id)
        return deleted is not None


class PasswordResetRepository:
    """Токены сброса пароля."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create(self, user_id: str, token: str, expires_at: datetime) -> PasswordResetToken:
        row = await self._db.fetchrow(
            """
            INSERT INTO password_reset_tokens (user_id, token, expires_at)
            VALUES ($1, $2, $3)
            RETURNING id, user_id, token, expires_at, used, created_at
            """,
            user_id,
            token,
            expires_at,
        )
        return PasswordResetToken(**dict(row))

    async def get_by_token(self, token: str) -> Optional[PasswordResetToken]:
        row = await self._db.fetchrow(
            """
            SELECT id, user_id, token, expires_at, used, created_at
            FROM password_reset_tokens
            WHERE token = $1
            """,
            token,
        )
        return PasswordResetToken(**dict(row)) if row else None

    async def mark_used(self, token_id: str) -> bool:
        """False, если токен уже был использован параллельным запросом."""
        marked = await self._db.fetchval(
            "UPDATE password_reset_tokens SET used = TRUE WHERE id = $1 AND used = FALSE RETURNING id",
            token_id,
        )
        return marked is not None
