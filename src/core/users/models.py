# src/core/users/models.py
"""
Модели данных пользователей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.common.constants import UserRole
from src.shared.models.common import EntityId


class User(BaseModel):
    """Модель пользователя. Хеш пароля не попадает в сериализацию."""

    id: EntityId
    username: str = Field(..., description="Имя пользователя")
    email: str = Field(..., description="E-mail (уникальный)")
    role: UserRole = Field(UserRole.USER, description="Роль пользователя")
    phone: Optional[str] = Field(None, description="Номер телефона")
    location: Optional[str] = Field(None, description="Город / адрес")
    profile_image: Optional[str] = Field(None, description="URL аватара")
    password: Optional[str] = Field(None, exclude=True, description="Argon2-хеш пароля")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRole.SUPERADMIN


class PasswordResetToken(BaseModel):
    """Токен сброса пароля."""

    id: EntityId
    user_id: EntityId
    token: str
    expires_at: datetime
    used: bool = False
    created_at: Optional[datetime] = None


class ProfileUpdateDTO(BaseModel):
    """Изменяемые поля профиля."""

    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    profile_image: Optional[str] = None
