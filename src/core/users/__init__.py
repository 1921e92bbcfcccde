# src/core/users/__init__.py
"""
Домен пользователей.
Модели, репозитории и сервисы учётных записей.
"""

from src.core.users.models import PasswordResetToken, ProfileUpdateDTO, User
from src.core.users.repository import PasswordResetRepository, UserRepository
from src.core.users.service import AuthService, UserAdminService

__all__ = [
    "User",
    "PasswordResetToken",
    "ProfileUpdateDTO",
    "UserRepository",
    "PasswordResetRepository",
    "AuthService",
    "UserAdminService",
]
