# src/core/auth/access.py
"""
Проверка ролей. Роли плоские: superadmin не включает права admin
автоматически, каждый эндпоинт перечисляет допустимые роли явно.
"""

from __future__ import annotations

from typing import Iterable

from src.common.constants import UserRole
from src.core.auth.tokens import TokenPayload


def _role_value(role: UserRole | str) -> str:
    """Строковое значение роли; неизвестные строки просто не совпадут ни с одной ролью."""
    return role.value if isinstance(role, UserRole) else str(role)


def authorize(payload: TokenPayload | None, allowed_roles: Iterable[UserRole | str]) -> bool:
    """True, если роль из токена входит в allowed_roles."""
    if payload is None:
        return False
    allowed = {_role_value(role) for role in allowed_roles}
    return payload.role.value in allowed


def has_role(payload: TokenPayload | None, role: UserRole | str) -> bool:
    return payload is not None and payload.role.value == _role_value(role)


def is_admin_or_superadmin(payload: TokenPayload | None) -> bool:
    return authorize(payload, (UserRole.ADMIN, UserRole.SUPERADMIN))
