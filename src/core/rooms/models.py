# src/core/rooms/models.py
"""
Модели автосалонов (комнат).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.shared.models.common import EntityId


class Room(BaseModel):
    """Автосалон. У администратора не больше одного салона."""

    id: EntityId
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    contact_info: dict[str, Any] = Field(default_factory=dict, description="Телефон, e-mail и т.п.")
    image: Optional[str] = Field(None, description="URL обложки")
    adminid: Optional[EntityId] = Field(None, description="Владелец салона")
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RoomInput(BaseModel):
    """Поля салона из тела запроса."""

    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    contact_info: Optional[dict[str, Any]] = None
    image: Optional[str] = None
