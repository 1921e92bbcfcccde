# src/core/chats/models.py
"""
Модели чата: беседа пользователя с салоном и сообщения.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.common.constants import MessageStatus, MessageType
from src.shared.models.common import EntityId


class ViewType(str, Enum):
    """Чей список бесед запрошен."""
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class Conversation(BaseModel):
    """Беседа; одна на пару (салон, пользователь)."""

    id: EntityId
    roomid: EntityId
    userid: EntityId
    last_message_at: Optional[datetime] = None
    is_active: bool = True
    unread_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    room_adminid: Optional[EntityId] = Field(None, exclude=True)
    room: Optional[dict[str, Any]] = None
    user: Optional[dict[str, Any]] = None
    last_message: Optional[dict[str, Any]] = None

    def participants(self) -> list[str]:
        return [pid for pid in (self.userid, self.room_adminid) if pid]


class ChatMessage(BaseModel):
    """Сообщение беседы."""

    id: EntityId
    conversation_id: EntityId
    senderid: EntityId
    message: str = ""
    message_type: MessageType = MessageType.TEXT
    car_details: Optional[dict[str, Any]] = None
    car_reference_id: Optional[EntityId] = None
    file_url: Optional[str] = None
    status: MessageStatus = MessageStatus.SENT
    is_read: bool = False
    created_at: Optional[datetime] = None

    sender: Optional[dict[str, Any]] = None
