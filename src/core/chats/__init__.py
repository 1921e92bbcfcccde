# src/core/chats/__init__.py
"""Домен чата."""

from src.core.chats.models import ChatMessage, Conversation, ViewType
from src.core.chats.repository import ChatRepository
from src.core.chats.service import ChatService, is_participant

__all__ = [
    "ChatMessage",
    "Conversation",
    "ViewType",
    "ChatRepository",
    "ChatService",
    "is_participant",
]
