# src/core/rooms/__init__.py
"""Домен автосалонов."""

from src.core.rooms.models import Room, RoomInput
from src.core.rooms.repository import RoomRepository
from src.core.rooms.service import RoomService, can_manage_room

__all__ = ["Room", "RoomInput", "RoomRepository", "RoomService", "can_manage_room"]
