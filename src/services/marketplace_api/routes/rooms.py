# src/services/marketplace_api/routes/rooms.py
"""
Автосалоны.

Endpoints:
- GET /rooms - активные салоны (публично)
- GET /rooms/{id} - салон (публично)
- POST /rooms - создать салон
- PUT /rooms/{id} - изменить салон
- PUT /rooms/{id}/status - включить/выключить салон
- DELETE /rooms/{id} - удалить салон вместе с автомобилями
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.core.rooms import RoomInput, RoomService
from src.services.marketplace_api.dependencies import AdminUser, get_room_service

router = APIRouter(prefix="/rooms", tags=["Rooms"])

Rooms = Annotated[RoomService, Depends(get_room_service)]


class RoomStatusRequest(BaseModel):
    # Any: строка "true" не должна превращаться в bool
    is_active: Any = None


@router.get("")
async def list_rooms(service: Rooms) -> dict[str, Any]:
    rooms = await service.list_active()
    return {"rooms": [room.model_dump(mode="json") for room in rooms]}


@router.get("/{room_id}")
async def get_room(room_id: UUID, service: Rooms) -> dict[str, Any]:
    room = await service.get(str(room_id))
    return {"room": room.model_dump(mode="json")}


@router.post("", status_code=201)
async def create_room(request: RoomInput, actor: AdminUser, service: Rooms) -> dict[str, Any]:
    room = await service.create(actor, request)
    return {"message": "Room created successfully", "room": room.model_dump(mode="json")}


@router.put("/{room_id}")
async def update_room(
    room_id: UUID,
    request: RoomInput,
    actor: AdminUser,
    service: Rooms,
) -> dict[str, Any]:
    room = await service.update(str(room_id), actor, request)
    return {"message": "Showroom updated successfully", "room": room.model_dump(mode="json")}


@router.put("/{room_id}/status")
async def update_room_status(
    room_id: UUID,
    request: RoomStatusRequest,
    actor: AdminUser,
    service: Rooms,
) -> dict[str, Any]:
    room = await service.set_status(str(room_id), actor, request.is_active)
    state = "activated" if room.is_active else "deactivated"
    return {"message": f"Showroom {state} successfully", "room": room.model_dump(mode="json")}


@router.delete("/{room_id}")
async def delete_room(room_id: UUID, actor: AdminUser, service: Rooms) -> dict[str, Any]:
    await service.delete(str(room_id), actor)
    return {"message": "Showroom and associated cars deleted successfully"}
