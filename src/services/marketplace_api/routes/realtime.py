# src/services/marketplace_api/routes/realtime.py
"""
Авторизация подписок realtime-клиента на приватные каналы.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Form

from src.core.realtime.service import RealtimeAuthService
from src.services.marketplace_api.dependencies import CurrentUser, get_realtime_auth_service

router = APIRouter(prefix="/realtime", tags=["Realtime"])


@router.post("/auth")
async def authorize_channel(
    actor: CurrentUser,
    service: Annotated[RealtimeAuthService, Depends(get_realtime_auth_service)],
    socket_id: Annotated[Optional[str], Form()] = None,
    socketid: Annotated[Optional[str], Form()] = None,
    channel_name: Annotated[Optional[str], Form()] = None,
) -> dict[str, Any]:
    """
    Возвращает {auth: "<key>:<signature>"}, если вызывающий может
    подписаться на канал; иначе 403.
    """
    auth = await service.authorize(actor, socket_id or socketid, channel_name)
    return {"auth": auth}
