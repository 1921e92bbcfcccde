# src/services/marketplace_api/routes/notifications.py
"""
Уведомления текущего пользователя.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends

from src.core.notifications import NotificationService
from src.services.marketplace_api.dependencies import CurrentUser, get_notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])

Notifications = Annotated[NotificationService, Depends(get_notification_service)]


@router.get("")
async def list_notifications(actor: CurrentUser, service: Notifications) -> dict[str, Any]:
    notifications = await service.list_notifications(actor.user_id)
    return {"notifications": [n.model_dump(mode="json") for n in notifications]}


@router.get("/unread-count")
async def unread_count(actor: CurrentUser, service: Notifications) -> dict[str, Any]:
    return {"count": await service.unread_count(actor.user_id)}


# Объявлен раньше /{notification_id}, иначе "read-all" попадёт в параметр пути
@router.put("/read-all")
async def mark_all_read(actor: CurrentUser, service: Notifications) -> dict[str, Any]:
    updated = await service.mark_all_read(actor.user_id)
    return {"message": "All notifications marked as read", "count": updated}


@router.put("/{notification_id}")
async def mark_read(
    notification_id: UUID,
    actor: CurrentUser,
    service: Notifications,
) -> dict[str, Any]:
    """Повторная отметка уже прочитанного уведомления не является ошибкой."""
    notification = await service.mark_read(str(notification_id), actor.user_id)
    return {"message": "Notification marked as read", "notification": notification.model_dump(mode="json")}
