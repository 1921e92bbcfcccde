# src/core/notifications/service.py
"""
Сервис уведомлений.

Сохраняет уведомления в БД и раздаёт их по каналам доставки:
realtime (Redis Pub/Sub), push (OneSignal), e-mail. Доставка идёт через
очередь побочных эффектов и никогда не ломает основную операцию.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import RealtimeEvent, TypeMsg
from src.common.errors import NotFoundError
from src.common.logger import log_error, log_info
from src.core.notifications.models import Notification
from src.core.notifications.repository import NotificationRepository
from src.core.realtime.channels import notification_channel
from src.core.realtime.publisher import RealtimePublisher
from src.infra.database import DatabaseManager
from src.infra.dispatcher import SideEffectDispatcher
from src.infra.http_clients import MailClient, PushClient


class NotificationService:
    """
    Уведомления пользователей.

    Методы queue_* только ставят задачу в очередь и сразу возвращаются.
    """

    def __init__(
        self,
        db: DatabaseManager,
        dispatcher: SideEffectDispatcher,
        publisher: RealtimePublisher,
        push: PushClient,
        mail: MailClient,
    ) -> None:
        self._repo = NotificationRepository(db)
        self._dispatcher = dispatcher
        self._publisher = publisher
        self._push = push
        self._mail = mail

    # =========================================================================
    # ОЧЕРЕДЬ ДОСТАВКИ
    # =========================================================================

    def queue_realtime(self, channel: str, event: str, payload: Any) -> bool:
        return self._dispatcher.submit(
            f"realtime.{event}",
            lambda: self._publisher.send(channel, event, payload),
            channel=channel,
        )

    def queue_push(self, user_id: str, title: str, message: str, data: Optional[dict[str, Any]] = None) -> bool:
        return self._dispatcher.submit(
            "push.onesignal",
            lambda: self._push.send_to_user(user_id, title, message, data),
            user_id=user_id,
        )

    def queue_email(self, to: Optional[str], subject: str, html: str) -> bool:
        if not to:
            return False
        return self._dispatcher.submit(
            "email.send",
            lambda: self._mail.send(to, subject, html),
            subject=subject,
        )

    # =========================================================================
    # УВЕДОМЛЕНИЯ
    # =========================================================================

    async def notify(
        self,
        user_id: str,
        type_: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
        push: bool = True,
    ) -> Optional[Notification]:
        """
        Сохраняет уведомление и рассылает его по realtime и push.

        Returns:
            Сохранённое уведомление или None, если запись не удалась
        """
        data = data or {}
        try:
            notification = await self._repo.create(user_id, type_, title, message, data)
        except Exception as e:
            await log_error(f"Не удалось сохранить уведомление для {user_id}: {e}", extra={"type": type_})
            return None

        self._dispatcher.submit(
            "realtime.new-notification",
            lambda: self._publisher.send(
                notification_channel(user_id),
                RealtimeEvent.NEW_NOTIFICATION.value,
                notification.model_dump(mode="json"),
            ),
            user_id=user_id,
        )
        if push:
            self.queue_push(user_id, title, message, {"type": type_, **data})

        await log_info(f"Уведомление '{title}' для {user_id}", type_msg=TypeMsg.DEBUG)
        return notification

    async def list_notifications(self, user_id: str) -> list[Notification]:
        return await self._repo.list_for_user(user_id)

    async def unread_count(self, user_id: str) -> int:
        return await self._repo.count_unread(user_id)

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        """Отмечает уведомление прочитанным. Идемпотентно."""
        notification = await self._repo.mark_read(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        return await self._repo.mark_all_read(user_id)
