# src/core/chats/service.py
"""
Сервис чата между пользователем и салоном.

Участники беседы: пользователь, открывший её, и администратор салона.
Суперадмин видит и может писать в любую беседу.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from src.common.constants import MessageType, NotificationType, RealtimeEvent, TypeMsg, UserRole
from src.common.errors import AuthorizationError, NotFoundError, ValidationError
from src.common.logger import log_error, log_info
from src.core.auth.tokens import TokenPayload
from src.core.cars.repository import CarRepository
from src.core.chats.models import ChatMessage, Conversation, ViewType
from src.core.chats.repository import ChatRepository
from src.core.notifications.service import NotificationService
from src.core.realtime.channels import chat_channel, user_channel
from src.core.rooms.repository import RoomRepository
from src.core.users.repository import UserRepository
from src.infra.database import DatabaseManager
from src.shared.models.common import parse_uuid


def is_participant(conversation: Conversation, actor: TokenPayload) -> bool:
    if actor.role == UserRole.SUPERADMIN:
        return True
    return actor.user_id in conversation.participants()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatService:
    """Беседы, сообщения и индикатор набора текста."""

    def __init__(self, db: DatabaseManager, notifier: NotificationService) -> None:
        self._repo = ChatRepository(db)
        self._cars = CarRepository(db)
        self._rooms = RoomRepository(db)
        self._users = UserRepository(db)
        self._notifier = notifier

    async def _get_conversation(self, conversation_id: Optional[str]) -> Conversation:
        if not conversation_id:
            raise ValidationError("Missing conversationId")
        conversation = await self._repo.get_conversation(
            parse_uuid(conversation_id, "Invalid conversationId")
        )
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    async def can_access(self, conversation_id: str, actor: TokenPayload) -> bool:
        """Используется при авторизации подписки на chat-канал."""
        conversation = await self._repo.get_conversation(conversation_id)
        return conversation is not None and is_participant(conversation, actor)

    # =========================================================================
    # НАЧАЛО БЕСЕДЫ
    # =========================================================================

    async def start_conversation(
        self,
        actor: TokenPayload,
        car_id: Optional[str],
    ) -> tuple[Conversation, Optional[ChatMessage]]:
        """
        Находит или создаёт беседу пользователя с салоном автомобиля.
        Карточка автомобиля публикуется в беседе один раз.
        """
        if not car_id:
            raise ValidationError("Missing carId")

        car = await self._cars.get_by_id(parse_uuid(car_id, "Invalid carId"))
        if car is None:
            raise NotFoundError("Car not found")
        if car.adminid == actor.user_id:
            raise ValidationError("Cannot chat with your own car")

        room = await self._rooms.get_by_id(car.roomid)
        if room is None:
            raise NotFoundError("Room not found or inaccessible")
        if not room.is_active:
            raise ValidationError("This showroom is not active")
        if room.adminid == actor.user_id:
            raise ValidationError("Cannot chat in your own showroom")

        conversation = await self._repo.get_or_create_conversation(room.id, actor.user_id)
        conversation.room_adminid = room.adminid

        message = await self._repo.find_car_message(conversation.id, car.id)
        if message is not None:
            return conversation, message

        car_details = {
            "id": car.id,
            "title": car.title,
            "brand": car.brand,
            "model": car.model,
            "year": car.year,
            "price": car.price,
            "images": car.images,
            "description": car.description,
            "room_name": room.name,
        }
        message = await self._repo.insert_message(
            conversation.id,
            actor.user_id,
            f"User is interested in {car.title}",
            MessageType.CAR_DETAILS,
            car_details=car_details,
            car_reference_id=car.id,
        )
        await self._repo.touch(conversation.id, increment_unread=False)
        await log_info(f"Беседа {conversation.id}: интерес к автомобилю {car.id}", type_msg=TypeMsg.DEBUG)
        await self._announce_message(conversation, message, actor)
        return conversation, message

    # =========================================================================
    # СООБЩЕНИЯ
    # =========================================================================

    async def get_messages(self, actor: TokenPayload, conversation_id: Optional[str]) -> list[ChatMessage]:
        """Сообщения по возрастанию времени; чужие помечаются прочитанными."""
        conversation = await self._get_conversation(conversation_id)
        if not is_participant(conversation, actor):
            raise AuthorizationError("Unauthorized to access this conversation")

        messages = await self._repo.list_messages(conversation.id)
        await self._repo.mark_read(conversation.id, actor.user_id)

        if actor.user_id == conversation.userid:
            await self._repo.reset_unread(conversation.id)
            self._notifier.queue_realtime(
                user_channel(actor.user_id),
                RealtimeEvent.UNREAD_COUNT_UPDATE.value,
                {"conversationId": conversation.id, "count": 0},
            )
        return messages

    async def send_message(
        self,
        actor: TokenPayload,
        conversation_id: Optional[str],
        text: Optional[str],
        message_type: Optional[str] = None,
        file_url: Optional[str] = None,
    ) -> ChatMessage:
        conversation = await self._get_conversation(conversation_id)
        try:
            kind = MessageType(message_type or MessageType.TEXT.value)
        except ValueError:
            raise ValidationError("Invalid message type")
        if not (text or "").strip() and not file_url:
            raise ValidationError("Message content is required")
        if not is_participant(conversation, actor):
            raise AuthorizationError("Unauthorized to send message in this conversation")

        message = await self._repo.insert_message(
            conversation.id,
            actor.user_id,
            (text or "").strip(),
            kind,
            file_url=file_url,
        )
        unread = await self._repo.touch(
            conversation.id, increment_unread=actor.user_id != conversation.userid
        )
        await self._announce_message(conversation, message, actor, unread)
        return message

    async def _announce_message(
        self,
        conversation: Conversation,
        message: ChatMessage,
        actor: TokenPayload,
        unread_count: Optional[int] = None,
    ) -> None:
        """Realtime-события, уведомление и push остальным участникам."""
        try:
            sender = await self._users.get_by_id(actor.user_id)
        except Exception as e:
            await log_error(f"Не удалось загрузить отправителя {actor.user_id}: {e}")
            sender = None

        sender_info: dict[str, Any] = (
            {"id": sender.id, "username": sender.username, "role": sender.role.value}
            if sender is not None
            else {"id": actor.user_id}
        )
        channel = chat_channel(conversation.id)
        message_data = message.model_dump(mode="json")

        self._notifier.queue_realtime(
            channel,
            RealtimeEvent.NEW_MESSAGE.value,
            {
                "message": message_data,
                "sender": sender_info,
                "conversationId": conversation.id,
                "timestamp": _now_iso(),
            },
        )
        self._notifier.queue_realtime(
            channel,
            RealtimeEvent.MESSAGE_DELIVERED.value,
            {"messageId": message.id, "conversationId": conversation.id, "timestamp": _now_iso()},
        )

        sender_name = sender_info.get("username") or "a user"
        for recipient_id in conversation.participants():
            if recipient_id == actor.user_id:
                continue
            await self._notifier.notify(
                recipient_id,
                NotificationType.MESSAGE.value,
                f"New message from {sender_name}",
                message.message[:200] or "Sent an attachment",
                {"conversationId": conversation.id, "messageId": message.id},
            )
            if recipient_id == conversation.userid and unread_count is not None:
                self._notifier.queue_realtime(
                    user_channel(recipient_id),
                    RealtimeEvent.UNREAD_COUNT_UPDATE.value,
                    {"conversationId": conversation.id, "count": unread_count},
                )

    async def set_typing(self, actor: TokenPayload, conversation_id: Optional[str], is_typing: Any) -> bool:
        conversation = await self._get_conversation(conversation_id)
        if not is_participant(conversation, actor):
            raise AuthorizationError("Unauthorized to send typing indicator")

        typing = bool(is_typing)
        self._notifier.queue_realtime(
            chat_channel(conversation.id),
            RealtimeEvent.TYPING_STATUS.value,
            {"userId": actor.user_id, "isTyping": typing, "conversationId": conversation.id},
        )
        return typing

    # =========================================================================
    # СПИСКИ И УДАЛЕНИЕ
    # =========================================================================

    async def list_conversations(self, actor: TokenPayload, view_type: Optional[str]) -> list[Conversation]:
        """
        Список бесед для указанного представления. По умолчанию
        представление совпадает с ролью.
        """
        try:
            view = ViewType(view_type or actor.role.value)
        except ValueError:
            raise ValidationError("Invalid viewType")

        if view == ViewType.SUPERADMIN:
            if actor.role != UserRole.SUPERADMIN:
                raise AuthorizationError("Access denied")
            return await self._repo.list_all()
        if view == ViewType.ADMIN:
            if actor.role not in (UserRole.ADMIN, UserRole.SUPERADMIN):
                raise AuthorizationError("Access denied")
            return await self._repo.list_for_room_admin(actor.user_id)
        return await self._repo.list_for_user(actor.user_id)

    async def delete_conversation(self, actor: TokenPayload, conversation_id: Optional[str]) -> None:
        conversation = await self._get_conversation(conversation_id)
        is_room_admin = actor.role == UserRole.ADMIN and conversation.room_adminid == actor.user_id
        if actor.role != UserRole.SUPERADMIN and not is_room_admin:
            raise AuthorizationError("Unauthorized to delete this conversation")

        await self._repo.delete_conversation(conversation.id)
        await log_info(f"Беседа {conversation.id} удалена", type_msg=TypeMsg.INFO)
