# src/core/chats/repository.py
"""
Репозиторий чата.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import MessageStatus, MessageType
from src.core.chats.models import ChatMessage, Conversation
from src.infra.database import DatabaseManager

_MESSAGE_COLUMNS = """
    id, conversation_id, senderid, message, message_type, car_details, car_reference_id,
    file_url, status, is_read, created_at
"""

_CONVERSATION_COLUMNS = """
    id, roomid, userid, last_message_at, is_active, unread_count, created_at, updated_at
"""

_SELECT_CONVERSATIONS = """
    SELECT cc.id, cc.roomid, cc.userid, cc.last_message_at, cc.is_active, cc.unread_count,
           cc.created_at, cc.updated_at,
           r.adminid AS room_adminid,
           json_build_object('id', r.id, 'name', r.name, 'image', r.image, 'adminid', r.adminid) AS room,
           json_build_object(
               'id', u.id, 'username', u.username, 'email', u.email, 'profile_image', u.profile_image
           ) AS "user",
           (
               SELECT json_build_object(
                   'message', m.message, 'message_type', m.message_type,
                   'senderid', m.senderid, 'created_at', m.created_at
               )
               FROM chat_messages m
               WHERE m.conversation_id = cc.id
               ORDER BY m.created_at DESC
               LIMIT 1
           ) AS last_message
    FROM chat_conversations cc
    JOIN rooms r ON r.id = cc.roomid
    JOIN users u ON u.id = cc.userid
"""


class ChatRepository:
    """Доступ к таблицам chat_conversations и chat_messages."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    # =========================================================================
    # БЕСЕДЫ
    # =========================================================================

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        row = await self._db.fetchrow(f"{_SELECT_CONVERSATIONS} WHERE cc.id = $1", conversation_id)
        return Conversation(**dict(row)) if row else None

    async def get_or_create_conversation(self, room_id: str, user_id: str) -> Conversation:
        """
        Возвращает беседу пары (салон, пользователь), создавая её при необходимости.
        Уникальный ключ защищает от дублей при параллельных запросах.
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO chat_conversations (roomid, userid)
            VALUES ($1, $2)
            ON CONFLICT (roomid, userid) DO UPDATE SET is_active = TRUE
            RETURNING {_CONVERSATION_COLUMNS}
            """,
            room_id,
            user_id,
        )
        return Conversation(**dict(row))

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        rows = await self._db.fetch(
            f"{_SELECT_CONVERSATIONS} WHERE cc.userid = $1 ORDER BY cc.last_message_at DESC",
            user_id,
        )
        return [Conversation(**dict(row)) for row in rows]

    async def list_for_room_admin(self, admin_id: str) -> list[Conversation]:
        rows = await self._db.fetch(
            f"{_SELECT_CONVERSATIONS} WHERE r.adminid = $1 ORDER BY cc.last_message_at DESC",
            admin_id,
        )
        return [Conversation(**dict(row)) for row in rows]

    async def list_all(self) -> list[Conversation]:
        rows = await self._db.fetch(f"{_SELECT_CONVERSATIONS} ORDER BY cc.last_message_at DESC")
        return [Conversation(**dict(row)) for row in rows]

    async def touch(self, conversation_id: str, increment_unread: bool) -> int:
        """
        Обновляет last_message_at; счётчик непрочитанных считает сообщения
        для пользователя беседы.

        Returns:
            Текущее значение unread_count
        """
        count = await self._db.fetchval(
            """
            UPDATE chat_conversations
            SET last_message_at = NOW(),
                updated_at = NOW(),
                unread_count = unread_count + CASE WHEN $2 THEN 1 ELSE 0 END
            WHERE id = $1
            RETURNING unread_count
            """,
            conversation_id,
            increment_unread,
        )
        return int(count or 0)

    async def reset_unread(self, conversation_id: str) -> None:
        await self._db.execute(
            "UPDATE chat_conversations SET unread_count = 0 WHERE id = $1",
            conversation_id,
        )

    async def delete_conversation(self, conversation_id: str) -> bool:
        deleted = await self._db.fetchval(
            "DELETE FROM chat_conversations WHERE id = $1 RETURNING id",
            conversation_id,
        )
        return deleted is not None

    # =========================================================================
    # СООБЩЕНИЯ
    # =========================================================================

    async def find_car_message(self, conversation_id: str, car_id: str) -> Optional[ChatMessage]:
        row = await self._db.fetchrow(
            f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM chat_messages
            WHERE conversation_id = $1 AND message_type = $2 AND car_reference_id = $3
            LIMIT 1
            """,
            conversation_id,
            MessageType.CAR_DETAILS.value,
            car_id,
        )
        return ChatMessage(**dict(row)) if row else None

    async def insert_message(
        self,
        conversation_id: str,
        sender_id: str,
        message: str,
        message_type: MessageType = MessageType.TEXT,
        car_details: Optional[dict[str, Any]] = None,
        car_reference_id: Optional[str] = None,
        file_url: Optional[str] = None,
    ) -> ChatMessage:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO chat_messages (
                conversation_id, senderid, message, message_type, car_details,
                car_reference_id, file_url, status
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING {_MESSAGE_COLUMNS}
            """,
            conversation_id,
            sender_id,
            message,
            message_type.value,
            car_details,
            car_reference_id,
            file_url,
            MessageStatus.DELIVERED.value,
        )
        return ChatMessage(**dict(row))

    async def list_messages(self, conversation_id: str) -> list[ChatMessage]:
        rows = await self._db.fetch(
            """
            SELECT m.id, m.conversation_id, m.senderid, m.message, m.message_type, m.car_details,
                   m.car_reference_id, m.file_url, m.status, m.is_read, m.created_at,
                   json_build_object('id', u.id, 'username', u.username, 'role', u.role) AS sender
            FROM chat_messages m
            JOIN users u ON u.id = m.senderid
            WHERE m.conversation_id = $1
            ORDER BY m.created_at ASC
            """,
            conversation_id,
        )
        return [ChatMessage(**dict(row)) for row in rows]

    async def mark_read(self, conversation_id: str, reader_id: str) -> int:
        """Отмечает прочитанными чужие сообщения беседы."""
        status = await self._db.execute(
            """
            UPDATE chat_messages
            SET is_read = TRUE, status = $3
            WHERE conversation_id = $1 AND senderid <> $2 AND is_read = FALSE
            """,
            conversation_id,
            reader_id,
            MessageStatus.READ.value,
        )
        return int(status.split()[-1]) if status else 0
