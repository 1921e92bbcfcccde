# src/core/realtime/service.py
"""
Авторизация подписок на приватные realtime-каналы.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import TypeMsg
from src.common.errors import AuthorizationError, ValidationError
from src.common.logger import log_info, log_warning
from src.core.auth.tokens import TokenPayload
from src.core.chats.service import ChatService
from src.core.realtime.channels import CHAT_PREFIX, parse_channel
from src.core.realtime.signing import build_auth
from src.shared.models.common import parse_uuid


class RealtimeAuthService:
    """
    Выдаёт подпись подписки, если канал принадлежит вызывающему:
    notification-{id} и user-{id} только при id == userId,
    chat-{id} только участникам беседы.
    """

    def __init__(self, chats: ChatService, key: str, secret: str) -> None:
        self._chats = chats
        self._key = key
        self._secret = secret

    async def can_subscribe(self, actor: TokenPayload, channel_name: str) -> bool:
        parsed = parse_channel(channel_name)
        if parsed is None:
            return False

        prefix, entity_id = parsed
        if prefix != CHAT_PREFIX:
            return entity_id == actor.user_id

        try:
            conversation_id = parse_uuid(entity_id)
        except ValidationError:
            return False
        return await self._chats.can_access(conversation_id, actor)

    async def authorize(
        self,
        actor: TokenPayload,
        socket_id: Optional[str],
        channel_name: Optional[str],
    ) -> str:
        """
        Returns:
            Строка auth '<key>:<signature>'

        Raises:
            ValidationError: Нет socket_id или channel_name
            AuthorizationError: Канал чужой
        """
        if not socket_id or not channel_name:
            raise ValidationError("Missing required parameters")

        if not await self.can_subscribe(actor, channel_name):
            await log_warning(f"Отказ в подписке {actor.user_id} на {channel_name}")
            raise AuthorizationError("Access denied")

        await log_info(f"Подписка {actor.user_id} на {channel_name}", type_msg=TypeMsg.DEBUG)
        return build_auth(self._key, self._secret, socket_id, channel_name)
