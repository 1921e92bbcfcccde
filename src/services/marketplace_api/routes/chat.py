# src/services/marketplace_api/routes/chat.py
"""
Чат пользователя с салоном.

Endpoints:
- POST /v2/chat/start-conversation - начать беседу по автомобилю
- GET /v2/chat - сообщения беседы или список бесед
- POST /v2/chat - отправить сообщение
- POST /v2/chat/typing - индикатор набора текста
- DELETE /v2/chat - удалить беседу
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.core.chats import ChatService
from src.services.marketplace_api.dependencies import CurrentUser, get_chat_service

router = APIRouter(prefix="/v2/chat", tags=["Chat"])

Chats = Annotated[ChatService, Depends(get_chat_service)]


class StartConversationRequest(BaseModel):
    car_id: Optional[str] = Field(None, alias="carId")

    model_config = {"populate_by_name": True}


class SendMessageRequest(BaseModel):
    conversation_id: Optional[str] = Field(None, alias="conversationId")
    message: Optional[str] = None
    message_type: Optional[str] = Field(None, alias="messageType")
    file_url: Optional[str] = Field(None, alias="fileUrl")

    model_config = {"populate_by_name": True}


class TypingRequest(BaseModel):
    conversation_id: Optional[str] = Field(None, alias="conversationId")
    is_typing: Any = Field(False, alias="isTyping")

    model_config = {"populate_by_name": True}


@router.post("/start-conversation", status_code=201)
async def start_conversation(
    request: StartConversationRequest,
    actor: CurrentUser,
    service: Chats,
) -> dict[str, Any]:
    conversation, message = await service.start_conversation(actor, request.car_id)
    return {
        "message": "Conversation started successfully",
        "conversationId": conversation.id,
        "newMessage": message.model_dump(mode="json") if message else None,
    }


@router.get("")
async def get_chat(
    actor: CurrentUser,
    service: Chats,
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
    view_type: Optional[str] = Query(default=None, alias="viewType"),
) -> dict[str, Any]:
    """С conversationId возвращает сообщения беседы, без него список бесед."""
    if conversation_id:
        messages = await service.get_messages(actor, conversation_id)
        return {"messages": [m.model_dump(mode="json") for m in messages]}

    conversations = await service.list_conversations(actor, view_type)
    return {"conversations": [c.model_dump(mode="json") for c in conversations]}


@router.post("", status_code=201)
async def send_message(
    request: SendMessageRequest,
    actor: CurrentUser,
    service: Chats,
) -> dict[str, Any]:
    message = await service.send_message(
        actor,
        request.conversation_id,
        request.message,
        message_type=request.message_type,
        file_url=request.file_url,
    )
    return {"message": "Message sent successfully", "data": message.model_dump(mode="json")}


@router.post("/typing")
async def typing(request: TypingRequest, actor: CurrentUser, service: Chats) -> dict[str, Any]:
    is_typing = await service.set_typing(actor, request.conversation_id, request.is_typing)
    return {"success": True, "isTyping": is_typing}


@router.delete("")
async def delete_conversation(
    actor: CurrentUser,
    service: Chats,
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
) -> dict[str, Any]:
    await service.delete_conversation(actor, conversation_id)
    return {"message": "Conversation deleted successfully"}
