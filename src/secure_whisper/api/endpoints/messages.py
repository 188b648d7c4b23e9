# src/secure_whisper/api/endpoints/messages.py
"""Chat message endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from secure_whisper.api.dependencies import CurrentIdentityDep, MessageStoreDep, ensure_participant
from secure_whisper.core.errors import ValidationError
from secure_whisper.schemas.message import (
    ClearChatRequest,
    ClearChatResponse,
    MessageCreate,
    MessageListResponse,
    MessageOut,
    MessageResponse,
)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=MessageResponse)
async def send_message(
    payload: MessageCreate,
    identity: CurrentIdentityDep,
    store: MessageStoreDep,
) -> MessageResponse:
    """Encrypt, store and fan out a message to the chat's live subscribers."""
    ensure_participant(payload.chat_id, identity)
    message = store.append(payload.chat_id, identity.id, payload.content)
    return MessageResponse(message=MessageOut(**message.to_payload()))


@router.get("", response_model=MessageListResponse)
async def get_messages(
    identity: CurrentIdentityDep,
    store: MessageStoreDep,
    chat_id: str | None = Query(None, alias="chatId"),
) -> MessageListResponse:
    """Return the decrypted history of a chat, oldest first."""
    if not chat_id:
        raise ValidationError("chatId query required")
    ensure_participant(chat_id, identity)
    messages = store.history(chat_id)
    return MessageListResponse(messages=[MessageOut(**m.to_payload()) for m in messages])


@router.delete("/clear", response_model=ClearChatResponse)
async def clear_messages(
    payload: ClearChatRequest,
    identity: CurrentIdentityDep,
    store: MessageStoreDep,
) -> ClearChatResponse:
    """Remove every message of a chat."""
    ensure_participant(payload.chat_id, identity)
    return ClearChatResponse(deleted=store.clear(payload.chat_id))
