# src/secure_whisper/api/endpoints/realtime.py
"""WebSocket endpoint feeding the fan-out hub."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, WebSocket, status
from starlette.websockets import WebSocketState

from secure_whisper.api.dependencies import get_session_tokens
from secure_whisper.core.errors import AuthError
from secure_whisper.core.settings import settings
from secure_whisper.services.chat_id import is_participant
from secure_whisper.services.hub import FanoutHub

router = APIRouter(tags=["realtime"])

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """Adapts a Starlette WebSocket to the hub's transport protocol."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket, token: str | None = Query(None)) -> None:
    """Duplex channel: clients subscribe to chats and receive new messages."""
    try:
        identity = get_session_tokens().verify(token)
    except AuthError as err:
        logger.info("Rejected WebSocket connection: %s", err.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    hub: FanoutHub = websocket.app.state.hub
    connection = hub.connect(WebSocketTransport(websocket))

    def can_subscribe(chat_id: str) -> bool:
        return not settings.enforce_chat_membership or is_participant(chat_id, identity.id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            hub.handle_frame(connection, raw, can_subscribe=can_subscribe)
    finally:
        hub.disconnect(connection)
