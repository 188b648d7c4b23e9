# src/secure_whisper/services/message_store.py
"""Encrypted, append-only storage of chat messages.

The store seals every message body with the :class:`MessageCodec` before it
reaches :class:`Storage`, and opens it again on the way out. After an append
has been committed the plaintext view is handed to a publisher (the fan-out
hub) for live delivery.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from secure_whisper.core.errors import DecryptionError, ValidationError
from secure_whisper.repositories.storage import MessageRecord, Storage
from secure_whisper.services.codec import MessageCodec

__all__ = ["DeliveredMessage", "MessagePublisher", "MessageStore"]

logger = logging.getLogger(__name__)


class MessagePublisher(Protocol):
    """Receiver of committed messages."""

    def broadcast(self, chat_id: str, message: Mapping[str, Any]) -> int:
        """Deliver ``message`` to live subscribers of ``chat_id``."""
        ...


@dataclass(frozen=True)
class DeliveredMessage:
    """Plaintext view of a stored message."""

    id: int
    chat_id: str
    sender_id: int
    content: str
    created_at: datetime

    def to_payload(self) -> dict[str, Any]:
        """Serialize into the JSON shape used by the API and the live channel."""
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "sender_id": self.sender_id,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }


class MessageStore:
    """Persists messages encrypted at rest and serves decrypted history."""

    def __init__(
        self,
        storage: Storage,
        codec: MessageCodec,
        publisher: MessagePublisher | None = None,
    ) -> None:
        self.storage = storage
        self.codec = codec
        self.publisher = publisher

    def _open(self, record: MessageRecord) -> DeliveredMessage:
        plaintext = self.codec.decrypt(record.ciphertext, record.iv)
        try:
            content = plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionError("Decrypted content is not valid UTF-8") from err
        return DeliveredMessage(
            id=record.id,
            chat_id=record.chat_id,
            sender_id=record.sender_id,
            content=content,
            created_at=record.created_at,
        )

    def append(self, chat_id: str, sender_id: int, plaintext: str) -> DeliveredMessage:
        """Encrypt and persist a message, then publish it.

        The message is published only after storage has committed it.

        Raises:
            ValidationError: If ``chat_id`` or ``plaintext`` is empty.
            InternalError: If storage or the codec fails.
        """
        if not chat_id or not plaintext:
            raise ValidationError("chatId and content required")

        ciphertext, iv = self.codec.encrypt(plaintext.encode("utf-8"))
        record = self.storage.insert_message(chat_id, sender_id, ciphertext, iv)
        message = DeliveredMessage(
            id=record.id,
            chat_id=record.chat_id,
            sender_id=record.sender_id,
            content=plaintext,
            created_at=record.created_at,
        )

        if self.publisher is not None:
            delivered = self.publisher.broadcast(chat_id, message.to_payload())
            logger.debug("Message %s delivered to %d connection(s)", message.id, delivered)
        return message

    def history(self, chat_id: str) -> list[DeliveredMessage]:
        """Return the decrypted messages of ``chat_id`` in append order.

        Records that fail decryption are logged and skipped so that one corrupt
        row does not hide the rest of the conversation.
        """
        if not chat_id:
            raise ValidationError("chatId query required")

        messages: list[DeliveredMessage] = []
        for record in self.storage.list_messages_by_chat(chat_id):
            try:
                messages.append(self._open(record))
            except DecryptionError as err:
                logger.warning(
                    "Skipping message %s in %s: %s", record.id, record.chat_id, err.message
                )
        return messages

    def clear(self, chat_id: str) -> int:
        """Delete every message of ``chat_id`` and return how many were removed."""
        if not chat_id:
            raise ValidationError("chatId required")
        removed = self.storage.delete_messages_by_chat(chat_id)
        logger.info("Cleared %d message(s) from %s", removed, chat_id)
        return removed
