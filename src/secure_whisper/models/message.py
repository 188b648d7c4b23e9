# src/secure_whisper/models/message.py
"""Models describing encrypted chat messages."""

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_whisper.db.session import Base
from secure_whisper.db.time import utcnow


class ChatMessage(Base):
    """Message sealed with the server key.

    Only the AES-GCM ciphertext (tag appended) and its IV are stored; the
    plaintext never reaches the database. The autoincrement ``id`` is the
    authoritative order within a chat, ``created_at`` is informational.
    """

    __tablename__ = "chat_message"
    __table_args__ = (Index("ix_chat_message_chat_id_id", "chat_id", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[str] = mapped_column(String(255), nullable=False)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)

    # Base64 of ciphertext||tag and of the 12-byte IV, kept in separate columns.
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    iv: Mapped[str] = mapped_column(String(32), nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
