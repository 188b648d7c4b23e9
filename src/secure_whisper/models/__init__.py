# src/secure_whisper/models/__init__.py
"""SQLAlchemy models for the Secure Whisper service."""

from .friend import FriendEdge
from .message import ChatMessage
from .user import User

__all__ = [
    "ChatMessage",
    "FriendEdge",
    "User",
]
