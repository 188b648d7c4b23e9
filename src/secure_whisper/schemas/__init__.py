# src/secure_whisper/schemas/__init__.py
"""Pydantic schemas for the Secure Whisper API."""

from .friend import AddFriendRequest, FriendListResponse, FriendResponse, FriendSummary
from .message import (
    ClearChatRequest,
    ClearChatResponse,
    MessageCreate,
    MessageListResponse,
    MessageOut,
    MessageResponse,
)
from .user import AuthResponse, LoginRequest, MeResponse, RegisterRequest, UserOut

__all__ = [
    "AddFriendRequest",
    "AuthResponse",
    "ClearChatRequest",
    "ClearChatResponse",
    "FriendListResponse",
    "FriendResponse",
    "FriendSummary",
    "LoginRequest",
    "MeResponse",
    "MessageCreate",
    "MessageListResponse",
    "MessageOut",
    "MessageResponse",
    "RegisterRequest",
    "UserOut",
]
