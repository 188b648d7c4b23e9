# src/secure_whisper/api/__init__.py
"""HTTP and WebSocket API."""

from .endpoints import auth_router, friends_router, messages_router, realtime_router

__all__ = [
    "auth_router",
    "friends_router",
    "messages_router",
    "realtime_router",
]
