# src/secure_whisper/services/__init__.py
"""Business logic services for the Secure Whisper application.

Only storage-independent services are re-exported here: settings validation
imports the codec, so this module must not pull in the ORM layer.
"""

from .chat_id import chat_id, chat_participants, is_participant
from .codec import MessageCodec, decode_encryption_key
from .hub import FanoutHub
from .revocation import TokenRevocationList

__all__ = [
    "FanoutHub",
    "MessageCodec",
    "TokenRevocationList",
    "chat_id",
    "chat_participants",
    "decode_encryption_key",
    "is_participant",
]
