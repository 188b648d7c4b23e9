"""Symmetric friendship graph."""
from __future__ import annotations

import logging

from secure_whisper.core.errors import NotFoundError, ValidationError
from secure_whisper.repositories.storage import FriendRecord, Storage

__all__ = ["FriendshipService"]

logger = logging.getLogger(__name__)


class FriendshipService:
    """Creates and lists friendships stored as pairs of directed edges."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def add_friend(self, owner_id: int, identifier: str) -> FriendRecord:
        """Befriend the user named by ``identifier`` (username or email).

        Adding an existing friend succeeds without creating new edges.

        Raises:
            ValidationError: If ``identifier`` is empty or names the caller.
            NotFoundError: If no user matches ``identifier``.
        """
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("username or email required")

        target = self.storage.find_user_by_identifier(identifier)
        if target is None:
            raise NotFoundError("User not found")
        if target.id == owner_id:
            raise ValidationError("Cannot add yourself")

        if self.storage.insert_friend_edge(owner_id, target.id):
            logger.info("Friendship created: %s <-> %s", owner_id, target.id)
        return FriendRecord(id=target.id, username=target.username)

    def list_friends(self, owner_id: int) -> list[FriendRecord]:
        """Return the public profiles of everyone ``owner_id`` is friends with."""
        return self.storage.list_friends_of(owner_id)
