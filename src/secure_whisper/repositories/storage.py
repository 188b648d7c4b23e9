"""Storage capability used by the chat services.

Services depend on the :class:`Storage` protocol only. The SQLAlchemy-backed
:class:`SqlAlchemyStorage` is the implementation wired in by the API layer; any
other backend (a document store, an in-memory fake) only has to return the
plain records defined here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from secure_whisper.core.errors import ConflictError, InternalError
from secure_whisper.db.time import as_utc
from secure_whisper.models import ChatMessage, FriendEdge, User

__all__ = [
    "FriendRecord",
    "MessageRecord",
    "SqlAlchemyStorage",
    "Storage",
    "UserRecord",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    """Stored account, including the password hash."""

    id: int
    username: str
    email: str | None
    password_hash: str


@dataclass(frozen=True)
class MessageRecord:
    """Stored message; ``ciphertext`` and ``iv`` are base64 strings."""

    id: int
    chat_id: str
    sender_id: int
    ciphertext: str
    iv: str
    created_at: datetime


@dataclass(frozen=True)
class FriendRecord:
    """Public profile of the target of a friend edge."""

    id: int
    username: str


class Storage(Protocol):
    """Durable record store for users, messages and friend edges."""

    def create_user(self, username: str, email: str | None, password_hash: str) -> UserRecord:
        """Insert a user; raise ConflictError if username or email is taken."""
        ...

    def find_user_by_identifier(self, identifier: str) -> UserRecord | None:
        """Return the user whose username or email equals ``identifier``."""
        ...

    def insert_message(self, chat_id: str, sender_id: int, ciphertext: str, iv: str) -> MessageRecord:
        """Durably append a message and return it with its assigned id."""
        ...

    def list_messages_by_chat(self, chat_id: str) -> list[MessageRecord]:
        """Return every message of ``chat_id`` ordered by id ascending."""
        ...

    def delete_messages_by_chat(self, chat_id: str) -> int:
        """Remove every message of ``chat_id`` and return how many were removed."""
        ...

    def insert_friend_edge(self, owner_id: int, friend_id: int) -> bool:
        """Ensure both directed edges exist; return True if any edge was created."""
        ...

    def list_friends_of(self, owner_id: int) -> list[FriendRecord]:
        """Return the targets of every edge leaving ``owner_id``."""
        ...


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        email=user.email,
        password_hash=user.password_hash,
    )


def _message_record(message: ChatMessage) -> MessageRecord:
    return MessageRecord(
        id=message.id,
        chat_id=message.chat_id,
        sender_id=message.sender_id,
        ciphertext=message.ciphertext,
        iv=message.iv,
        created_at=as_utc(message.created_at),
    )


class SqlAlchemyStorage:
    """Relational implementation of :class:`Storage` over a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        """Initialize the storage with a SQLAlchemy session."""
        self.session = session

    def _fail(self, operation: str, err: SQLAlchemyError) -> InternalError:
        self.session.rollback()
        logger.error("Storage failure during %s: %s", operation, err, exc_info=True)
        return InternalError(f"Storage failure during {operation}")

    def create_user(self, username: str, email: str | None, password_hash: str) -> UserRecord:
        user = User(username=username, email=email, password_hash=password_hash)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise ConflictError("Username or email already exists") from err
        except SQLAlchemyError as err:
            raise self._fail("create_user", err) from err
        self.session.refresh(user)
        return _user_record(user)

    def find_user_by_identifier(self, identifier: str) -> UserRecord | None:
        try:
            user = self.session.scalars(
                select(User).where(or_(User.username == identifier, User.email == identifier))
            ).first()
        except SQLAlchemyError as err:
            raise self._fail("find_user_by_identifier", err) from err
        return _user_record(user) if user is not None else None

    def insert_message(self, chat_id: str, sender_id: int, ciphertext: str, iv: str) -> MessageRecord:
        message = ChatMessage(chat_id=chat_id, sender_id=sender_id, ciphertext=ciphertext, iv=iv)
        self.session.add(message)
        try:
            self.session.commit()
            self.session.refresh(message)
        except SQLAlchemyError as err:
            raise self._fail("insert_message", err) from err
        return _message_record(message)

    def list_messages_by_chat(self, chat_id: str) -> list[MessageRecord]:
        try:
            rows = self.session.scalars(
                select(ChatMessage)
                .where(ChatMessage.chat_id == chat_id)
                .order_by(ChatMessage.id.asc())
            ).all()
        except SQLAlchemyError as err:
            raise self._fail("list_messages_by_chat", err) from err
        return [_message_record(row) for row in rows]

    def delete_messages_by_chat(self, chat_id: str) -> int:
        try:
            result = self.session.execute(delete(ChatMessage).where(ChatMessage.chat_id == chat_id))
            self.session.commit()
        except SQLAlchemyError as err:
            raise self._fail("delete_messages_by_chat", err) from err
        return int(result.rowcount or 0)

    def _missing_edges(self, owner_id: int, friend_id: int) -> list[tuple[int, int]]:
        wanted = {(owner_id, friend_id), (friend_id, owner_id)}
        existing = self.session.execute(
            select(FriendEdge.owner_id, FriendEdge.friend_id).where(
                or_(
                    (FriendEdge.owner_id == owner_id) & (FriendEdge.friend_id == friend_id),
                    (FriendEdge.owner_id == friend_id) & (FriendEdge.friend_id == owner_id),
                )
            )
        ).all()
        return sorted(wanted - {(row[0], row[1]) for row in existing})

    def insert_friend_edge(self, owner_id: int, friend_id: int) -> bool:
        try:
            missing = self._missing_edges(owner_id, friend_id)
            if not missing:
                return False
            self.session.add_all(FriendEdge(owner_id=a, friend_id=b) for a, b in missing)
            self.session.commit()
        except IntegrityError:
            # A concurrent request inserted the same pair first; the edges now exist.
            self.session.rollback()
            logger.debug("Friend edge %s<->%s inserted concurrently", owner_id, friend_id)
            return False
        except SQLAlchemyError as err:
            raise self._fail("insert_friend_edge", err) from err
        return True

    def list_friends_of(self, owner_id: int) -> list[FriendRecord]:
        try:
            rows = self.session.execute(
                select(User.id, User.username)
                .join(FriendEdge, FriendEdge.friend_id == User.id)
                .where(FriendEdge.owner_id == owner_id)
                .order_by(User.username.asc())
            ).all()
        except SQLAlchemyError as err:
            raise self._fail("list_friends_of", err) from err
        return [FriendRecord(id=row[0], username=row[1]) for row in rows]
