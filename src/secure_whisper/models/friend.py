# src/secure_whisper/models/friend.py
"""Directed friendship edges."""

from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from secure_whisper.db.session import Base


class FriendEdge(Base):
    """One direction of a friendship; every friendship is stored as two edges."""

    __tablename__ = "friend_edge"
    __table_args__ = (UniqueConstraint("owner_id", "friend_id", name="uq_friend_edge_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False, index=True
    )
    friend_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
