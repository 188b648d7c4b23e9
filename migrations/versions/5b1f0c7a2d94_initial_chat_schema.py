"""initial chat schema

Revision ID: 5b1f0c7a2d94
Revises:
Create Date: 2026-10-18 09:12:40.511236

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1f0c7a2d94"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, friend edges and encrypted messages."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "friend_edge",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("user_account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "friend_id",
            sa.Integer(),
            sa.ForeignKey("user_account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("owner_id", "friend_id", name="uq_friend_edge_pair"),
    )
    op.create_index("ix_friend_edge_owner_id", "friend_edge", ["owner_id"])

    op.create_table(
        "chat_message",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("chat_id", sa.String(length=255), nullable=False),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("ciphertext", sa.Text(), nullable=False),
        sa.Column("iv", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_chat_message_chat_id_id", "chat_message", ["chat_id", "id"])


def downgrade() -> None:
    """Drop the chat schema."""
    op.drop_index("ix_chat_message_chat_id_id", table_name="chat_message")
    op.drop_table("chat_message")
    op.drop_index("ix_friend_edge_owner_id", table_name="friend_edge")
    op.drop_table("friend_edge")
    op.drop_table("user_account")
