"""initial schema

Revision ID: 5b2f9c1d7e40
Revises:
Create Date: 2026-10-17 09:12:44.218305

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b2f9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, conversations, memberships and messages."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("public_key", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_user_account_username"), "user_account", ["username"], unique=True
    )

    op.create_table(
        "conversation",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "type",
            sa.Enum("DIRECT", "GROUP", name="conversationtype", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("user_a_id", sa.Integer(), nullable=True),
        sa.Column("user_b_id", sa.Integer(), nullable=True),
        sa.Column("group_name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_a_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["user_b_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_conversation_user_a_id"), "conversation", ["user_a_id"])
    op.create_index(op.f("ix_conversation_user_b_id"), "conversation", ["user_b_id"])
    op.create_index(
        "ix_conversation_direct_pair", "conversation", ["type", "user_a_id", "user_b_id"]
    )

    op.create_table(
        "conversation_member",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversation.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_member"),
    )
    op.create_index(
        op.f("ix_conversation_member_conversation_id"), "conversation_member", ["conversation_id"]
    )
    op.create_index(op.f("ix_conversation_member_user_id"), "conversation_member", ["user_id"])

    op.create_table(
        "message",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("ciphertext_message", sa.Text(), nullable=False),
        sa.Column("encrypted_session_key", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_seconds", sa.Integer(), nullable=True),
        sa.Column("hard_delete_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversation.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_message_conversation_id"), "message", ["conversation_id"])
    op.create_index(op.f("ix_message_sender_id"), "message", ["sender_id"])
    op.create_index(op.f("ix_message_sent_at"), "message", ["sent_at"])
    op.create_index(op.f("ix_message_hard_delete_at"), "message", ["hard_delete_at"])
    op.create_index(op.f("ix_message_deleted_at"), "message", ["deleted_at"])
    op.create_index(
        "ix_message_conversation_sent_at", "message", ["conversation_id", "sent_at"]
    )


def downgrade() -> None:
    """Drop every table created in upgrade."""
    op.drop_table("message")
    op.drop_table("conversation_member")
    op.drop_table("conversation")
    op.drop_index(op.f("ix_user_account_username"), table_name="user_account")
    op.drop_table("user_account")
