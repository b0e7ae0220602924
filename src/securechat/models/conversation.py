# src/securechat/models/conversation.py
"""Models describing conversations and group membership."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from securechat.db.session import Base
from securechat.db.time import utcnow


class ConversationType(str, enum.Enum):
    """Conversation variants."""

    DIRECT = "direct"
    GROUP = "group"


class Conversation(Base):
    """A direct pair or a named group.

    Direct conversations set `user_a_id` / `user_b_id`; group conversations set
    `group_name` and track members in `conversation_member`.
    """

    __tablename__ = "conversation"
    __table_args__ = (Index("ix_conversation_direct_pair", "type", "user_a_id", "user_b_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[ConversationType] = mapped_column(
        Enum(ConversationType, native_enum=False, length=16),
        nullable=False,
        default=ConversationType.DIRECT,
    )
    user_a_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=True, index=True
    )
    user_b_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=True, index=True
    )
    group_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # Last activity; bumped on every send.
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def is_direct(self) -> bool:
        return self.type == ConversationType.DIRECT


class ConversationMember(Base):
    """One row per (group conversation, member). Append-only."""

    __tablename__ = "conversation_member"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_member"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
