# src/securechat/models/message.py
"""Models describing encrypted messages."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from securechat.db.session import Base
from securechat.db.time import utcnow

if TYPE_CHECKING:
    from .user import User


class Message(Base):
    """Encrypted message posted to a conversation.

    The server stores the envelope verbatim and never decrypts it. Lifecycle
    metadata drives the two terminal transitions: `deleted_at` marks a
    sender-initiated soft delete, `hard_delete_at` schedules physical removal
    by the expiry reaper.
    """

    __tablename__ = "message"
    __table_args__ = (Index("ix_message_conversation_sent_at", "conversation_id", "sent_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )

    # Opaque envelope: base64(nonce || ciphertext) for both blobs.
    ciphertext_message: Mapped[str] = mapped_column(Text, nullable=False)
    encrypted_session_key: Mapped[str] = mapped_column(Text, nullable=False)

    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    expiry_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hard_delete_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    sender: Mapped["User"] = relationship("User", lazy="joined")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
