# src/securechat/services/messages.py
"""Storage and lifecycle of encrypted messages.

A message is ``Active`` until it reaches one of two terminal states:

* ``SoftDeleted``: the sender deleted it for everyone; the row stays but is
  hidden from every listing.
* ``HardDeleted``: its self-destruct timer elapsed and the reaper removed the
  row. Soft-deleted rows with a due timer are purged as well.

Ciphertext is stored verbatim; the server never inspects it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from securechat.core.errors import Forbidden, InvalidArgument, NotFound
from securechat.core.settings import settings
from securechat.db.time import utcnow
from securechat.models import Message
from securechat.services.conversations import ConversationDirectory

logger = logging.getLogger(__name__)


class EnvelopeFields(Protocol):
    """Anything carrying the two envelope blobs."""

    ciphertext_message: str
    encrypted_session_key: str


def _validate_expiry(expiry_seconds: int | None) -> int | None:
    if expiry_seconds is None:
        return None
    if isinstance(expiry_seconds, bool) or not isinstance(expiry_seconds, int):
        raise InvalidArgument("expirySeconds must be an integer")
    if expiry_seconds <= 0:
        raise InvalidArgument("expirySeconds must be a positive number of seconds")
    return expiry_seconds


class MessageLifecycleStore:
    """Persists envelopes and enforces the per-message state machine."""

    def __init__(
        self,
        db: Session,
        directory: ConversationDirectory | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.clock = clock
        self.directory = directory or ConversationDirectory(db, clock=clock)

    def send(
        self,
        conversation_id: int,
        sender_id: int,
        envelope: EnvelopeFields,
        expiry_seconds: int | None = None,
    ) -> Message:
        """Store an envelope posted by a participant.

        Raises:
            InvalidArgument: For an empty envelope blob or a non-positive expiry.
            NotFound: If the conversation does not exist.
            AccessDenied: If the sender is not a participant.
        """
        expiry = _validate_expiry(expiry_seconds)
        if not envelope.ciphertext_message or not envelope.encrypted_session_key:
            raise InvalidArgument("Envelope fields must not be empty")

        conversation = self.directory.require_access(conversation_id, sender_id)

        now = self.clock()
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            ciphertext_message=envelope.ciphertext_message,
            encrypted_session_key=envelope.encrypted_session_key,
            sent_at=now,
            expiry_seconds=expiry,
            hard_delete_at=now + timedelta(seconds=expiry) if expiry is not None else None,
        )
        self.db.add(message)
        self.directory.touch(conversation, now)
        self.db.commit()
        self.db.refresh(message)

        logger.info("Message sent: %s in conversation %s", message.id, conversation.id)
        return message

    def list_messages(
        self,
        conversation_id: int,
        requester_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Message]:
        """Return a page of visible messages, newest first."""
        page_size = settings.message_page_default if limit is None else limit
        if page_size < 1 or page_size > settings.message_page_max:
            raise InvalidArgument(f"limit must be between 1 and {settings.message_page_max}")
        if offset < 0:
            raise InvalidArgument("offset must not be negative")

        self.directory.require_access(conversation_id, requester_id)

        stmt = (
            select(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.deleted_at.is_(None),
            )
            .order_by(Message.sent_at.desc(), Message.id.desc())
            .limit(page_size)
            .offset(offset)
        )
        return list(self.db.scalars(stmt))

    def _get(self, message_id: int) -> Message:
        message = self.db.get(Message, message_id)
        if message is None:
            raise NotFound("Message not found")
        return message

    def delete_for_self(self, message_id: int, requester_id: int) -> None:
        """Hide a message for the requester only.

        Nothing is persisted: the client drops the message locally. There is
        no per-user suppression record, so the message reappears on a fresh
        install.
        """
        message = self._get(message_id)
        self.directory.require_access(message.conversation_id, requester_id)
        logger.info("User %s deleted message %s (local only)", requester_id, message_id)

    def delete_for_everyone(self, message_id: int, requester_id: int) -> Message:
        """Soft-delete a message; only its sender may do this.

        Deleting an already deleted message succeeds without changes.

        Raises:
            NotFound: If the message does not exist (or was already purged).
            Forbidden: If the requester is not the sender.
        """
        message = self._get(message_id)
        if message.sender_id != requester_id:
            raise Forbidden("Only message sender can delete for everyone")

        if not message.is_deleted:
            message.deleted_at = self.clock()
            self.db.commit()
            self.db.refresh(message)
            logger.info("Message %s deleted for everyone by user %s", message_id, requester_id)
        return message

    def purge_expired(self, now: datetime | None = None) -> int:
        """Physically delete every message whose self-destruct time has passed.

        Rows without a timer are never touched. Safe to run concurrently and
        repeatedly: it is a single delete-by-predicate.
        """
        cutoff = now or self.clock()
        result = self.db.execute(
            delete(Message)
            .where(
                Message.hard_delete_at.is_not(None),
                Message.hard_delete_at <= cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        # Purged rows may still sit in the identity map.
        self.db.expire_all()

        deleted_count = result.rowcount or 0
        if deleted_count > 0:
            logger.info("Deleted %d expired messages", deleted_count)
        return deleted_count
