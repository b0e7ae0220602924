"""Message-related Pydantic schemas.

Envelope fields keep their stable wire names, ``ciphertextMessage`` and
``encryptedSessionKey``; both are ``base64(nonce || ciphertext)`` strings the
server stores without interpretation.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .common import ApiModel
from .user import UserPublic


class MessageCreate(ApiModel):
    """Schema for posting an encrypted message."""

    ciphertext_message: str = Field(..., min_length=1, description="Body sealed under the session key")
    encrypted_session_key: str = Field(
        ..., min_length=1, description="Session key sealed for the recipient"
    )
    expiry_seconds: int | None = Field(
        None,
        strict=True,
        description="Self-destruct delay; omitted means the message never expires"
    )


class MessageRead(ApiModel):
    """Schema for message information returned by the API."""

    id: int
    conversation_id: int
    sender_id: int
    sender: UserPublic | None = None
    ciphertext_message: str
    encrypted_session_key: str
    sent_at: datetime
    expiry_seconds: int | None = None
    hard_delete_at: datetime | None = None
    deleted_at: datetime | None = None
