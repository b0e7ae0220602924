# src/securechat/client/session.py
"""Scoped ownership of the unlocked private key.

A :class:`KeySession` is created on registration or login, is the only holder
of the plaintext private key, and wipes it on :meth:`KeySession.close`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType
from typing import Any

from securechat.client.envelope import EnvelopeCodec, MessageEnvelope
from securechat.client.errors import DecryptFailure, SessionClosed
from securechat.client.keys import KEY_LENGTH_BYTES, KeyPair, KeyPairManager, WrappedPrivateKey
from securechat.utils.encoding import decode_public_key

logger = logging.getLogger(__name__)

UNDECRYPTABLE_PLACEHOLDER = "[Unable to decrypt]"


@dataclass(frozen=True)
class ReceivedMessage:
    """A message as listed by the server, still encrypted."""

    id: int
    sender_id: int
    envelope: MessageEnvelope
    sent_at: str | datetime | None = None
    sender_public_key: bytes | None = None

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> ReceivedMessage:
        sender = payload.get("sender") or {}
        published_key = sender.get("publicKey")
        return cls(
            id=payload["id"],
            sender_id=payload["senderId"],
            envelope=MessageEnvelope.from_wire(payload),
            sent_at=payload.get("sentAt"),
            sender_public_key=decode_public_key(published_key) if published_key else None,
        )


@dataclass(frozen=True)
class DecryptedMessage:
    """A message ready for display."""

    id: int
    sender_id: int
    plaintext: str
    decrypted: bool
    sent_at: str | datetime | None = None


def prepare_registration(password: str) -> tuple[KeyPair, WrappedPrivateKey]:
    """Generate a key pair for a new account and wrap its private key.

    The public half is published at registration; the wrapped private key is
    stored on the device.
    """
    key_pair = KeyPairManager.generate()
    return key_pair, KeyPairManager.wrap(key_pair.private_key, password)


class KeySession:
    """In-memory private key bound to one authenticated user."""

    def __init__(self, user_id: int, public_key: bytes, private_key: bytes) -> None:
        if len(private_key) != KEY_LENGTH_BYTES:
            raise ValueError(f"Private keys must be {KEY_LENGTH_BYTES} bytes")
        self.user_id = user_id
        self.public_key = bytes(public_key)
        self._private_key: bytearray | None = bytearray(private_key)

    @classmethod
    def from_key_pair(cls, user_id: int, key_pair: KeyPair) -> KeySession:
        return cls(user_id, key_pair.public_key, key_pair.private_key)

    @classmethod
    def unlock(
        cls,
        user_id: int,
        public_key: bytes,
        wrapped: WrappedPrivateKey,
        password: str,
    ) -> KeySession:
        """Unwrap the stored private key and open a session.

        Raises:
            DecryptFailure: If the password is wrong or the stored blob was altered.
        """
        return cls(user_id, public_key, KeyPairManager.unwrap(wrapped, password))

    @property
    def closed(self) -> bool:
        return self._private_key is None

    def _require_key(self) -> bytes:
        if self._private_key is None:
            raise SessionClosed("Key session is closed")
        return bytes(self._private_key)

    def close(self) -> None:
        """Zero the private key buffer and drop it."""
        if self._private_key is None:
            return
        for index in range(len(self._private_key)):
            self._private_key[index] = 0
        self._private_key = None

    def __enter__(self) -> KeySession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def rewrap(self, password: str) -> WrappedPrivateKey:
        """Wrap the held private key under a (possibly new) password."""
        return KeyPairManager.wrap(self._require_key(), password)

    def seal_for(self, plaintext: str, recipient_public_key: bytes) -> MessageEnvelope:
        return EnvelopeCodec.seal(plaintext, recipient_public_key, self._require_key())

    def open_envelope(self, envelope: MessageEnvelope, counterparty_public_key: bytes) -> str:
        return EnvelopeCodec.open(envelope, counterparty_public_key, self._require_key())

    def counterparty_key(
        self,
        sender_id: int,
        recipient_public_key: bytes | None,
        sender_public_key: bytes | None,
    ) -> bytes | None:
        """Pick the key a message must be opened with.

        Our own messages were sealed against the recipient's key; everyone
        else's were sealed by the sender against ours.
        """
        if sender_id == self.user_id:
            return recipient_public_key
        return sender_public_key

    def decrypt_messages(
        self,
        messages: Iterable[ReceivedMessage],
        recipient_public_key: bytes | None,
        public_keys: Mapping[int, bytes],
    ) -> list[DecryptedMessage]:
        """Decrypt a page of messages, substituting a placeholder on failure.

        Args:
            messages: Messages as listed by the server.
            recipient_public_key: Key our own messages were sealed against.
            public_keys: Known public keys of other senders, by user id. Keys
                published with the message are used for senders not listed.
        """
        rendered: list[DecryptedMessage] = []
        for message in messages:
            key = self.counterparty_key(
                message.sender_id,
                recipient_public_key,
                public_keys.get(message.sender_id, message.sender_public_key),
            )
            plaintext = UNDECRYPTABLE_PLACEHOLDER
            decrypted = False
            if key is None:
                logger.warning("No public key available for message %s", message.id)
            else:
                try:
                    plaintext = self.open_envelope(message.envelope, key)
                    decrypted = True
                except DecryptFailure:
                    logger.warning("Failed to decrypt message %s", message.id)
            rendered.append(
                DecryptedMessage(
                    id=message.id,
                    sender_id=message.sender_id,
                    plaintext=plaintext,
                    decrypted=decrypted,
                    sent_at=message.sent_at,
                )
            )
        return rendered
