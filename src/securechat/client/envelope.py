# src/securechat/client/envelope.py
"""Per-message envelope encryption.

Every message gets a fresh 32-byte session key. The body is sealed with
``crypto_secretbox`` under that key and the key itself is sealed with
``crypto_box`` between the sender's private key and the recipient's public
key. Both blobs travel as ``base64(nonce || ciphertext)``.

Opening needs the *counterparty* public key: the author's key when someone
else wrote the message, the original recipient's key when the local user did.
The codec never guesses which one applies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import nacl.utils
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey
from nacl.secret import SecretBox

from securechat.client.errors import DecryptFailure
from securechat.utils.encoding import b64decode, b64encode

SESSION_KEY_BYTES = SecretBox.KEY_SIZE

WIRE_CIPHERTEXT_FIELD = "ciphertextMessage"
WIRE_SESSION_KEY_FIELD = "encryptedSessionKey"


@dataclass(frozen=True)
class MessageEnvelope:
    """The two opaque blobs representing one encrypted message."""

    ciphertext_message: str
    encrypted_session_key: str

    def to_wire(self) -> dict[str, str]:
        return {
            WIRE_CIPHERTEXT_FIELD: self.ciphertext_message,
            WIRE_SESSION_KEY_FIELD: self.encrypted_session_key,
        }

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> MessageEnvelope:
        """Build an envelope from an API payload (extra fields are ignored)."""
        return cls(
            ciphertext_message=payload[WIRE_CIPHERTEXT_FIELD],
            encrypted_session_key=payload[WIRE_SESSION_KEY_FIELD],
        )


def _split_blob(encoded: str, nonce_size: int) -> tuple[bytes, bytes]:
    try:
        raw = b64decode(encoded)
    except (TypeError, ValueError):
        raise DecryptFailure() from None
    if len(raw) <= nonce_size:
        raise DecryptFailure()
    return raw[:nonce_size], raw[nonce_size:]


def _box(public_key: bytes, private_key: bytes) -> Box:
    return Box(PrivateKey(private_key), PublicKey(public_key))


class EnvelopeCodec:
    """Seals and opens message envelopes. Stateless and thread-safe."""

    @staticmethod
    def seal(
        plaintext: str,
        recipient_public_key: bytes,
        sender_private_key: bytes,
    ) -> MessageEnvelope:
        """Encrypt `plaintext` for `recipient_public_key`.

        Raises:
            ValueError: If either key is not a valid 32-byte key.
        """
        try:
            key_box = _box(recipient_public_key, sender_private_key)
        except CryptoError as err:
            raise ValueError("Invalid key material") from err

        session_key = nacl.utils.random(SESSION_KEY_BYTES)
        body = SecretBox(session_key).encrypt(
            plaintext.encode("utf-8"),
            nacl.utils.random(SecretBox.NONCE_SIZE),
        )
        sealed_key = key_box.encrypt(session_key, nacl.utils.random(Box.NONCE_SIZE))

        # EncryptedMessage is already nonce || ciphertext.
        return MessageEnvelope(
            ciphertext_message=b64encode(bytes(body)),
            encrypted_session_key=b64encode(bytes(sealed_key)),
        )

    @staticmethod
    def open(
        envelope: MessageEnvelope,
        counterparty_public_key: bytes,
        own_private_key: bytes,
    ) -> str:
        """Recover the plaintext of `envelope`.

        Raises:
            DecryptFailure: For any failure; the reason is not disclosed.
        """
        key_nonce, key_ciphertext = _split_blob(envelope.encrypted_session_key, Box.NONCE_SIZE)
        body_nonce, body_ciphertext = _split_blob(envelope.ciphertext_message, SecretBox.NONCE_SIZE)

        try:
            session_key = _box(counterparty_public_key, own_private_key).decrypt(
                key_ciphertext, key_nonce
            )
            if len(session_key) != SESSION_KEY_BYTES:
                raise DecryptFailure()
            plaintext = SecretBox(session_key).decrypt(body_ciphertext, body_nonce)
            return plaintext.decode("utf-8")
        except (CryptoError, TypeError, UnicodeDecodeError):
            raise DecryptFailure() from None


def seal_message(
    plaintext: str,
    recipient_public_key: bytes,
    sender_private_key: bytes,
) -> MessageEnvelope:
    return EnvelopeCodec.seal(plaintext, recipient_public_key, sender_private_key)


def open_message(
    envelope: MessageEnvelope,
    counterparty_public_key: bytes,
    own_private_key: bytes,
) -> str:
    return EnvelopeCodec.open(envelope, counterparty_public_key, own_private_key)
