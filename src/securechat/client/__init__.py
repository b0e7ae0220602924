# src/securechat/client/__init__.py
"""Client-side end-to-end encryption.

Nothing here talks to the server or imports server modules; keys and
plaintext stay on the device.
"""

from .envelope import EnvelopeCodec, MessageEnvelope, open_message, seal_message
from .errors import DecryptFailure, SessionClosed
from .keys import (
    KeyPair,
    KeyPairManager,
    WrappedPrivateKey,
    generate_key_pair,
    unwrap_private_key,
    wrap_private_key,
)
from .session import DecryptedMessage, KeySession, ReceivedMessage, prepare_registration

__all__ = [
    "DecryptFailure",
    "DecryptedMessage",
    "EnvelopeCodec",
    "KeyPair",
    "KeyPairManager",
    "KeySession",
    "MessageEnvelope",
    "ReceivedMessage",
    "SessionClosed",
    "WrappedPrivateKey",
    "generate_key_pair",
    "open_message",
    "prepare_registration",
    "seal_message",
    "unwrap_private_key",
    "wrap_private_key",
]
