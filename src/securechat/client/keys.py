# src/securechat/client/keys.py
"""Key pair generation and password wrapping of the private key.

Key pairs are Curve25519 keys as used by NaCl ``crypto_box``. The private key
only ever leaves memory wrapped with ``crypto_secretbox`` under a key derived
from the user's password.
"""

from __future__ import annotations

from dataclasses import dataclass

import nacl.hash
import nacl.utils
from nacl.encoding import RawEncoder
from nacl.exceptions import CryptoError
from nacl.public import PrivateKey
from nacl.secret import SecretBox

from securechat.client.errors import DecryptFailure
from securechat.utils.encoding import b64decode, b64encode

KEY_LENGTH_BYTES = 32


@dataclass(frozen=True)
class KeyPair:
    """Raw 32-byte X25519 public and private keys."""

    public_key: bytes
    private_key: bytes

    @property
    def public_key_b64(self) -> str:
        """Public key in the base64 form published to the server."""
        return b64encode(self.public_key)

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key_b64!r}, private_key=<redacted>)"


@dataclass(frozen=True)
class WrappedPrivateKey:
    """Private key sealed under a password-derived key."""

    nonce: bytes
    ciphertext: bytes

    def encode(self) -> str:
        """Return ``base64(nonce || ciphertext)`` for local storage."""
        return b64encode(self.nonce + self.ciphertext)

    @classmethod
    def decode(cls, encoded: str) -> WrappedPrivateKey:
        """Parse the storage form produced by :meth:`encode`.

        Raises:
            DecryptFailure: If the blob is not base64 or too short to hold a nonce.
        """
        try:
            raw = b64decode(encoded)
        except ValueError:
            raise DecryptFailure() from None
        if len(raw) <= SecretBox.NONCE_SIZE:
            raise DecryptFailure()
        return cls(nonce=raw[: SecretBox.NONCE_SIZE], ciphertext=raw[SecretBox.NONCE_SIZE :])


def derive_wrapping_key(password: str) -> bytes:
    """Derive the secretbox key protecting the private key.

    A single SHA-512 of the UTF-8 password, truncated to the secretbox key
    length. This is a fast hash, not a password-hashing function.
    """
    digest = nacl.hash.sha512(password.encode("utf-8"), encoder=RawEncoder)
    return digest[: SecretBox.KEY_SIZE]


class KeyPairManager:
    """Generates key pairs and wraps/unwraps private keys."""

    @staticmethod
    def generate() -> KeyPair:
        """Generate a fresh X25519 key pair from the system CSPRNG."""
        private_key = PrivateKey.generate()
        return KeyPair(
            public_key=bytes(private_key.public_key),
            private_key=bytes(private_key),
        )

    @staticmethod
    def wrap(private_key: bytes, password: str) -> WrappedPrivateKey:
        """Seal `private_key` under a key derived from `password`.

        Pure function; persisting the result is the caller's job.
        """
        if len(private_key) != KEY_LENGTH_BYTES:
            raise ValueError(f"Private keys must be {KEY_LENGTH_BYTES} bytes")
        box = SecretBox(derive_wrapping_key(password))
        nonce = nacl.utils.random(SecretBox.NONCE_SIZE)
        sealed = box.encrypt(private_key, nonce)
        return WrappedPrivateKey(nonce=sealed.nonce, ciphertext=sealed.ciphertext)

    @staticmethod
    def unwrap(wrapped: WrappedPrivateKey, password: str) -> bytes:
        """Recover the private key sealed by :meth:`wrap`.

        Raises:
            DecryptFailure: On a wrong password or a forged/tampered blob.
        """
        if len(wrapped.nonce) != SecretBox.NONCE_SIZE:
            raise DecryptFailure()
        box = SecretBox(derive_wrapping_key(password))
        try:
            private_key = box.decrypt(wrapped.ciphertext, wrapped.nonce)
        except CryptoError:
            raise DecryptFailure() from None
        if len(private_key) != KEY_LENGTH_BYTES:
            raise DecryptFailure()
        return private_key


def generate_key_pair() -> KeyPair:
    return KeyPairManager.generate()


def wrap_private_key(private_key: bytes, password: str) -> WrappedPrivateKey:
    return KeyPairManager.wrap(private_key, password)


def unwrap_private_key(wrapped: WrappedPrivateKey, password: str) -> bytes:
    return KeyPairManager.unwrap(wrapped, password)
