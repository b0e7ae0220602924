"""Client-side failures."""

from __future__ import annotations


class DecryptFailure(Exception):
    """Authenticated decryption did not succeed.

    Wrong key, corrupted input and tampering are deliberately indistinguishable:
    the exception carries no reason and no partial output.
    """

    def __init__(self) -> None:
        super().__init__("Unable to decrypt")


class SessionClosed(RuntimeError):
    """The key session was closed and its private key wiped."""
