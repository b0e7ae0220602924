"""Typed rejections raised by the server-side services.

Each error carries the HTTP status the API layer answers with. Services raise
them before touching the store wherever the request itself is at fault.
"""

from __future__ import annotations


class SecureChatError(Exception):
    """Base class for recoverable, per-request failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(SecureChatError):
    """Malformed request shape (blank group name, non-positive expiry, ...)."""

    status_code = 400


class AccessDenied(SecureChatError):
    """The caller is not a participant of the conversation."""

    status_code = 403


class Forbidden(SecureChatError):
    """The caller participates but lacks the ownership the action needs."""

    status_code = 403


class NotFound(SecureChatError):
    """The referenced conversation, message or user does not exist."""

    status_code = 404


class Conflict(SecureChatError):
    """A uniqueness rule would be violated."""

    status_code = 409


__all__ = [
    "SecureChatError",
    "InvalidArgument",
    "AccessDenied",
    "Forbidden",
    "NotFound",
    "Conflict",
]
