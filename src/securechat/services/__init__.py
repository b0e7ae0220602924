# src/securechat/services/__init__.py
"""Server-side business logic for SecureChat."""

from .conversations import AccessDecision, ConversationDirectory
from .messages import MessageLifecycleStore
from .reaper import ExpiryReaper
from .users import UserDirectory

__all__ = [
    "AccessDecision",
    "ConversationDirectory",
    "ExpiryReaper",
    "MessageLifecycleStore",
    "UserDirectory",
]
