# src/securechat/models/__init__.py
"""SQLAlchemy models for the SecureChat server."""

from .conversation import Conversation, ConversationMember, ConversationType
from .message import Message
from .user import User

__all__ = [
    "Conversation", "ConversationMember", "ConversationType",
    "Message",
    "User",
]
