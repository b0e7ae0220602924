"""Pydantic schemas for the SecureChat API."""

from .common import ApiModel, StatusMessage
from .conversation import ConversationCreate, ConversationRead
from .message import MessageCreate, MessageRead
from .user import AuthResponse, UserLogin, UserPublic, UserRegister

__all__ = [
    "ApiModel",
    "AuthResponse",
    "ConversationCreate",
    "ConversationRead",
    "MessageCreate",
    "MessageRead",
    "StatusMessage",
    "UserLogin",
    "UserPublic",
    "UserRegister",
]
