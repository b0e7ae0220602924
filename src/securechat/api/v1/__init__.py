# src/securechat/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    conversations_router,
    messages_router,
    system_router,
    users_router,
)

__all__ = [
    "auth_router",
    "conversations_router",
    "messages_router",
    "system_router",
    "users_router",
]
