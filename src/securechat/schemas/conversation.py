"""Conversation-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from securechat.models.conversation import ConversationType

from .common import ApiModel
from .user import UserPublic


class ConversationCreate(ApiModel):
    """Create a direct conversation (``otherUserId``) or a group (``groupName`` + ``memberIds``)."""

    type: ConversationType = ConversationType.DIRECT
    other_user_id: int | None = None
    group_name: str | None = None
    member_ids: list[int] | None = None


class ConversationRead(ApiModel):
    """Conversation returned by the API."""

    id: int
    type: ConversationType
    user_a_id: int | None = None
    user_b_id: int | None = None
    group_name: str | None = None
    created_at: datetime
    updated_at: datetime
    participant_ids: list[int] = Field(default_factory=list)
    participants: list[UserPublic] = Field(default_factory=list)
