# src/securechat/api/v1/endpoints/conversations.py
"""Conversation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from securechat.core.errors import InvalidArgument
from securechat.models import Conversation, ConversationType
from securechat.schemas import ConversationCreate, ConversationRead, UserPublic
from securechat.services import ConversationDirectory

from ..dependencies import ConversationDirectoryDep, CurrentUserDep

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _serialize_conversation(
    directory: ConversationDirectory, conversation: Conversation
) -> ConversationRead:
    read = ConversationRead.model_validate(conversation)
    participants = directory.participants(conversation)
    read.participant_ids = [user.id for user in participants]
    read.participants = [UserPublic.model_validate(user) for user in participants]
    return read


@router.get("/", response_model=list[ConversationRead])
async def list_conversations(
    current_user: CurrentUserDep,
    directory: ConversationDirectoryDep,
) -> list[ConversationRead]:
    """Return all conversations the caller participates in."""
    return [
        _serialize_conversation(directory, conversation)
        for conversation in directory.list_for_user(current_user.id)
    ]


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=ConversationRead)
async def create_conversation(
    payload: ConversationCreate,
    current_user: CurrentUserDep,
    directory: ConversationDirectoryDep,
) -> ConversationRead:
    """Open a direct conversation (idempotent per pair) or create a group."""
    if payload.type == ConversationType.DIRECT:
        if payload.other_user_id is None:
            raise InvalidArgument("otherUserId is required for direct conversations")
        conversation = directory.find_or_create_direct(current_user.id, payload.other_user_id)
    else:
        conversation = directory.create_group(
            current_user.id,
            payload.group_name or "",
            payload.member_ids or [],
        )
    return _serialize_conversation(directory, conversation)


@router.get("/{conversation_id}", response_model=ConversationRead)
async def get_conversation(
    conversation_id: int,
    current_user: CurrentUserDep,
    directory: ConversationDirectoryDep,
) -> ConversationRead:
    conversation = directory.require_access(conversation_id, current_user.id)
    return _serialize_conversation(directory, conversation)
