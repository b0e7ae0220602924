# src/securechat/api/v1/endpoints/messages.py
"""Encrypted message endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from securechat.core.settings import settings
from securechat.schemas import MessageCreate, MessageRead, StatusMessage

from ..dependencies import CurrentUserDep, MessageStoreDep

router = APIRouter(tags=["messages"])


@router.get("/conversations/{conversation_id}/messages", response_model=list[MessageRead])
async def list_messages(
    conversation_id: int,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
    limit: int = Query(settings.message_page_default),
    offset: int = Query(0),
) -> list[MessageRead]:
    """Return visible messages, newest first."""
    messages = store.list_messages(conversation_id, current_user.id, limit=limit, offset=offset)
    return [MessageRead.model_validate(message) for message in messages]


@router.post(
    "/conversations/{conversation_id}/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageRead,
)
async def send_message(
    conversation_id: int,
    payload: MessageCreate,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
) -> MessageRead:
    """Store an end-to-end encrypted message."""
    message = store.send(
        conversation_id,
        current_user.id,
        payload,
        expiry_seconds=payload.expiry_seconds,
    )
    return MessageRead.model_validate(message)


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message_for_self(
    message_id: int,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
) -> Response:
    """Delete a message for the caller only (client-side removal)."""
    store.delete_for_self(message_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/messages/{message_id}/delete-for-everyone", response_model=StatusMessage)
async def delete_message_for_everyone(
    message_id: int,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
) -> StatusMessage:
    """Hide a message from all participants; sender only."""
    store.delete_for_everyone(message_id, current_user.id)
    return StatusMessage(message="Message deleted for everyone")
