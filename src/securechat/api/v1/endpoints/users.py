# src/securechat/api/v1/endpoints/users.py
"""User lookup endpoints; these publish the keys clients encrypt to."""

from __future__ import annotations

from fastapi import APIRouter, Query

from securechat.schemas import UserPublic

from ..dependencies import CurrentUserDep, UserDirectoryDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
async def read_me(current_user: CurrentUserDep) -> UserPublic:
    return UserPublic.model_validate(current_user)


@router.get("/search", response_model=list[UserPublic])
async def search_users(
    current_user: CurrentUserDep,
    users: UserDirectoryDep,
    query: str = Query("", max_length=50),
) -> list[UserPublic]:
    """Search users by username."""
    return [UserPublic.model_validate(user) for user in users.search(query)]


@router.get("/{user_id}", response_model=UserPublic)
async def read_user(
    user_id: int,
    current_user: CurrentUserDep,
    users: UserDirectoryDep,
) -> UserPublic:
    """Return a user profile including the public key."""
    return UserPublic.model_validate(users.get(user_id))
