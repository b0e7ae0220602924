# src/securechat/api/v1/endpoints/auth.py
"""Registration and login endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from securechat.core.security import create_access_token
from securechat.schemas import AuthResponse, UserLogin, UserPublic, UserRegister

from ..dependencies import UserDirectoryDep

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(payload: UserRegister, users: UserDirectoryDep) -> AuthResponse:
    """Create an account bound to a client-generated public key."""
    user = users.register(payload.username, payload.password, payload.public_key)
    return AuthResponse(
        access_token=create_access_token(user.id),
        user=UserPublic.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: UserLogin, users: UserDirectoryDep) -> AuthResponse:
    """Exchange credentials for an access token."""
    user = users.authenticate(payload.username, payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return AuthResponse(
        access_token=create_access_token(user.id),
        user=UserPublic.model_validate(user),
    )
