"""User-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .common import ApiModel


class UserRegister(ApiModel):
    """Registration request; the key pair was generated on the device."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    password: str = Field(..., min_length=8)
    public_key: str = Field(..., description="Base64 (or hex) X25519 public key")


class UserLogin(ApiModel):
    username: str
    password: str


class UserPublic(ApiModel):
    """Safe user projection, including the key peers encrypt to."""

    id: int
    username: str
    public_key: str
    created_at: datetime | None = None


class AuthResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic
