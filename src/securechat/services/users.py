"""User directory: registration, credential checks and public key lookup."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from securechat.core.errors import Conflict, InvalidArgument, NotFound
from securechat.core.security import Argon2CredentialVerifier, CredentialVerifier
from securechat.core.settings import settings
from securechat.models import User
from securechat.utils.encoding import b64encode, decode_public_key

logger = logging.getLogger(__name__)


class UserDirectory:
    """CRUD-style access to users and the public keys they published."""

    def __init__(self, db: Session, verifier: CredentialVerifier | None = None) -> None:
        self.db = db
        self.verifier = verifier or Argon2CredentialVerifier()

    def get(self, user_id: int) -> User:
        """Return a single user by primary key."""
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_by_username(self, username: str) -> User | None:
        return self.db.scalars(select(User).where(User.username == username)).first()

    def register(self, username: str, password: str, public_key: str) -> User:
        """Create an account bound to the client's public key.

        The key may be given as base64 or hex; it is stored as base64.
        """
        try:
            key_bytes = decode_public_key(public_key)
        except ValueError as err:
            raise InvalidArgument(str(err)) from err

        if self.get_by_username(username) is not None:
            raise Conflict("Username already exists")

        user = User(
            username=username,
            password_hash=self.verifier.hash(password),
            public_key=b64encode(key_bytes),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("User registered: %s (%s)", username, user.id)
        return user

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the user when the credentials match, otherwise None."""
        user = self.get_by_username(username)
        if user is None or not self.verifier.verify(user.password_hash, password):
            return None
        logger.info("User logged in: %s (%s)", username, user.id)
        return user

    def search(self, query: str, limit: int | None = None) -> list[User]:
        """Case-insensitive username search; a blank query matches nobody."""
        term = (query or "").strip()
        if not term:
            return []
        stmt = (
            select(User)
            .where(func.lower(User.username).contains(term.lower(), autoescape=True))
            .order_by(User.username)
            .limit(limit or settings.user_search_limit)
        )
        return list(self.db.scalars(stmt))
