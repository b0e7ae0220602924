"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from securechat.core.security import decode_access_token
from securechat.db.session import get_db
from securechat.models import User
from securechat.services import ConversationDirectory, MessageLifecycleStore, UserDirectory

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        user_id = decode_access_token(credentials.credentials)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_user_directory(db: SessionDep) -> UserDirectory:
    return UserDirectory(db)


def get_conversation_directory(db: SessionDep) -> ConversationDirectory:
    return ConversationDirectory(db)


def get_message_store(
    directory: Annotated[ConversationDirectory, Depends(get_conversation_directory)],
) -> MessageLifecycleStore:
    return MessageLifecycleStore(directory.db, directory=directory)


# Type aliases for dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]
ConversationDirectoryDep = Annotated[ConversationDirectory, Depends(get_conversation_directory)]
MessageStoreDep = Annotated[MessageLifecycleStore, Depends(get_message_store)]
