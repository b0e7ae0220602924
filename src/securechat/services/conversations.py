# src/securechat/services/conversations.py
"""Conversation membership and the access gate for message operations."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from securechat.core.errors import AccessDenied, InvalidArgument, NotFound
from securechat.core.settings import settings
from securechat.db.time import utcnow
from securechat.models import Conversation, ConversationMember, ConversationType, User

logger = logging.getLogger(__name__)


class AccessDecision(enum.Enum):
    """Outcome of an authorization check."""

    ALLOWED = "allowed"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"


class ConversationDirectory:
    """Resolves who belongs to which conversation.

    This is the only access-control gate for messages: every read or write on
    a conversation's messages goes through :meth:`authorize` first.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def _direct_between(self, user_a_id: int, user_b_id: int) -> Conversation | None:
        stmt = select(Conversation).where(
            Conversation.type == ConversationType.DIRECT,
            or_(
                and_(Conversation.user_a_id == user_a_id, Conversation.user_b_id == user_b_id),
                and_(Conversation.user_a_id == user_b_id, Conversation.user_b_id == user_a_id),
            ),
        )
        return self.db.scalars(stmt).first()

    def _require_users(self, user_ids: Iterable[int]) -> None:
        wanted = set(user_ids)
        found = set(self.db.scalars(select(User.id).where(User.id.in_(wanted))))
        missing = sorted(wanted - found)
        if missing:
            raise NotFound(f"User not found: {', '.join(str(user_id) for user_id in missing)}")

    def find_or_create_direct(self, user_a_id: int, user_b_id: int) -> Conversation:
        """Return the direct conversation for an unordered pair, creating it once."""
        if user_a_id == user_b_id:
            raise InvalidArgument("A direct conversation needs two different users")

        existing = self._direct_between(user_a_id, user_b_id)
        if existing is not None:
            return existing

        self._require_users((user_a_id, user_b_id))
        now = self.clock()
        conversation = Conversation(
            type=ConversationType.DIRECT,
            user_a_id=user_a_id,
            user_b_id=user_b_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(conversation)
        self.db.commit()
        self.db.refresh(conversation)
        logger.info(
            "Direct conversation %s created between %s and %s",
            conversation.id,
            user_a_id,
            user_b_id,
        )
        return conversation

    def create_group(self, creator_id: int, name: str, member_ids: Iterable[int]) -> Conversation:
        """Create a named group; the creator is always a member."""
        group_name = (name or "").strip()
        requested = list(member_ids)
        if not group_name:
            raise InvalidArgument("Group name is required")
        if len(group_name) > settings.group_name_max_length:
            raise InvalidArgument(
                f"Group name must not exceed {settings.group_name_max_length} characters"
            )
        if not requested:
            raise InvalidArgument("Group conversations need at least one member")

        # Keeps first-seen order.
        unique_members = list(dict.fromkeys([creator_id, *requested]))
        self._require_users(unique_members)

        now = self.clock()
        conversation = Conversation(
            type=ConversationType.GROUP,
            group_name=group_name,
            created_at=now,
            updated_at=now,
        )
        self.db.add(conversation)
        self.db.flush()
        self.db.add_all(
            ConversationMember(conversation_id=conversation.id, user_id=user_id, joined_at=now)
            for user_id in unique_members
        )
        self.db.commit()
        self.db.refresh(conversation)
        logger.info(
            "Group conversation %s created by %s with %d members",
            conversation.id,
            creator_id,
            len(unique_members),
        )
        return conversation

    def _decide(self, conversation: Conversation | None, user_id: int) -> AccessDecision:
        if conversation is None:
            return AccessDecision.NOT_FOUND
        if conversation.is_direct:
            if user_id in (conversation.user_a_id, conversation.user_b_id):
                return AccessDecision.ALLOWED
            return AccessDecision.ACCESS_DENIED

        membership = self.db.scalars(
            select(ConversationMember.id).where(
                ConversationMember.conversation_id == conversation.id,
                ConversationMember.user_id == user_id,
            )
        ).first()
        return AccessDecision.ALLOWED if membership is not None else AccessDecision.ACCESS_DENIED

    def authorize(self, conversation_id: int, user_id: int) -> AccessDecision:
        """Decide whether `user_id` may read or write in the conversation."""
        return self._decide(self.db.get(Conversation, conversation_id), user_id)

    def require_access(self, conversation_id: int, user_id: int) -> Conversation:
        """Return the conversation or raise the matching rejection.

        Raises:
            NotFound: If the conversation does not exist.
            AccessDenied: If the user is not a participant.
        """
        conversation = self.db.get(Conversation, conversation_id)
        decision = self._decide(conversation, user_id)
        if decision is AccessDecision.NOT_FOUND:
            raise NotFound("Conversation not found")
        if decision is AccessDecision.ACCESS_DENIED:
            raise AccessDenied("Access denied")
        assert conversation is not None
        return conversation

    def list_for_user(self, user_id: int) -> list[Conversation]:
        """Return the user's direct and group conversations, most recently active first."""
        memberships = select(ConversationMember.conversation_id).where(
            ConversationMember.user_id == user_id
        )
        stmt = (
            select(Conversation)
            .where(
                or_(
                    and_(
                        Conversation.type == ConversationType.DIRECT,
                        or_(Conversation.user_a_id == user_id, Conversation.user_b_id == user_id),
                    ),
                    and_(
                        Conversation.type == ConversationType.GROUP,
                        Conversation.id.in_(memberships),
                    ),
                )
            )
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        )
        return list(self.db.scalars(stmt))

    def member_ids(self, conversation: Conversation) -> list[int]:
        """Return participant ids for either conversation variant."""
        if conversation.is_direct:
            return [
                user_id
                for user_id in (conversation.user_a_id, conversation.user_b_id)
                if user_id is not None
            ]
        stmt = (
            select(ConversationMember.user_id)
            .where(ConversationMember.conversation_id == conversation.id)
            .order_by(ConversationMember.id)
        )
        return list(self.db.scalars(stmt))

    def participants(self, conversation: Conversation) -> list[User]:
        """Return participant profiles in the same order as :meth:`member_ids`."""
        member_ids = self.member_ids(conversation)
        stmt = select(User).where(User.id.in_(member_ids))
        users = {user.id: user for user in self.db.scalars(stmt)}
        return [users[user_id] for user_id in member_ids if user_id in users]

    def touch(self, conversation: Conversation, now: datetime | None = None) -> None:
        """Record activity on the conversation (flushed with the caller's commit)."""
        conversation.updated_at = now or self.clock()
