"""Tests for conversation membership and the access gate."""

import pytest

from securechat.core.errors import AccessDenied, InvalidArgument, NotFound
from securechat.models import ConversationMember, ConversationType
from securechat.services import AccessDecision


def test_direct_conversation_is_created_once_per_pair(directory, alice, bob) -> None:
    first = directory.find_or_create_direct(alice.id, bob.id)
    again = directory.find_or_create_direct(alice.id, bob.id)
    reversed_pair = directory.find_or_create_direct(bob.id, alice.id)

    assert first.type == ConversationType.DIRECT
    assert first.id == again.id == reversed_pair.id
    assert {first.user_a_id, first.user_b_id} == {alice.id, bob.id}


def test_direct_conversation_with_self_is_rejected(directory, alice) -> None:
    with pytest.raises(InvalidArgument):
        directory.find_or_create_direct(alice.id, alice.id)


def test_direct_conversation_with_unknown_user(directory, alice) -> None:
    with pytest.raises(NotFound):
        directory.find_or_create_direct(alice.id, 999_999)


def test_group_includes_creator_and_dedupes_members(directory, db_session, alice, bob, carol) -> None:
    group = directory.create_group(alice.id, "  Weekend plans ", [bob.id, carol.id, bob.id, alice.id])

    assert group.type == ConversationType.GROUP
    assert group.group_name == "Weekend plans"
    assert group.user_a_id is None and group.user_b_id is None
    assert directory.member_ids(group) == [alice.id, bob.id, carol.id]
    assert db_session.query(ConversationMember).filter_by(conversation_id=group.id).count() == 3


def test_participants_match_member_ids(directory, alice, bob, carol) -> None:
    direct = directory.find_or_create_direct(bob.id, alice.id)
    group = directory.create_group(carol.id, "Trio", [alice.id, bob.id])

    assert [user.id for user in directory.participants(direct)] == directory.member_ids(direct)
    assert [user.username for user in directory.participants(group)] == ["carol", "alice", "bob"]
    assert directory.participants(group)[0].public_key == carol.key_pair.public_key_b64


@pytest.mark.parametrize("name", ["", "   ", "x" * 101])
def test_group_name_is_validated(directory, alice, bob, name: str) -> None:
    with pytest.raises(InvalidArgument):
        directory.create_group(alice.id, name, [bob.id])


def test_group_needs_members(directory, alice) -> None:
    with pytest.raises(InvalidArgument):
        directory.create_group(alice.id, "Solo", [])


def test_group_with_unknown_member(directory, alice) -> None:
    with pytest.raises(NotFound):
        directory.create_group(alice.id, "Ghosts", [424242])


def test_authorize_direct(directory, alice, bob, carol) -> None:
    conversation = directory.find_or_create_direct(alice.id, bob.id)

    assert directory.authorize(conversation.id, alice.id) is AccessDecision.ALLOWED
    assert directory.authorize(conversation.id, bob.id) is AccessDecision.ALLOWED
    assert directory.authorize(conversation.id, carol.id) is AccessDecision.ACCESS_DENIED
    assert directory.authorize(conversation.id + 1000, alice.id) is AccessDecision.NOT_FOUND


def test_authorize_group(directory, alice, bob, carol) -> None:
    group = directory.create_group(alice.id, "Pair", [bob.id])

    assert directory.authorize(group.id, bob.id) is AccessDecision.ALLOWED
    assert directory.authorize(group.id, carol.id) is AccessDecision.ACCESS_DENIED


def test_require_access_raises(directory, alice, bob, carol) -> None:
    conversation = directory.find_or_create_direct(alice.id, bob.id)

    assert directory.require_access(conversation.id, bob.id).id == conversation.id
    with pytest.raises(AccessDenied):
        directory.require_access(conversation.id, carol.id)
    with pytest.raises(NotFound):
        directory.require_access(123456, alice.id)


def test_list_for_user_orders_by_recent_activity(directory, clock, alice, bob, carol) -> None:
    direct = directory.find_or_create_direct(alice.id, bob.id)
    clock.advance(5)
    group = directory.create_group(alice.id, "Later", [carol.id])
    clock.advance(5)
    directory.find_or_create_direct(bob.id, carol.id)

    assert [c.id for c in directory.list_for_user(alice.id)] == [group.id, direct.id]
    assert [c.id for c in directory.list_for_user(carol.id)][-1] == group.id

    directory.touch(direct, clock.advance(5))
    directory.db.commit()

    assert [c.id for c in directory.list_for_user(alice.id)] == [direct.id, group.id]
