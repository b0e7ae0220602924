import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from securechat.client import EnvelopeCodec
from securechat.models import Message
from securechat.services import ExpiryReaper


@pytest.fixture()
def expiring_message(store, directory, alice, bob):
    conversation = directory.find_or_create_direct(alice.id, bob.id)
    envelope = EnvelopeCodec.seal("bye", bob.key_pair.public_key, alice.key_pair.private_key)
    message = store.send(conversation.id, alice.id, envelope, expiry_seconds=2)
    return message.id


def _remaining(db_session) -> list[int]:
    db_session.expire_all()
    return list(db_session.scalars(select(Message.id)))


@pytest.mark.asyncio
async def test_run_once_purges_due_messages(session_factory, db_session, clock, expiring_message):
    reaper = ExpiryReaper(session_factory=session_factory, interval_seconds=60, clock=clock)

    assert await reaper.run_once() == 0
    assert _remaining(db_session) == [expiring_message]

    clock.advance(2)
    assert await reaper.run_once() == 1
    assert _remaining(db_session) == []
    assert reaper.total_purged == 1


@pytest.mark.asyncio
async def test_background_loop_purges_and_stops(session_factory, db_session, clock, expiring_message):
    clock.advance(3)
    reaper = ExpiryReaper(session_factory=session_factory, interval_seconds=0.1, clock=clock)

    await reaper.start()
    assert reaper.running
    for _ in range(50):
        if reaper.total_purged:
            break
        await asyncio.sleep(0.05)
    await reaper.stop()

    assert not reaper.running
    assert reaper.total_purged == 1
    assert _remaining(db_session) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        OperationalError("DELETE", {}, Exception("locked")),
        ValueError("boom"),
        OSError("disk gone"),
        RuntimeError("worker thread failed"),
    ],
)
async def test_loop_survives_purge_errors(mocker, clock, caplog, error):
    reaper = ExpiryReaper(session_factory=mocker.MagicMock(), interval_seconds=0.1, clock=clock)
    outcomes = iter([error, 3])

    def _purge() -> int:
        outcome = next(outcomes, 0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    purge = mocker.patch.object(reaper, "purge", side_effect=_purge)

    await reaper.start()
    for _ in range(50):
        if reaper.total_purged:
            break
        await asyncio.sleep(0.05)
    await reaper.stop()

    assert purge.call_count >= 2
    assert reaper.total_purged == 3
    assert "ExpiryReaper encountered" in caplog.text


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(session_factory):
    reaper = ExpiryReaper(session_factory=session_factory)
    await reaper.stop()
    assert not reaper.running


def test_interval_has_lower_bound(session_factory):
    assert ExpiryReaper(session_factory=session_factory, interval_seconds=0).interval_seconds == 0.1
