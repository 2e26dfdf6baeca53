"""Tests for room fan-out, presence broadcasts and chat history."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from afterclasses.models import ChatMessage
from afterclasses.services.chat import (
    ONLINE_USERS,
    RECEIVE_MESSAGE,
    ChatRelay,
    history,
    room_key,
)
from tests.conftest import FakeConnection


def test_room_key_is_symmetric() -> None:
    assert room_key(3, 12) == room_key(12, 3)
    assert room_key("alice", "bob") == "alice_bob"


@pytest.mark.asyncio
async def test_register_broadcasts_online_users() -> None:
    relay = ChatRelay()
    alice, bob = FakeConnection(), FakeConnection()

    await relay.register(alice, 1)
    await relay.register(bob, 2)

    assert alice.events(ONLINE_USERS) == [["1"], ["1", "2"]]
    assert bob.events(ONLINE_USERS) == [["1", "2"]]


@pytest.mark.asyncio
async def test_anonymous_connections_receive_presence() -> None:
    relay = ChatRelay()
    watcher = FakeConnection()
    relay.connect(watcher)

    await relay.register(FakeConnection(), 5)

    assert watcher.events(ONLINE_USERS) == [["5"]]


@pytest.mark.asyncio
async def test_join_room_either_order_receives_message(db_session, test_user, other_user) -> None:
    relay = ChatRelay()
    alice, bob, outsider = FakeConnection(), FakeConnection(), FakeConnection()
    relay.join_room(alice, test_user.id, other_user.id)
    relay.join_room(bob, other_user.id, test_user.id)
    relay.join_room(bob, other_user.id, test_user.id)
    relay.join_room(outsider, test_user.id, 999)

    message = await relay.send_message(db_session, test_user.id, other_user.id, "hey")

    assert message is not None and message.id is not None
    received = bob.events(RECEIVE_MESSAGE)
    assert len(received) == 1
    assert received[0]["id"] == message.id
    assert received[0]["sender_id"] == test_user.id
    assert received[0]["receiver_id"] == other_user.id
    assert received[0]["message"] == "hey"
    assert received[0]["created_at"]
    assert len(alice.events(RECEIVE_MESSAGE)) == 1
    assert outsider.events(RECEIVE_MESSAGE) == []


@pytest.mark.asyncio
async def test_persistence_failure_skips_broadcast() -> None:
    relay = ChatRelay()
    listener = FakeConnection()
    relay.join_room(listener, 1, 2)
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("database is down"))

    message = await relay.send_message(db, 1, 2, "lost")

    assert message is None
    db.rollback.assert_called_once()
    assert listener.frames == []


@pytest.mark.asyncio
async def test_broken_subscriber_does_not_block_others(db_session, test_user, other_user) -> None:
    relay = ChatRelay()
    broken, healthy = FakeConnection(broken=True), FakeConnection()
    relay.join_room(broken, test_user.id, other_user.id)
    relay.join_room(healthy, other_user.id, test_user.id)

    await relay.send_message(db_session, test_user.id, other_user.id, "still delivered")

    assert len(healthy.events(RECEIVE_MESSAGE)) == 1


@pytest.mark.asyncio
async def test_disconnect_prunes_presence_and_rooms() -> None:
    relay = ChatRelay()
    alice, bob = FakeConnection(), FakeConnection()
    await relay.register(alice, 1)
    await relay.register(bob, 2)
    key = relay.join_room(bob, 2, 1)

    await relay.disconnect(bob)

    assert "2" not in relay.presence
    assert relay.members(key) == frozenset()
    assert alice.events(ONLINE_USERS)[-1] == ["1"]


@pytest.mark.asyncio
async def test_disconnect_of_replaced_connection_keeps_user_online() -> None:
    relay = ChatRelay()
    old, new = FakeConnection(), FakeConnection()
    await relay.register(old, 1)
    await relay.register(new, 1)

    await relay.disconnect(old)

    assert relay.presence.lookup("1") is new


@pytest.mark.asyncio
async def test_disconnect_after_switching_identity_clears_presence() -> None:
    relay = ChatRelay()
    watcher, conn = FakeConnection(), FakeConnection()
    await relay.register(watcher, 99)
    await relay.register(conn, 1)
    await relay.register(conn, 2)

    assert relay.presence.online() == ["2", "99"]

    await relay.disconnect(conn)

    assert relay.presence.online() == ["99"]
    assert watcher.events(ONLINE_USERS)[-1] == ["99"]


def test_history_orders_by_creation_time(db_session, test_user, other_user) -> None:
    base = datetime(2026, 1, 1, tzinfo=UTC)
    rows = [
        ChatMessage(sender_id=other_user.id, receiver_id=test_user.id, message="t3",
                    created_at=base + timedelta(seconds=3)),
        ChatMessage(sender_id=test_user.id, receiver_id=other_user.id, message="t1",
                    created_at=base + timedelta(seconds=1)),
        ChatMessage(sender_id=other_user.id, receiver_id=test_user.id, message="t2",
                    created_at=base + timedelta(seconds=2)),
        ChatMessage(sender_id=test_user.id, receiver_id=999, message="elsewhere",
                    created_at=base),
    ]
    db_session.add_all(rows)
    db_session.commit()

    forward = [m.message for m in history(db_session, test_user.id, other_user.id)]
    backward = [m.message for m in history(db_session, other_user.id, test_user.id)]

    assert forward == ["t1", "t2", "t3"]
    assert backward == forward
