"""Tests for ConversationManager and ConversationFeed."""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest

from joysync.core.snapshot import UNKNOWN_USER
from joysync.schemas.message import MessageCreate
from joysync.services.conversation_manager import (
    OWN_SENDER_NAME,
    ConversationFeed,
    ConversationManager,
)


@pytest.fixture
def manager(db, notifier):
    return ConversationManager(db, notifier=notifier)


@pytest.fixture
def scoped_session(session_factory):
    @contextmanager
    def open_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    return open_session


def test_take_snapshot_collects_participants(
    manager, setup_exchange, setup_profile, setup_counterpart
):
    snapshot = manager.take_snapshot(setup_profile.user_id)
    assert snapshot.current_user_id == setup_profile.user_id
    assert {m.id for m in snapshot.messages} == {m.id for m in setup_exchange}
    assert set(snapshot.profiles) == {setup_profile.user_id, setup_counterpart.user_id}
    assert setup_counterpart.user_id in snapshot.statuses


def test_list_conversations(manager, setup_exchange, setup_profile, setup_counterpart):
    rows = manager.list_conversations(setup_profile.user_id)
    assert len(rows) == 1
    row = rows[0]
    assert row.counterpart_id == setup_counterpart.user_id
    assert row.display_name == setup_counterpart.display_name
    assert row.last_message.id == setup_exchange[1].id
    assert row.preview == "hey"
    assert row.unread_count == 1
    assert row.unread_badge == "1"
    assert row.is_online
    assert row.last_seen_label == "Online"


def test_list_conversations_unknown_counterpart(
    manager, message_factory, setup_profile, faker
):
    stranger = faker.uuid4()
    message_factory(stranger, setup_profile.user_id, "who is this")
    row = manager.list_conversations(setup_profile.user_id)[0]
    assert row.counterpart_id == stranger
    assert row.display_name == UNKNOWN_USER
    assert row.last_seen_label == "Never"


def test_list_conversations_newest_first(
    manager, message_factory, profile_factory, setup_profile
):
    old, new = profile_factory(), profile_factory()
    now = datetime.now(timezone.utc)
    message_factory(old.user_id, setup_profile.user_id, created_at=now - timedelta(hours=1))
    message_factory(setup_profile.user_id, new.user_id, created_at=now)

    rows = manager.list_conversations(setup_profile.user_id)
    assert [r.counterpart_id for r in rows] == [new.user_id, old.user_id]


def test_list_conversations_search(
    manager, message_factory, profile_factory, setup_profile
):
    zara = profile_factory(display_name="Zara Quinn")
    other = profile_factory(display_name="Milo Hart")
    message_factory(zara.user_id, setup_profile.user_id)
    message_factory(other.user_id, setup_profile.user_id)

    rows = manager.list_conversations(setup_profile.user_id, search="zara")
    assert [r.counterpart_id for r in rows] == [zara.user_id]


def test_get_thread_decodes_and_orders(
    manager, setup_exchange, setup_profile, setup_counterpart
):
    thread = manager.get_thread(setup_profile.user_id, setup_counterpart.user_id)
    assert [m.content for m in thread] == ["hi", "hey"]
    assert thread[0].sender_name == OWN_SENDER_NAME
    assert thread[1].sender_name == setup_counterpart.display_name
    assert [m.status for m in thread] == ["sent", "sent"]


def test_send_and_mark_read(manager, db, setup_profile, setup_counterpart):
    sent = manager.send(
        setup_counterpart.user_id, setup_profile.user_id, MessageCreate(content="yo")
    )
    assert sent.content == "yo"
    assert sent.sender_name == OWN_SENDER_NAME
    assert sent.status == "sent"

    assert manager.mark_read(setup_profile.user_id, setup_counterpart.user_id) == 1
    thread = manager.get_thread(setup_profile.user_id, setup_counterpart.user_id)
    assert thread[-1].status == "read"
    assert manager.list_conversations(setup_profile.user_id)[0].unread_count == 0


def test_feed_rebuilds_on_relevant_change(
    manager, notifier, scoped_session, setup_profile, setup_counterpart
):
    updates = []
    feed = ConversationFeed(scoped_session, notifier)
    unsubscribe = feed.watch(setup_profile.user_id, updates.append)

    manager.send(setup_counterpart.user_id, setup_profile.user_id, MessageCreate(content="new"))

    assert len(updates) == 1
    assert updates[0][0].preview == "new"
    assert updates[0][0].unread_count == 1

    unsubscribe()
    manager.send(setup_counterpart.user_id, setup_profile.user_id, MessageCreate(content="again"))
    assert len(updates) == 1


def test_feed_ignores_unrelated_change(
    manager, notifier, scoped_session, profile_factory, setup_profile
):
    a, b = profile_factory(), profile_factory()
    updates = []
    ConversationFeed(scoped_session, notifier).watch(setup_profile.user_id, updates.append)

    manager.send(a.user_id, b.user_id, MessageCreate(content="private"))

    assert updates == []
