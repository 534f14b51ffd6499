"""Tests for MessageService."""

from datetime import datetime, timezone

import pytest

from joysync.core import envelope_codec
from joysync.core.changes import MESSAGES
from joysync.schemas.message import MessageCreate, MessageKind
from joysync.services.message_service import MessageService


def test_send_message_stores_envelope(db, setup_profile, setup_counterpart):
    svc = MessageService(db)
    message = svc.send_message(
        setup_profile.user_id, setup_counterpart.user_id, MessageCreate(content="  hi there ")
    )
    assert message.id
    assert message.kind == "text"
    assert envelope_codec.is_envelope(message.body)
    assert envelope_codec.decode(message.body) == "hi there"


def test_send_empty_message_rejected(db, setup_profile, setup_counterpart):
    with pytest.raises(ValueError, match="cannot be empty"):
        MessageService(db).send_message(
            setup_profile.user_id, setup_counterpart.user_id, MessageCreate(content="   ")
        )


def test_send_media_message_defaults_body(db, setup_profile, setup_counterpart):
    message = MessageService(db).send_message(
        setup_profile.user_id,
        setup_counterpart.user_id,
        MessageCreate(
            kind=MessageKind.IMAGE,
            file_url="https://files.example/cat.png",
            file_name="cat.png",
            file_size=1024,
            mime_type="image/png",
        ),
    )
    assert message.kind == "image"
    assert message.file_size == 1024
    assert envelope_codec.decode(message.body) == "📸 cat.png"


def test_send_media_without_file_rejected(db, setup_profile, setup_counterpart):
    with pytest.raises(ValueError, match="file_url is required"):
        MessageService(db).send_message(
            setup_profile.user_id,
            setup_counterpart.user_id,
            MessageCreate(kind=MessageKind.VIDEO),
        )


def test_send_publishes_insert(db, notifier, setup_profile, setup_counterpart):
    events = []
    notifier.subscribe(MESSAGES, events.append)
    message = MessageService(db, notifier=notifier).send_message(
        setup_profile.user_id, setup_counterpart.user_id, MessageCreate(content="ping")
    )
    assert len(events) == 1
    assert events[0].action == "insert"
    assert events[0].record_id == message.id
    assert events[0].payload == {
        "sender_id": setup_profile.user_id,
        "receiver_id": setup_counterpart.user_id,
    }


def test_query_messages_visibility(
    db, message_factory, profile_factory, setup_profile, setup_counterpart
):
    other = profile_factory()
    mine = message_factory(setup_profile.user_id, setup_counterpart.user_id)
    theirs = message_factory(setup_counterpart.user_id, setup_profile.user_id)
    broadcast = message_factory(other.user_id, None)
    hidden = message_factory(other.user_id, setup_counterpart.user_id)
    deleted = message_factory(
        setup_counterpart.user_id, setup_profile.user_id, is_deleted=True
    )

    svc = MessageService(db)
    ids = {m.id for m in svc.query_messages(setup_profile.user_id)}
    assert ids == {mine.id, theirs.id, broadcast.id}
    assert hidden.id not in ids
    assert deleted.id not in ids

    thread_ids = {
        m.id for m in svc.query_messages(setup_profile.user_id, setup_counterpart.user_id)
    }
    assert thread_ids == {mine.id, theirs.id}


def test_mark_conversation_read(db, setup_exchange, setup_profile, setup_counterpart):
    first, reply = setup_exchange
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    svc = MessageService(db)

    assert svc.mark_conversation_read(setup_profile.user_id, setup_counterpart.user_id, now) == 1
    db.refresh(reply)
    db.refresh(first)
    assert reply.read_at is not None
    assert reply.delivered_at is not None
    assert first.read_at is None

    assert svc.mark_conversation_read(setup_profile.user_id, setup_counterpart.user_id) == 0


def test_delete_own_message(db, setup_exchange, setup_profile, notifier):
    first, _ = setup_exchange
    events = []
    notifier.subscribe(MESSAGES, events.append)
    svc = MessageService(db, notifier=notifier)

    assert svc.delete_message(first.id, setup_profile.user_id) is True
    assert svc.get_message(first.id) is None
    assert [e.action for e in events] == ["delete"]


def test_delete_someone_elses_message_forbidden(db, setup_exchange, setup_profile):
    _, reply = setup_exchange
    with pytest.raises(PermissionError):
        MessageService(db).delete_message(reply.id, setup_profile.user_id)


def test_admin_may_delete_any_message(db, setup_exchange, setup_admin):
    _, reply = setup_exchange
    assert MessageService(db).delete_message(reply.id, setup_admin.user_id) is True
    db.refresh(reply)
    assert reply.is_deleted
    assert reply.deleted_by == setup_admin.user_id


def test_delete_missing_message(db, setup_profile):
    assert MessageService(db).delete_message("missing", setup_profile.user_id) is False
