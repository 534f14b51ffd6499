"""Fixtures for message rows."""

from datetime import datetime, timedelta, timezone

import pytest

from joysync.core import envelope_codec
from joysync.models.message import Message


@pytest.fixture(scope="function")
def message_factory(db, faker):
    """Insert a message with an enveloped body. Pass body= to store raw text instead."""

    def create(sender_id, receiver_id, text=None, **overrides) -> Message:
        fields = {
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "body": envelope_codec.encode(text if text is not None else faker.sentence()),
            "created_at": datetime.now(timezone.utc),
        }
        fields.update(overrides)
        message = Message(**fields)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    return create


@pytest.fixture(scope="function")
def setup_exchange(message_factory, setup_profile, setup_counterpart):
    """Two messages between the acting user and the counterpart; the reply is unread."""
    base = datetime.now(timezone.utc) - timedelta(minutes=10)
    first = message_factory(
        setup_profile.user_id, setup_counterpart.user_id, "hi", created_at=base
    )
    reply = message_factory(
        setup_counterpart.user_id,
        setup_profile.user_id,
        "hey",
        created_at=base + timedelta(minutes=1),
    )
    return first, reply
