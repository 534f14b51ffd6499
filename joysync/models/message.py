"""Message model: one row per direct (or legacy broadcast) chat message."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from joysync.db import Base


class Message(Base):
    """
    One row per message. Body holds the envelope produced by the codec.

    receiver_id is nullable for legacy broadcast rows. Deletion is soft.
    """

    __tablename__ = "messages"

    __table_args__ = (
        Index("ix_messages_sender_receiver_created", "sender_id", "receiver_id", "created_at"),
        Index("ix_messages_receiver_read", "receiver_id", "read_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sender_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=True)
    body = Column(Text, nullable=False, default="")
    kind = Column(String(16), nullable=False, default="text")  # text | image | video | file
    file_url = Column(Text, nullable=True)
    file_name = Column(String(512), nullable=True)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(128), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(64), nullable=True)
