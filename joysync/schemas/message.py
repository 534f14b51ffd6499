"""Pydantic schemas for chat messages."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class MessageKind(str, Enum):
    """Kinds of message body a row can carry."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"


MessageStatus = Literal["sent", "delivered", "read"]


class MessageRow(BaseModel):
    """
    A message row as materialized from the store.

    Immutable input to the reconciler. body is the stored envelope; created_at
    may be missing on malformed rows and read_at is None while unread.
    """

    id: str
    sender_id: str
    receiver_id: Optional[str] = None
    body: str = ""
    kind: MessageKind = MessageKind.TEXT
    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value: Any) -> Any:
        # Rows written by older clients may lack a kind or carry an unknown one.
        if isinstance(value, MessageKind):
            return value
        try:
            return MessageKind(value)
        except ValueError:
            return MessageKind.TEXT

    @field_validator("body", mode="before")
    @classmethod
    def _coerce_body(cls, value: Any) -> Any:
        return "" if value is None else value


class MessageCreate(BaseModel):
    """Schema for sending a message. content is plain text; it is wrapped before storage."""

    content: str = Field(default="", max_length=10000)
    kind: MessageKind = MessageKind.TEXT
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = None


class MessageRead(BaseModel):
    """Message for API responses with the body decoded for display."""

    id: str
    sender_id: str
    receiver_id: Optional[str] = None
    sender_name: str
    content: str
    kind: MessageKind
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    status: MessageStatus = "sent"
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
