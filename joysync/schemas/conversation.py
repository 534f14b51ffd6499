"""Pydantic schemas for derived conversations."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from joysync.schemas.message import MessageRow


class ConversationSummary(BaseModel):
    """One 1:1 conversation between the current user and a counterpart. Never persisted."""

    counterpart_id: str
    last_message: Optional[MessageRow] = None
    unread_count: int = 0
    preview: str = ""

    model_config = {"frozen": True}


class ConversationListRow(ConversationSummary):
    """Conversation annotated with counterpart profile and presence for list views."""

    display_name: str
    avatar_url: Optional[str] = None
    is_online: bool = False
    last_seen_label: str = ""
    unread_badge: str = ""
