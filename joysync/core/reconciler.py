"""
Conversation reconciliation.

Derives ordered 1:1 conversation summaries from a flat, unordered collection
of message rows and the current user's id. Pure: the result depends only on
the inputs and is rebuilt from scratch on every call.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from joysync.core import envelope_codec
from joysync.schemas.conversation import ConversationListRow, ConversationSummary
from joysync.schemas.message import MessageRow, MessageStatus

NEW_MESSAGE_PLACEHOLDER = "New message"
PREVIEW_MAX_LENGTH = 50
ELLIPSIS = "..."
UNREAD_BADGE_CAP = 99

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def created_at_key(message: MessageRow) -> datetime:
    """Comparable creation time; missing timestamps sort as the epoch."""
    created_at = message.created_at
    if created_at is None:
        return EPOCH
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


def _recency_key(message: MessageRow) -> tuple[datetime, str]:
    # Equal timestamps fall back to the greater id.
    return created_at_key(message), message.id


def deduplicate(messages: Iterable[MessageRow]) -> List[MessageRow]:
    """Drop repeated ids. The last delivered copy of a row wins, in first-seen order."""
    by_id: Dict[str, MessageRow] = {}
    for message in messages:
        if message is None or not message.id:
            continue
        by_id[message.id] = message
    return list(by_id.values())


def counterpart_of(message: MessageRow, current_user_id: str) -> Optional[str]:
    """
    The other participant of message relative to current_user_id.

    None when the row has no counterpart: self-messages, the current user's own
    broadcast rows, and rows between two other users.
    """
    sender_id = message.sender_id
    receiver_id = message.receiver_id
    if not sender_id:
        return None
    if sender_id == current_user_id:
        if not receiver_id or receiver_id == current_user_id:
            return None
        return receiver_id
    if receiver_id is None or receiver_id == current_user_id:
        return sender_id
    return None


def partition_by_counterpart(
    messages: Iterable[MessageRow], current_user_id: str
) -> Dict[str, List[MessageRow]]:
    """Group rows by counterpart id."""
    partitions: Dict[str, List[MessageRow]] = {}
    for message in messages:
        counterpart_id = counterpart_of(message, current_user_id)
        if counterpart_id is None:
            continue
        partitions.setdefault(counterpart_id, []).append(message)
    return partitions


def is_unread(message: MessageRow, counterpart_id: str, current_user_id: str) -> bool:
    return (
        message.sender_id == counterpart_id
        and message.receiver_id == current_user_id
        and message.read_at is None
    )


def truncate(text: str, max_length: int = PREVIEW_MAX_LENGTH) -> str:
    """Cut text to max_length characters plus an ellipsis. Slices on code points."""
    if max_length <= 0 or len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def build_preview(body: Optional[str], max_length: int = PREVIEW_MAX_LENGTH) -> str:
    """Display text for a conversation's last message."""
    text = body or ""
    if envelope_codec.is_envelope(text):
        decoded = envelope_codec.decode(text)
        if decoded == text or not decoded.strip():
            return NEW_MESSAGE_PLACEHOLDER
        text = decoded
    return truncate(text, max_length)


def _summarize(
    counterpart_id: str,
    rows: Sequence[MessageRow],
    current_user_id: str,
    preview_length: int,
) -> ConversationSummary:
    last_message = max(rows, key=_recency_key) if rows else None
    unread_count = sum(
        1 for message in rows if is_unread(message, counterpart_id, current_user_id)
    )
    return ConversationSummary(
        counterpart_id=counterpart_id,
        last_message=last_message,
        unread_count=unread_count,
        preview=build_preview(last_message.body, preview_length) if last_message else "",
    )


def _sort_conversations(
    conversations: List[ConversationSummary],
) -> List[ConversationSummary]:
    with_message = [c for c in conversations if c.last_message is not None]
    without_message = [c for c in conversations if c.last_message is None]
    with_message.sort(
        key=lambda c: (*_recency_key(c.last_message), c.counterpart_id),
        reverse=True,
    )
    without_message.sort(key=lambda c: c.counterpart_id)
    return with_message + without_message


def reconcile(
    messages: Iterable[MessageRow],
    current_user_id: str,
    *,
    preview_length: int = PREVIEW_MAX_LENGTH,
) -> List[ConversationSummary]:
    """
    Build conversation summaries for current_user_id, newest first.

    Duplicate ids are collapsed before partitioning. Empty input, or a missing
    current user, yields an empty list.
    """
    if not current_user_id:
        return []
    rows = deduplicate(messages or [])
    partitions = partition_by_counterpart(rows, current_user_id)
    conversations = [
        _summarize(counterpart_id, partition, current_user_id, preview_length)
        for counterpart_id, partition in partitions.items()
    ]
    return _sort_conversations(conversations)


def filter_conversations(
    rows: Sequence[ConversationListRow], query: Optional[str]
) -> List[ConversationListRow]:
    """Case-insensitive display-name search. A blank query keeps every row."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(rows)
    return [row for row in rows if needle in (row.display_name or "").lower()]


def unread_badge(count: int) -> str:
    if count <= 0:
        return ""
    if count > UNREAD_BADGE_CAP:
        return f"{UNREAD_BADGE_CAP}+"
    return str(count)


def message_status(message: MessageRow) -> MessageStatus:
    if message.read_at is not None:
        return "read"
    if message.delivered_at is not None:
        return "delivered"
    return "sent"
