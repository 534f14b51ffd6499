"""Immutable read snapshot of the store and the pure annotation over it."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from joysync.core import presence, reconciler
from joysync.schemas.conversation import ConversationListRow, ConversationSummary
from joysync.schemas.message import MessageRow
from joysync.schemas.profile import ProfileData
from joysync.schemas.user_status import UserStatus

UNKNOWN_USER = "Unknown User"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConversationSnapshot:
    """
    Everything a conversation list needs, read once.

    Callers take a new snapshot when they decide to refresh (timer, change
    notification, manual) and pass it down; nothing here is shared or cached.
    """

    current_user_id: str
    messages: Tuple[MessageRow, ...] = ()
    profiles: Mapping[str, ProfileData] = field(default_factory=dict)
    statuses: Mapping[str, UserStatus] = field(default_factory=dict)
    taken_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))
        object.__setattr__(self, "profiles", MappingProxyType(dict(self.profiles)))
        object.__setattr__(self, "statuses", MappingProxyType(dict(self.statuses)))


def display_name(user_id: str, profiles: Mapping[str, ProfileData]) -> str:
    """Profile display name, or "Unknown User" when there is no usable profile."""
    profile = profiles.get(user_id)
    if profile is not None and profile.display_name:
        return profile.display_name
    return UNKNOWN_USER


def annotate_conversations(
    conversations: Sequence[ConversationSummary],
    snapshot: ConversationSnapshot,
    *,
    freshness_window: timedelta = presence.FRESHNESS_WINDOW,
) -> List[ConversationListRow]:
    """Attach counterpart profile and presence to each conversation, keeping order."""
    rows: List[ConversationListRow] = []
    for conversation in conversations:
        counterpart_id = conversation.counterpart_id
        profile: Optional[ProfileData] = snapshot.profiles.get(counterpart_id)
        state = presence.describe_status(
            counterpart_id,
            snapshot.statuses.get(counterpart_id),
            snapshot.taken_at,
            freshness_window=freshness_window,
        )
        rows.append(
            ConversationListRow(
                counterpart_id=counterpart_id,
                last_message=conversation.last_message,
                unread_count=conversation.unread_count,
                preview=conversation.preview,
                display_name=display_name(counterpart_id, snapshot.profiles),
                avatar_url=profile.avatar_url if profile is not None else None,
                is_online=state.is_online,
                last_seen_label=state.last_seen_label,
                unread_badge=reconciler.unread_badge(conversation.unread_count),
            )
        )
    return rows


def reconcile_snapshot(
    snapshot: ConversationSnapshot,
    *,
    preview_length: int = reconciler.PREVIEW_MAX_LENGTH,
    freshness_window: timedelta = presence.FRESHNESS_WINDOW,
) -> List[ConversationListRow]:
    """reconcile + annotate in one pass over a snapshot."""
    conversations = reconciler.reconcile(
        snapshot.messages,
        snapshot.current_user_id,
        preview_length=preview_length,
    )
    return annotate_conversations(
        conversations, snapshot, freshness_window=freshness_window
    )
