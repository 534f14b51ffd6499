"""
Presence estimation from stored status rows.

Pure functions of a status snapshot and "now"; heartbeats and refreshes belong
to the services layer.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from joysync.schemas.user_status import PresenceRead, UserStatus

FRESHNESS_WINDOW = timedelta(minutes=5)

JUST_NOW = "Just now"
ONLINE_LABEL = "Online"
NEVER_SEEN = "Never"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def default_date_format(value: date) -> str:
    """Locale date representation used for anything older than a week."""
    return value.strftime("%x")


def is_online(
    status: Optional[UserStatus],
    now: Optional[datetime] = None,
    *,
    freshness_window: timedelta = FRESHNESS_WINDOW,
) -> bool:
    """
    Effective online state: the stored flag, honored only while the last
    heartbeat is inside the freshness window.

    A missing status, or one without last_activity, is offline.
    """
    if status is None or not status.is_online or status.last_activity is None:
        return False
    elapsed = _now(now) - _as_utc(status.last_activity)
    return elapsed < freshness_window


def format_last_seen(
    last_seen: Optional[datetime],
    now: Optional[datetime] = None,
    *,
    date_format: Callable[[date], str] = default_date_format,
) -> str:
    """Human string for the time elapsed since last_seen."""
    if last_seen is None:
        return NEVER_SEEN
    last_seen = _as_utc(last_seen)
    elapsed_seconds = int((_now(now) - last_seen).total_seconds())
    if elapsed_seconds < 60:
        # Includes clock skew that puts last_seen in the future.
        return JUST_NOW
    minutes = elapsed_seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return date_format(last_seen.date())


def describe_status(
    user_id: str,
    status: Optional[UserStatus],
    now: Optional[datetime] = None,
    *,
    freshness_window: timedelta = FRESHNESS_WINDOW,
) -> PresenceRead:
    """Derive the displayed presence for one user."""
    online = is_online(status, now, freshness_window=freshness_window)
    last_seen = status.last_seen if status is not None else None
    return PresenceRead(
        user_id=user_id,
        is_online=online,
        last_seen=last_seen,
        last_seen_label=ONLINE_LABEL if online else format_last_seen(last_seen, now),
    )
