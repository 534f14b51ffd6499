"""Pydantic schemas for user presence."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserStatus(BaseModel):
    """Presence snapshot for one user as read from the store."""

    user_id: str
    is_online: bool = False
    last_activity: Optional[datetime] = None
    last_seen: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}


class PresenceRead(BaseModel):
    """Derived presence for API responses."""

    user_id: str
    is_online: bool
    last_seen: Optional[datetime] = None
    last_seen_label: str
