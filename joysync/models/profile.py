"""Profile model: display data, role and presence columns per user."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, Text

from joysync.db import Base
from joysync.models.mixins import TimestampMixin


class Profile(Base, TimestampMixin):
    """One row per user. Presence columns are written by heartbeats."""

    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True)
    display_name = Column(String(256), nullable=True)
    avatar_url = Column(Text, nullable=True)
    role = Column(String(16), nullable=False, default="user")  # 'user' | 'admin'
    is_online = Column(Boolean, nullable=False, default=False)
    last_seen = Column(DateTime(timezone=True), nullable=True)
    last_activity = Column(DateTime(timezone=True), nullable=True)
