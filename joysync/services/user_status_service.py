"""Presence rows: read snapshots, heartbeats and explicit offline."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session as DBSession

from joysync.core import presence
from joysync.core.changes import PROFILES, ChangeEvent, ChangeNotifier
from joysync.infra.logging_config import get_logger
from joysync.models.profile import Profile
from joysync.schemas.user_status import PresenceRead, UserStatus

logger = get_logger("user_status")


class UserStatusService:
    def __init__(
        self,
        db: DBSession,
        notifier: Optional[ChangeNotifier] = None,
    ) -> None:
        self.db = db
        self._notifier = notifier

    def query_user_status(self, user_ids: Iterable[str]) -> Dict[str, UserStatus]:
        """Status snapshots keyed by user id. Users without a profile row are absent."""
        ids = {user_id for user_id in user_ids if user_id}
        if not ids:
            return {}
        rows = self.db.query(Profile).filter(Profile.user_id.in_(ids)).all()
        return {
            row.user_id: UserStatus(
                user_id=row.user_id,
                is_online=bool(row.is_online),
                last_activity=row.last_activity,
                last_seen=row.last_seen,
            )
            for row in rows
        }

    def describe(
        self,
        user_ids: Iterable[str],
        now: Optional[datetime] = None,
        freshness_window: timedelta = presence.FRESHNESS_WINDOW,
    ) -> List[PresenceRead]:
        """Derived presence for each requested id, in request order."""
        ordered = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
        statuses = self.query_user_status(ordered)
        return [
            presence.describe_status(
                user_id,
                statuses.get(user_id),
                now,
                freshness_window=freshness_window,
            )
            for user_id in ordered
        ]

    def update_activity(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Profile:
        """Heartbeat: mark online and stamp activity. Creates the profile row if needed."""
        now = now or datetime.now(timezone.utc)
        profile = self._get_or_create(user_id)
        profile.is_online = True
        profile.last_activity = now
        profile.last_seen = now
        self.db.commit()
        self.db.refresh(profile)
        logger.info("Heartbeat from %s", user_id)
        self._publish(user_id, "update", {"is_online": True})
        return profile

    def set_offline(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Optional[Profile]:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is None:
            return None
        profile.is_online = False
        profile.last_seen = now or datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(profile)
        logger.info("User %s set offline", user_id)
        self._publish(user_id, "update", {"is_online": False})
        return profile

    def _get_or_create(self, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is None:
            profile = Profile(user_id=user_id)
            self.db.add(profile)
        return profile

    def _publish(self, user_id: str, action: str, payload: dict) -> None:
        if self._notifier is not None:
            self._notifier.publish(
                ChangeEvent(
                    collection=PROFILES,
                    action=action,
                    record_id=user_id,
                    payload=payload,
                )
            )
