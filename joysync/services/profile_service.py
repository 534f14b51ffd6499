"""Profile lookups and upserts."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session as DBSession

from joysync.core.snapshot import display_name
from joysync.models.profile import Profile
from joysync.schemas.profile import ProfileData, ProfileUpsert


class ProfileService:
    def __init__(self, db: DBSession) -> None:
        self.db = db

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.user_id == user_id).first()

    def get_profiles(self, skip: int = 0, limit: int = 100) -> List[Profile]:
        return (
            self.db.query(Profile)
            .order_by(Profile.user_id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, ProfileData]:
        """Profiles for the given ids keyed by user id. Unknown ids are simply absent."""
        ids = {user_id for user_id in user_ids if user_id}
        if not ids:
            return {}
        rows = self.db.query(Profile).filter(Profile.user_id.in_(ids)).all()
        return {row.user_id: ProfileData.model_validate(row) for row in rows}

    def display_name(self, user_id: str) -> str:
        return display_name(user_id, self.get_many([user_id]))

    def is_admin(self, user_id: str) -> bool:
        profile = self.get_profile(user_id)
        return profile is not None and profile.role == "admin"

    def upsert_profile(self, user_id: str, data: ProfileUpsert) -> Profile:
        """Create the profile if missing, then apply the fields that were set."""
        profile = self.get_profile(user_id)
        if profile is None:
            profile = Profile(user_id=user_id)
            self.db.add(profile)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(profile, key, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile
