from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from joysync.db import get_db
from joysync.routers.utils.dependencies import get_current_user_id
from joysync.schemas.profile import ProfileData, ProfileUpsert
from joysync.services.profile_service import ProfileService

profiles_router = APIRouter(prefix="/profiles", tags=["Profile"])


@profiles_router.put("/me", response_model=ProfileData)
def upsert_my_profile(
    data: ProfileUpsert,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ProfileData:
    """Create or update the caller's display data. Role changes are not accepted here."""
    if data.role is not None:
        raise HTTPException(status_code=403, detail="Role cannot be changed")
    profile = ProfileService(db).upsert_profile(current_user_id, data)
    return ProfileData.model_validate(profile)


@profiles_router.get("/{user_id}", response_model=ProfileData)
def get_profile(
    user_id: str,
    _current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ProfileData:
    profile = ProfileService(db).get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileData.model_validate(profile)
