"""Presence API: heartbeat, explicit offline and status lookups."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from joysync.config import Settings
from joysync.db import get_db
from joysync.routers.utils.dependencies import (
    get_app_settings,
    get_current_user_id,
    get_notifier,
)
from joysync.schemas.user_status import PresenceRead
from joysync.services.user_status_service import UserStatusService

status_router = APIRouter(prefix="/status", tags=["Status"])


@status_router.post("/heartbeat", response_model=PresenceRead)
def heartbeat(
    current_user_id: str = Depends(get_current_user_id),
    notifier=Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
) -> PresenceRead:
    """Mark the caller online. Clients call this every heartbeat interval."""
    svc = UserStatusService(db, notifier=notifier)
    svc.update_activity(current_user_id)
    return svc.describe([current_user_id], freshness_window=settings.freshness_window)[0]


@status_router.post("/offline", response_model=PresenceRead)
def go_offline(
    current_user_id: str = Depends(get_current_user_id),
    notifier=Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
) -> PresenceRead:
    svc = UserStatusService(db, notifier=notifier)
    if svc.set_offline(current_user_id) is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return svc.describe([current_user_id], freshness_window=settings.freshness_window)[0]


@status_router.get("", response_model=List[PresenceRead])
def get_statuses(
    user_ids: List[str] = Query([]),
    _current_user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
) -> List[PresenceRead]:
    """Effective presence for each requested user, in request order."""
    ids = [part.strip() for value in user_ids for part in value.split(",")]
    return UserStatusService(db).describe(ids, freshness_window=settings.freshness_window)
