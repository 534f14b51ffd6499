"""Conversations API: list, thread, send, mark read."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi_pagination import Page, Params, paginate
from sqlalchemy.orm import Session

from joysync.config import Settings
from joysync.core.changes import ChangeNotifier
from joysync.db import get_db
from joysync.routers.utils.dependencies import (
    get_app_settings,
    get_current_user_id,
    get_notifier,
)
from joysync.schemas.conversation import ConversationListRow
from joysync.schemas.message import MessageCreate, MessageRead
from joysync.services.conversation_manager import ConversationManager

conversations_router = APIRouter(prefix="/conversations", tags=["Conversation"])


def _manager(
    db: Session = Depends(get_db),
    notifier: Optional[ChangeNotifier] = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
) -> ConversationManager:
    return ConversationManager(db, notifier=notifier, settings=settings)


@conversations_router.get("", response_model=Page[ConversationListRow])
def list_conversations(
    params: Params = Depends(),
    search: Optional[str] = Query(None),
    current_user_id: str = Depends(get_current_user_id),
    manager: ConversationManager = Depends(_manager),
) -> Page[ConversationListRow]:
    """List the caller's conversations, most recent first."""
    rows = manager.list_conversations(current_user_id, search=search)
    return paginate(rows, params=params)


@conversations_router.get(
    "/{counterpart_id}/messages", response_model=List[MessageRead]
)
def get_thread(
    counterpart_id: str,
    current_user_id: str = Depends(get_current_user_id),
    manager: ConversationManager = Depends(_manager),
) -> List[MessageRead]:
    """Messages exchanged with counterpart_id, oldest first."""
    return manager.get_thread(current_user_id, counterpart_id)


@conversations_router.post(
    "/{counterpart_id}/messages", response_model=MessageRead, status_code=201
)
def send_message(
    counterpart_id: str,
    data: MessageCreate,
    current_user_id: str = Depends(get_current_user_id),
    manager: ConversationManager = Depends(_manager),
) -> MessageRead:
    try:
        return manager.send(current_user_id, counterpart_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@conversations_router.post("/{counterpart_id}/read", response_model=dict)
def mark_read(
    counterpart_id: str,
    current_user_id: str = Depends(get_current_user_id),
    manager: ConversationManager = Depends(_manager),
) -> dict:
    """Mark everything counterpart_id sent to the caller as read."""
    updated = manager.mark_read(current_user_id, counterpart_id)
    return {"updated": updated}
