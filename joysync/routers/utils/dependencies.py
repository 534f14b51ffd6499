from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from joysync.config import Settings, get_settings
from joysync.core.changes import ChangeNotifier
from joysync.db import get_db
from joysync.models.message import Message
from joysync.services.message_service import MessageService


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> str:
    """FastAPI dependency resolving the calling user from the X-User-Id header."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def get_notifier(request: Request) -> Optional[ChangeNotifier]:
    """The application's change notifier, if one was installed."""
    return getattr(request.app.state, "notifier", None)


def get_app_settings() -> Settings:
    return get_settings()


def get_message_by_id(
    message_id: str,
    db: Session = Depends(get_db),
) -> Message:
    """FastAPI dependency to get a message by ID."""
    message = MessageService(db).get_message(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return message
