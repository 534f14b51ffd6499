from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from joysync.db import get_db
from joysync.models.message import Message
from joysync.routers.utils.dependencies import (
    get_current_user_id,
    get_message_by_id,
    get_notifier,
)
from joysync.services.message_service import MessageService

messages_router = APIRouter(prefix="/messages", tags=["Message"])


@messages_router.delete("/{message_id}", status_code=204)
def delete_message(
    message: Message = Depends(get_message_by_id),
    current_user_id: str = Depends(get_current_user_id),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
) -> Response:
    """Soft-delete a message. Only its sender or an admin may delete it."""
    svc = MessageService(db, notifier=notifier)
    try:
        deleted = svc.delete_message(message.id, current_user_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    if not deleted:
        raise HTTPException(status_code=404, detail="Message not found")
    return Response(status_code=204)
