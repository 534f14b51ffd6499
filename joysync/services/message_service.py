"""Message store operations: query, send, mark read, soft delete."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session as DBSession

from joysync.core import envelope_codec
from joysync.core.changes import MESSAGES, ChangeEvent, ChangeNotifier
from joysync.infra.logging_config import get_logger
from joysync.models.message import Message
from joysync.schemas.message import MessageCreate, MessageKind
from joysync.services.profile_service import ProfileService

logger = get_logger("message_service")

MEDIA_ICONS = {
    MessageKind.IMAGE: "📸",
    MessageKind.VIDEO: "🎥",
    MessageKind.FILE: "📎",
}


class MessageService:
    def __init__(
        self,
        db: DBSession,
        notifier: Optional[ChangeNotifier] = None,
        profile_service: Optional[ProfileService] = None,
    ) -> None:
        self.db = db
        self._notifier = notifier
        self._profile_svc = profile_service or ProfileService(db)

    def get_message(self, message_id: str) -> Optional[Message]:
        return (
            self.db.query(Message)
            .filter(Message.id == message_id, Message.is_deleted.is_(False))
            .first()
        )

    def get_messages_query(
        self, user_id: str, counterpart_id: Optional[str] = None
    ) -> Query[Message]:
        """
        Rows visible to user_id, oldest first.

        With a counterpart: both directions of that 1:1 exchange plus the
        counterpart's broadcast rows. Without: every row the user sent or
        received plus all broadcast rows.
        """
        query = self.db.query(Message).filter(Message.is_deleted.is_(False))
        if counterpart_id is None:
            query = query.filter(
                or_(
                    Message.sender_id == user_id,
                    Message.receiver_id == user_id,
                    Message.receiver_id.is_(None),
                )
            )
        else:
            query = query.filter(
                or_(
                    and_(
                        Message.sender_id == user_id,
                        Message.receiver_id == counterpart_id,
                    ),
                    and_(
                        Message.sender_id == counterpart_id,
                        or_(
                            Message.receiver_id == user_id,
                            Message.receiver_id.is_(None),
                        ),
                    ),
                )
            )
        return query.order_by(Message.created_at.asc(), Message.id.asc())

    def query_messages(
        self, user_id: str, counterpart_id: Optional[str] = None
    ) -> List[Message]:
        return self.get_messages_query(user_id, counterpart_id).all()

    def send_message(
        self,
        sender_id: str,
        receiver_id: Optional[str],
        data: MessageCreate,
    ) -> Message:
        """
        Validate, wrap the body in an envelope and insert.

        Raises ValueError for an empty text message or a media message without a file.
        """
        content = (data.content or "").strip()
        if data.kind == MessageKind.TEXT:
            if not content:
                raise ValueError("Message cannot be empty")
        else:
            if not data.file_url:
                raise ValueError(f"file_url is required for {data.kind.value} messages")
            if not content:
                content = f"{MEDIA_ICONS[data.kind]} {data.file_name or 'attachment'}"

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id or None,
            body=envelope_codec.encode(content),
            kind=data.kind.value,
            file_url=data.file_url,
            file_name=data.file_name,
            file_size=data.file_size,
            mime_type=data.mime_type,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        logger.info(
            "Message %s sent by %s to %s (%s)",
            message.id,
            sender_id,
            receiver_id or "broadcast",
            message.kind,
        )
        self._publish(message, "insert")
        return message

    def mark_conversation_read(
        self,
        user_id: str,
        counterpart_id: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Set read markers on everything counterpart_id sent to user_id. Returns rows updated."""
        now = now or datetime.now(timezone.utc)
        unread = (
            self.db.query(Message)
            .filter(
                Message.sender_id == counterpart_id,
                Message.receiver_id == user_id,
                Message.read_at.is_(None),
                Message.is_deleted.is_(False),
            )
            .all()
        )
        for message in unread:
            message.read_at = now
            if message.delivered_at is None:
                message.delivered_at = now
        if not unread:
            return 0
        self.db.commit()
        logger.info(
            "Marked %d messages from %s read for %s", len(unread), counterpart_id, user_id
        )
        for message in unread:
            self._publish(message, "update")
        return len(unread)

    def delete_message(self, message_id: str, actor_id: str) -> bool:
        """
        Soft delete. Senders may delete their own messages; admins may delete any.

        Returns False when the message does not exist; raises PermissionError
        when actor_id may not delete it.
        """
        message = self.get_message(message_id)
        if message is None:
            return False
        if message.sender_id != actor_id and not self._profile_svc.is_admin(actor_id):
            logger.warning("User %s denied deleting message %s", actor_id, message_id)
            raise PermissionError("You can only delete your own messages")
        message.is_deleted = True
        message.deleted_at = datetime.now(timezone.utc)
        message.deleted_by = actor_id
        self.db.commit()
        self._publish(message, "delete")
        return True

    def _publish(self, message: Message, action: str) -> None:
        if self._notifier is None:
            return
        self._notifier.publish(
            ChangeEvent(
                collection=MESSAGES,
                action=action,
                record_id=message.id,
                payload={
                    "sender_id": message.sender_id,
                    "receiver_id": message.receiver_id,
                },
            )
        )
