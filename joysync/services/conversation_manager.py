"""ConversationManager: facade for take_snapshot, list_conversations, get_thread, send, mark_read."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, ContextManager, List, Optional

from sqlalchemy.orm import Session as DBSession

from joysync.config import Settings, get_settings
from joysync.core import envelope_codec, reconciler
from joysync.core.changes import MESSAGES, ChangeEvent, ChangeNotifier, Unsubscribe
from joysync.core.snapshot import (
    ConversationSnapshot,
    display_name,
    reconcile_snapshot,
)
from joysync.infra.logging_config import get_logger
from joysync.models.message import Message
from joysync.schemas.conversation import ConversationListRow
from joysync.schemas.message import MessageCreate, MessageRead, MessageRow
from joysync.services.message_service import MessageService
from joysync.services.profile_service import ProfileService
from joysync.services.user_status_service import UserStatusService

logger = get_logger("conversation_manager")

OWN_SENDER_NAME = "You"


def to_message_read(
    message: Message, current_user_id: str, sender_name: str
) -> MessageRead:
    row = MessageRow.model_validate(message)
    return MessageRead(
        id=row.id,
        sender_id=row.sender_id,
        receiver_id=row.receiver_id,
        sender_name=OWN_SENDER_NAME if row.sender_id == current_user_id else sender_name,
        content=envelope_codec.decode(row.body),
        kind=row.kind,
        file_url=message.file_url,
        file_name=message.file_name,
        file_size=message.file_size,
        mime_type=message.mime_type,
        status=reconciler.message_status(row),
        created_at=row.created_at,
        read_at=row.read_at,
    )


class ConversationManager:
    def __init__(
        self,
        db: DBSession,
        notifier: Optional[ChangeNotifier] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.db = db
        self._settings = settings or get_settings()
        self._profile_svc = ProfileService(db)
        self._message_svc = MessageService(
            db, notifier=notifier, profile_service=self._profile_svc
        )
        self._status_svc = UserStatusService(db, notifier=notifier)

    def take_snapshot(
        self, user_id: str, now: Optional[datetime] = None
    ) -> ConversationSnapshot:
        """Read messages, then profiles and statuses of everyone they mention."""
        messages = [
            MessageRow.model_validate(m)
            for m in self._message_svc.query_messages(user_id)
        ]
        participant_ids = {user_id}
        for message in messages:
            participant_ids.add(message.sender_id)
            if message.receiver_id:
                participant_ids.add(message.receiver_id)
        return ConversationSnapshot(
            current_user_id=user_id,
            messages=tuple(messages),
            profiles=self._profile_svc.get_many(participant_ids),
            statuses=self._status_svc.query_user_status(participant_ids),
            taken_at=now or datetime.now(timezone.utc),
        )

    def list_conversations(
        self,
        user_id: str,
        search: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[ConversationListRow]:
        snapshot = self.take_snapshot(user_id, now=now)
        rows = reconcile_snapshot(
            snapshot,
            preview_length=self._settings.preview_max_length,
            freshness_window=self._settings.freshness_window,
        )
        return reconciler.filter_conversations(rows, search)

    def get_thread(self, user_id: str, counterpart_id: str) -> List[MessageRead]:
        """Messages of one conversation, oldest first, bodies decoded for display."""
        messages = self._message_svc.query_messages(user_id, counterpart_id)
        rows = reconciler.deduplicate(MessageRow.model_validate(m) for m in messages)
        by_id = {m.id: m for m in messages}
        ordered = sorted(rows, key=lambda r: (reconciler.created_at_key(r), r.id))
        counterpart_name = display_name(
            counterpart_id, self._profile_svc.get_many([counterpart_id])
        )
        return [to_message_read(by_id[r.id], user_id, counterpart_name) for r in ordered]

    def send(
        self, user_id: str, counterpart_id: str, data: MessageCreate
    ) -> MessageRead:
        message = self._message_svc.send_message(user_id, counterpart_id, data)
        return to_message_read(message, user_id, OWN_SENDER_NAME)

    def mark_read(self, user_id: str, counterpart_id: str) -> int:
        return self._message_svc.mark_conversation_read(user_id, counterpart_id)


SessionFactory = Callable[[], ContextManager[DBSession]]
ConversationsHandler = Callable[[List[ConversationListRow]], None]


class ConversationFeed:
    """
    Re-runs reconciliation for a user whenever a relevant message changes.

    Each notification takes a fresh snapshot in its own session; nothing is
    carried over between notifications.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: ChangeNotifier,
        settings: Optional[Settings] = None,
    ) -> None:
        self._session_factory = session_factory
        self._notifier = notifier
        self._settings = settings

    def watch(self, user_id: str, on_update: ConversationsHandler) -> Unsubscribe:
        def handle(event: ChangeEvent) -> None:
            if not self._concerns(event, user_id):
                return
            with self._session_factory() as db:
                rows = ConversationManager(db, settings=self._settings).list_conversations(
                    user_id
                )
            logger.debug(
                "Refreshed %d conversations for %s after %s", len(rows), user_id, event.action
            )
            on_update(rows)

        return self._notifier.subscribe(MESSAGES, handle)

    @staticmethod
    def _concerns(event: ChangeEvent, user_id: str) -> bool:
        sender_id = event.payload.get("sender_id")
        receiver_id = event.payload.get("receiver_id")
        return user_id in (sender_id, receiver_id) or receiver_id is None
