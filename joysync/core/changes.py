from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

MESSAGES = "messages"
PROFILES = "profiles"


@dataclass(frozen=True)
class ChangeEvent:
    collection: str
    action: str  # 'insert' | 'update' | 'delete'
    record_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeHandler = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class ChangeNotifier:
    """Per-collection change subscriptions. Subscribers decide what to re-read."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[ChangeHandler]] = {}

    def subscribe(self, collection: str, on_change: ChangeHandler) -> Unsubscribe:
        handlers = self._handlers.setdefault(collection, [])
        handlers.append(on_change)

        def unsubscribe() -> None:
            if on_change in handlers:
                handlers.remove(on_change)

        return unsubscribe

    def subscriber_count(self, collection: str) -> int:
        return len(self._handlers.get(collection, []))

    def publish(self, event: ChangeEvent) -> int:
        """Deliver event to every subscriber of its collection. Returns deliveries made."""
        delivered = 0
        for handler in list(self._handlers.get(event.collection, [])):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Change handler failed for %s %s", event.collection, event.action
                )
        return delivered
