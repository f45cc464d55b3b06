"""In-process publish/subscribe bus for same-session live UI updates.

Views that are already open subscribe to the bus and refresh themselves when
a notification is raised, without waiting for a network round trip. The
lifecycle engine only publishes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from hrconsole.common.constants import NOTIFICATION_EVENT_NAME, NotificationType

logger = logging.getLogger(__name__)


class NotificationEvent(BaseModel):
    """Payload of a ``hrms:notification`` event."""

    name: str = NOTIFICATION_EVENT_NAME
    title: str
    message: str
    type: NotificationType = NotificationType.info
    correlation_id: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)
    raised_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[NotificationEvent], None]


class LocalEventBus:
    """Synchronous fan-out to registered handlers.

    A failing handler is logged and skipped; it never affects the publisher
    or the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register *handler*; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: NotificationEvent) -> int:
        """Deliver *event* to every handler. Returns the number that succeeded."""
        delivered = 0
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, event.name)
                continue
            delivered += 1
        return delivered

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)
