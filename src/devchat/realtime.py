"""In-process insert notifications, standing in for the realtime channel."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .models import Message

logger = logging.getLogger(__name__)

InsertCallback = Callable[[Message], Awaitable[None]]


class InsertFeed:
    """Fan-out of new-message notifications to subscribers.

    Delivery is at-least-once from the consumer's point of view: subscribers
    must tolerate seeing the same message twice.
    """

    def __init__(self):
        self._subscribers: list[InsertCallback] = []

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        """Register a callback; returns a function that removes it again."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, message: Message):
        for callback in list(self._subscribers):
            try:
                await callback(message)
            except Exception:
                logger.warning(
                    "Insert subscriber failed for message %s", message.id, exc_info=True
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
