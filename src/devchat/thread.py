"""Reply list for a single open thread."""

from __future__ import annotations

import logging

from .backend import ChatBackend
from .errors import ReplyLoadError, SendError
from .models import Message

logger = logging.getLogger(__name__)


class ThreadStore:
    """Replies to one parent message, oldest first.

    Threads are small, so open() loads every reply at once. Replies sent from
    here are not appended locally; they arrive through apply_insert like any
    other live reply.
    """

    def __init__(self, parent: Message, backend: ChatBackend):
        self.parent = parent
        self.backend = backend
        self.replies: list[Message] = []
        self.loading = False
        self.closed = False
        self._ids: set[str] = set()

    @property
    def parent_id(self) -> str:
        return self.parent.id

    @property
    def reply_count(self) -> int:
        return len(self.replies)

    @property
    def reply_label(self) -> str:
        return format_reply_count(self.reply_count)

    async def open(self) -> list[Message]:
        """Load all replies, keeping any live replies that arrived meanwhile."""
        if self.closed:
            return []

        self.loading = True
        try:
            try:
                fetched = await self.backend.fetch_replies(self.parent_id)
            except Exception as e:
                logger.error("Error loading replies for %s: %s", self.parent_id, e)
                raise ReplyLoadError(self.parent_id, str(e)) from e

            if self.closed:
                logger.debug("Discarding replies for closed thread %s", self.parent_id)
                return []

            merged: dict[str, Message] = {}
            for reply in [*fetched, *self.replies]:
                if reply.parent_id == self.parent_id:
                    merged.setdefault(reply.id, reply)
            self.replies = sorted(merged.values(), key=lambda m: m.created_at)
            self._ids = set(merged)
        finally:
            self.loading = False

        return self.replies

    def apply_insert(self, reply: Message) -> bool:
        if self.closed or reply.parent_id != self.parent_id:
            return False
        if reply.id in self._ids:
            logger.debug("Ignoring duplicate reply %s", reply.id)
            return False
        self.replies.append(reply)
        self._ids.add(reply.id)
        return True

    async def send_reply(self, content: str, user_id: str) -> Message:
        try:
            return await self.backend.send_message(
                channel_id=self.parent.channel_id,
                user_id=user_id,
                content=content,
                parent_id=self.parent_id,
            )
        except Exception as e:
            logger.error("Error sending reply to %s: %s", self.parent_id, e)
            raise SendError(self.parent.channel_id, str(e), parent_id=self.parent_id) from e

    def close(self):
        self.closed = True
        self.replies = []
        self._ids.clear()


def format_reply_count(count: int) -> str:
    """'1 reply', '3 replies'."""
    return f"{count} repl{'y' if count == 1 else 'ies'}"
