"""Backend boundary: the queries and writes the timeline and threads depend on."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Protocol

from .models import Message, Profile
from .realtime import InsertFeed
from .storage import MessageStore

logger = logging.getLogger(__name__)


class ChatBackend(Protocol):
    async def fetch_top_level_page(
        self, channel_id: str, offset: int, page_size: int
    ) -> list[Message]:
        """Top-level messages, newest first."""
        ...

    async def fetch_replies(self, parent_id: str) -> list[Message]:
        """Replies to one message, oldest first."""
        ...

    async def fetch_profiles(self, user_ids: set[str]) -> dict[str, Profile]: ...

    async def send_message(
        self,
        channel_id: str,
        user_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> Message: ...


class SQLiteBackend:
    """ChatBackend over a MessageStore.

    Store calls block, so they run in worker threads, one at a time. Every
    successful write is published on the insert feed after it commits.
    """

    def __init__(self, store: MessageStore, feed: InsertFeed | None = None):
        self.store = store
        self.feed = feed or InsertFeed()
        self._lock = threading.Lock()

    async def _run(self, fn, *args):
        def call():
            with self._lock:
                return fn(*args)

        return await asyncio.to_thread(call)

    async def fetch_top_level_page(
        self, channel_id: str, offset: int, page_size: int
    ) -> list[Message]:
        logger.debug(
            "Fetching page for channel %s, offset=%d, page_size=%d", channel_id, offset, page_size
        )
        return await self._run(self.store.top_level_page, channel_id, offset, page_size)

    async def fetch_replies(self, parent_id: str) -> list[Message]:
        logger.debug("Fetching replies for %s", parent_id)
        return await self._run(self.store.replies, parent_id)

    async def fetch_profiles(self, user_ids: set[str]) -> dict[str, Profile]:
        return await self._run(self.store.get_profiles, set(user_ids))

    async def send_message(
        self,
        channel_id: str,
        user_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> Message:
        message = await self._run(
            self.store.insert_message, channel_id, user_id, content, parent_id
        )
        logger.info("Stored message %s in channel %s", message.id, channel_id)
        await self.feed.publish(message)
        return message

    async def get_message(self, message_id: str) -> Message | None:
        return await self._run(self.store.get_message, message_id)

    async def save_profile(self, profile: Profile):
        await self._run(self.store.upsert_profile, profile)

    async def get_stats(self) -> dict:
        return await self._run(self.store.get_stats)
