"""Active-channel controller: owns the open timeline and thread, routes live inserts."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from .backend import ChatBackend
from .classifier import classify
from .errors import SendError
from .models import ContentAnalysis, Message
from .thread import ThreadStore
from .timeline import MessageTimeline

logger = logging.getLogger(__name__)


class SendResult(BaseModel):
    message: Message
    analysis: ContentAnalysis
    should_open_thread: bool


class ChatSession:
    """One user's view: a single active channel and at most one open thread.

    Both are discarded on channel switch. Any load still in flight for a
    discarded timeline or thread sees its target closed and drops its result.
    """

    def __init__(self, backend: ChatBackend, user_id: str):
        self.backend = backend
        self.user_id = user_id
        self.timeline: MessageTimeline | None = None
        self.thread: ThreadStore | None = None

    @property
    def channel_id(self) -> str | None:
        return self.timeline.channel_id if self.timeline else None

    async def switch_channel(self, channel_id: str) -> MessageTimeline:
        """Discard the current channel state and load the newest page of another."""
        self.close_thread()
        if self.timeline is not None:
            self.timeline.close()

        timeline = MessageTimeline(channel_id, self.backend)
        self.timeline = timeline
        logger.info("Switched to channel %s", channel_id)
        await timeline.load_older()
        return timeline

    async def send_message(self, content: str) -> SendResult | None:
        """Post a top-level message to the active channel.

        Blank input is ignored. Content is written exactly as given; it is
        classified only after the write succeeds, and when it should be
        threaded the thread is opened against the new message.
        """
        if self.timeline is None:
            raise RuntimeError("No active channel")
        if not content.strip():
            return None

        channel_id = self.timeline.channel_id
        try:
            message = await self.backend.send_message(
                channel_id=channel_id, user_id=self.user_id, content=content
            )
        except Exception as e:
            logger.error("Error sending message to channel %s: %s", channel_id, e)
            raise SendError(channel_id, str(e)) from e

        analysis = classify(message.content)
        if analysis.should_thread and self.channel_id == channel_id:
            logger.info("Auto-opening thread for message %s", message.id)
            self._start_thread(message)

        return SendResult(
            message=message,
            analysis=analysis,
            should_open_thread=analysis.should_thread,
        )

    async def send_reply(self, content: str) -> Message | None:
        if self.thread is None:
            raise RuntimeError("No open thread")
        if not content.strip():
            return None
        return await self.thread.send_reply(content, self.user_id)

    async def open_thread(self, message: Message) -> ThreadStore:
        thread = self._start_thread(message)
        await thread.open()
        if self.timeline is not None and thread is self.thread:
            await self.timeline.resolve_profiles({r.user_id for r in thread.replies})
        return thread

    def _start_thread(self, message: Message) -> ThreadStore:
        self.close_thread()
        self.thread = ThreadStore(message, self.backend)
        return self.thread

    def close_thread(self):
        if self.thread is not None:
            self.thread.close()
            self.thread = None

    async def on_message_inserted(self, message: Message):
        """Route a realtime insert to the timeline or the open thread."""
        if self.timeline is None or message.channel_id != self.timeline.channel_id:
            return

        if message.parent_id is None:
            applied = self.timeline.apply_insert(message)
        elif self.thread is not None:
            applied = self.thread.apply_insert(message)
        else:
            applied = False

        if applied:
            await self.timeline.resolve_profiles({message.user_id})

    def close(self):
        self.close_thread()
        if self.timeline is not None:
            self.timeline.close()
            self.timeline = None
