"""Paginated, live-updating view of a channel's top-level messages."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from .backend import ChatBackend
from .classifier import classify
from .config import PAGE_SIZE
from .errors import PageLoadError
from .models import DayGroup, Message, Profile

logger = logging.getLogger(__name__)


class MessageTimeline:
    """Ordered top-level messages for one channel.

    History pages only ever prepend and live inserts only ever append, each as
    a single list mutation, so a slow page can never clobber a fast insert.
    A timeline serves exactly one channel; switching channels means closing it
    and building a new one.
    """

    def __init__(self, channel_id: str, backend: ChatBackend, page_size: int = PAGE_SIZE):
        self.channel_id = channel_id
        self.backend = backend
        self.page_size = page_size
        self.messages: list[Message] = []
        self.profiles: dict[str, Profile] = {}
        self.has_more = True
        self.loading = False
        self.closed = False
        self._ids: set[str] = set()

    @property
    def offset(self) -> int:
        return len(self.messages)

    async def load_older(self) -> list[Message]:
        """Fetch the next page of older messages and prepend it.

        Returns the messages actually added. Raises PageLoadError on backend
        failure, leaving messages and has_more as they were.
        """
        if self.closed or self.loading or not self.has_more:
            return []

        self.loading = True
        try:
            try:
                page = await self.backend.fetch_top_level_page(
                    self.channel_id, self.offset, self.page_size
                )
            except Exception as e:
                logger.error("Error loading messages for channel %s: %s", self.channel_id, e)
                raise PageLoadError(self.channel_id, str(e)) from e

            if self.closed:
                logger.debug("Discarding page for closed channel %s", self.channel_id)
                return []

            older = [
                m for m in reversed(page)
                if m.id not in self._ids and m.parent_id is None
            ]
            self.messages[:0] = older
            self._ids.update(m.id for m in older)
            self.has_more = len(page) == self.page_size
            logger.debug(
                "Loaded %d messages for channel %s (has_more=%s)",
                len(older), self.channel_id, self.has_more,
            )
        finally:
            self.loading = False

        await self.resolve_profiles({m.user_id for m in older})
        return older

    def apply_insert(self, message: Message) -> bool:
        """Append a live message. Returns False when it does not belong here."""
        if self.closed or message.channel_id != self.channel_id:
            return False
        if message.parent_id is not None:
            return False
        if message.id in self._ids:
            logger.debug("Ignoring duplicate insert %s", message.id)
            return False
        self.messages.append(message)
        self._ids.add(message.id)
        return True

    async def resolve_profiles(self, user_ids: set[str]):
        """Fetch profiles for authors not yet cached. Failures are logged, not raised."""
        missing = {uid for uid in user_ids if uid not in self.profiles}
        if not missing:
            return
        try:
            fetched = await self.backend.fetch_profiles(missing)
        except Exception:
            logger.warning("Failed to fetch profiles for %d users", len(missing), exc_info=True)
            return
        if not self.closed:
            self.profiles.update(fetched)

    def thread_hint(self, message: Message) -> bool:
        """Whether to show a thread affordance next to a message."""
        return message.reply_count > 0 or classify(message.content).should_thread

    def groups(self) -> list[DayGroup]:
        return group_by_date(self.messages)

    def close(self):
        self.closed = True
        self.messages = []
        self.profiles = {}
        self._ids.clear()


def group_by_date(messages: list[Message]) -> list[DayGroup]:
    """Partition messages into contiguous runs sharing a calendar date."""
    groups: list[DayGroup] = []
    current: date | None = None

    for message in messages:
        day = message.created_at.date()
        if day != current:
            current = day
            groups.append(DayGroup(day=day))
        groups[-1].messages.append(message)

    return groups


def show_author(group: DayGroup, index: int) -> bool:
    """Show the author header on the first message and whenever the author changes."""
    if index == 0:
        return True
    return group.messages[index - 1].user_id != group.messages[index].user_id


def format_date_divider(day: date, today: date | None = None) -> str:
    today = today or date.today()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day.strftime('%B')} {day.day}, {day.year}"


def format_message_time(ts: datetime, today: date | None = None) -> str:
    today = today or date.today()
    clock = _clock(ts)
    day = ts.date()
    if day == today:
        return clock
    if day == today - timedelta(days=1):
        return f"Yesterday at {clock}"
    return f"{ts.strftime('%b')} {ts.day}, {clock}"


def _clock(ts: datetime) -> str:
    hour = ts.hour % 12 or 12
    return f"{hour}:{ts.minute:02d} {'AM' if ts.hour < 12 else 'PM'}"
