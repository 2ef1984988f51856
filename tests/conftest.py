"""Shared fixtures: an in-memory chat backend and message factories."""

import asyncio
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from devchat.models import Message, Profile

BASE_TIME = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


def make_message(
    content="hello",
    channel_id="general",
    user_id="alice",
    parent_id=None,
    minutes=0,
    message_id=None,
    reply_count=0,
):
    return Message(
        id=message_id or f"m{next(_ids)}",
        channel_id=channel_id,
        user_id=user_id,
        content=content,
        parent_id=parent_id,
        reply_count=reply_count,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class FakeBackend:
    """In-memory ChatBackend. Set `fail` to make fetches raise, or `gate` to hold them."""

    def __init__(self, messages=None, profiles=None):
        self.messages: list[Message] = list(messages or [])
        self.profiles: dict[str, Profile] = dict(profiles or {})
        self.fail: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.page_calls: list[tuple[str, int, int]] = []
        self.profile_calls: list[set[str]] = []
        self.sent: list[Message] = []
        self.listeners = []
        self._clock = itertools.count(1000)

    async def _wait(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail

    async def fetch_top_level_page(self, channel_id, offset, page_size):
        self.page_calls.append((channel_id, offset, page_size))
        await self._wait()
        top = [m for m in self.messages if m.channel_id == channel_id and m.parent_id is None]
        top.sort(key=lambda m: m.created_at, reverse=True)
        return top[offset : offset + page_size]

    async def fetch_replies(self, parent_id):
        await self._wait()
        replies = [m for m in self.messages if m.parent_id == parent_id]
        return sorted(replies, key=lambda m: m.created_at)

    async def fetch_profiles(self, user_ids):
        self.profile_calls.append(set(user_ids))
        return {uid: p for uid, p in self.profiles.items() if uid in user_ids}

    async def send_message(self, channel_id, user_id, content, parent_id=None):
        if self.fail is not None:
            raise self.fail
        message = make_message(
            content=content,
            channel_id=channel_id,
            user_id=user_id,
            parent_id=parent_id,
            minutes=next(self._clock),
        )
        self.messages.append(message)
        self.sent.append(message)
        for listener in self.listeners:
            await listener(message)
        return message


@pytest.fixture
def backend():
    return FakeBackend(profiles={"alice": Profile(id="alice", username="Alice")})
