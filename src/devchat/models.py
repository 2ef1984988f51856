"""Data models for messages, profiles and derived content analysis."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from .config import COLLAPSIBLE_LINES, DEFAULT_COLLAPSED_LINES


class Profile(BaseModel):
    id: str
    username: str
    avatar_url: str | None = None
    status: str = "offline"
    last_seen: datetime | None = None
    created_at: datetime | None = None


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    channel_id: str
    user_id: str
    content: str
    parent_id: str | None = None
    reply_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None


class ContentAnalysis(BaseModel):
    """Derived, never persisted. Recomputed from message content on demand."""

    has_code: bool
    language: str | None = None
    is_error: bool
    is_long_content: bool
    should_thread: bool


class ContentBlock(BaseModel):
    text: str
    language: str | None = None
    is_code_block: bool = False

    @property
    def line_count(self) -> int:
        return self.text.count("\n") + 1

    @property
    def is_collapsible(self) -> bool:
        return self.is_code_block and self.line_count > COLLAPSIBLE_LINES

    @property
    def default_collapsed(self) -> bool:
        return self.is_code_block and self.line_count > DEFAULT_COLLAPSED_LINES


class DayGroup(BaseModel):
    day: date
    messages: list[Message] = []
