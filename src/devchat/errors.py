"""Exception types raised by the synchronization layer."""

from __future__ import annotations


class DevchatError(Exception):
    """Base class for all devchat errors."""


class SyncError(DevchatError):
    """A recoverable failure talking to the backend. Local state is left unchanged."""


class PageLoadError(SyncError):
    def __init__(self, channel_id: str, reason: str):
        self.channel_id = channel_id
        super().__init__(f"Error loading messages for channel {channel_id}: {reason}")


class ReplyLoadError(SyncError):
    def __init__(self, parent_id: str, reason: str):
        self.parent_id = parent_id
        super().__init__(f"Error loading replies for message {parent_id}: {reason}")


class SendError(SyncError):
    def __init__(self, channel_id: str, reason: str, parent_id: str | None = None):
        self.channel_id = channel_id
        self.parent_id = parent_id
        target = f"thread {parent_id}" if parent_id else f"channel {channel_id}"
        super().__init__(f"Error sending message to {target}: {reason}")
