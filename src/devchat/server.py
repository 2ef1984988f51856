"""FastMCP server exposing channel history, threads and classification."""

from __future__ import annotations

import logging
import sys

from mcp.server.fastmcp import FastMCP

from .backend import SQLiteBackend
from .blocks import extract_blocks
from .classifier import classify
from .config import DATA_DIR, SQLITE_PATH
from .errors import DevchatError
from .models import Message, Profile
from .session import ChatSession
from .storage import MessageStore
from .thread import ThreadStore, format_reply_count
from .timeline import format_date_divider, format_message_time

# Logging to stderr only — stdout is the MCP JSON-RPC transport
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

mcp = FastMCP(
    "devchat",
    instructions=(
        "Read and post to the user's team chat. "
        "Use read_channel to see recent messages in a channel. "
        "Use read_thread to read the replies to a message. "
        "Use post_message to send a message; code and error output is threaded automatically. "
        "Use classify_message to check how a message body would be treated."
    ),
)

# Singleton backend — reused across tool calls
_backend: SQLiteBackend | None = None


def _get_backend() -> SQLiteBackend:
    global _backend
    if _backend is None:
        _backend = SQLiteBackend(MessageStore(SQLITE_PATH))
    return _backend


def _render_content(content: str) -> str:
    parts = []
    for block in extract_blocks(content):
        if block.is_code_block:
            parts.append(f"```{block.language or ''}\n{block.text}\n```")
        else:
            parts.append(block.text)
    return "\n".join(parts)


def _author(profiles: dict[str, Profile], message: Message) -> str:
    profile = profiles.get(message.user_id)
    return profile.username if profile else message.user_id


@mcp.tool()
def classify_message(content: str) -> str:
    """Classify a message body: code, error output, language, and whether it gets a thread.

    Args:
        content: The raw message text
    """
    analysis = classify(content)
    lines = [
        f"- **Contains code**: {analysis.has_code}",
        f"- **Error/log output**: {analysis.is_error}",
        f"- **Language**: {analysis.language or 'none'}",
        f"- **Long content**: {analysis.is_long_content}",
        f"- **Auto-thread**: {analysis.should_thread}",
    ]
    return "\n".join(lines)


@mcp.tool()
async def read_channel(channel_id: str, pages: int = 1) -> str:
    """Read the most recent top-level messages of a channel, grouped by day.

    Args:
        channel_id: The channel to read
        pages: Number of history pages to load (default 1)
    """
    session = ChatSession(_get_backend(), user_id="")
    try:
        timeline = await session.switch_channel(channel_id)
        for _ in range(max(0, pages - 1)):
            if not timeline.has_more:
                break
            await timeline.load_older()
    except DevchatError as e:
        return str(e)

    if not timeline.messages:
        return f"No messages in #{channel_id}."

    lines = [f"# #{channel_id}", ""]
    for group in timeline.groups():
        lines.append(f"## {format_date_divider(group.day)}")
        for msg in group.messages:
            header = f"**{_author(timeline.profiles, msg)}** ({format_message_time(msg.created_at)})"
            if timeline.thread_hint(msg):
                header += f" — thread `{msg.id}`, {format_reply_count(msg.reply_count)}"
            lines.append(header)
            lines.append(_render_content(msg.content))
            lines.append("")

    if timeline.has_more:
        lines.append(f"Older messages available — use pages={pages + 1}.")
    return "\n".join(lines)


@mcp.tool()
async def read_thread(message_id: str) -> str:
    """Read a message and all of its thread replies.

    Args:
        message_id: The parent message id (from read_channel)
    """
    backend = _get_backend()
    parent = await backend.get_message(message_id)
    if parent is None:
        return f"Message not found: {message_id}"

    store = ThreadStore(parent, backend)
    try:
        await store.open()
    except DevchatError as e:
        return str(e)

    user_ids = {parent.user_id} | {r.user_id for r in store.replies}
    profiles = await backend.fetch_profiles(user_ids)

    lines = [
        f"# Thread · {store.reply_label}",
        f"**{_author(profiles, parent)}**:",
        _render_content(parent.content),
        "",
        "---",
        "",
    ]
    for reply in store.replies:
        lines.append(f"**{_author(profiles, reply)}** ({format_message_time(reply.created_at)}):")
        lines.append(_render_content(reply.content))
        lines.append("")
    return "\n".join(lines)


@mcp.tool()
async def post_message(channel_id: str, user_id: str, content: str, parent_id: str | None = None) -> str:
    """Post a message to a channel, or a reply when parent_id is given.

    Args:
        channel_id: Target channel
        user_id: Author user id
        content: Message text, sent unmodified
        parent_id: Optional message id to reply to
    """
    backend = _get_backend()
    session = ChatSession(backend, user_id=user_id)
    try:
        if parent_id:
            parent = await backend.get_message(parent_id)
            if parent is None:
                return f"Message not found: {parent_id}"
            thread = ThreadStore(parent, backend)
            message = await thread.send_reply(content, user_id)
            return f"Replied in thread `{parent_id}` as `{message.id}`."

        await session.switch_channel(channel_id)
        result = await session.send_message(content)
    except DevchatError as e:
        return str(e)
    finally:
        session.close()

    if result is None:
        return "Nothing to send: message is blank."
    text = f"Posted `{result.message.id}` to #{channel_id}."
    if result.should_open_thread:
        text += f" Auto-threaded (language: {result.analysis.language or 'none'})."
    return text


@mcp.tool()
async def get_stats() -> str:
    """Get statistics about stored messages and channels."""
    if not SQLITE_PATH.exists():
        return "No messages stored yet."

    stats = await _get_backend().get_stats()
    lines = [
        "# devchat Statistics",
        "",
        f"- **Messages**: {stats['total_messages']:,}",
        f"- **Replies**: {stats['total_replies']:,}",
        f"- **Users**: {stats['total_profiles']:,}",
        "",
    ]
    if stats["top_channels"]:
        lines.append("## Channels:")
        for c in stats["top_channels"]:
            lines.append(f"- #{c['channel_id']}: {c['count']:,} messages (last {c['last_activity']})")

    lines.append(f"\n*Data stored in: {DATA_DIR}*")
    return "\n".join(lines)
