"""CLI interface for devchat."""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
import sys

import click

from . import __version__
from .config import DATA_DIR, SQLITE_PATH


def _open_backend():
    from .backend import SQLiteBackend
    from .storage import MessageStore

    return SQLiteBackend(MessageStore(SQLITE_PATH))


def _read_content(content: str) -> str:
    if content == "-":
        return sys.stdin.read()
    return content


async def _connect(backend, user: str, channel: str):
    """Build a session for a user on a channel, wired to the insert feed."""
    from .models import Profile
    from .session import ChatSession

    await backend.save_profile(Profile(id=user, username=user))
    session = ChatSession(backend, user_id=user)
    backend.feed.subscribe(session.on_message_inserted)
    await session.switch_channel(channel)
    return session


def _run(coro):
    from .errors import DevchatError

    try:
        return asyncio.run(coro)
    except DevchatError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="devchat")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """devchat — team chat with code-aware auto-threading.

    Messages that look like code, error output or long logs are moved into a
    thread so the channel stays readable.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.argument("content")
def classify(content: str):
    """Classify a message body (use - to read from stdin).

    Example:
        devchat classify "TypeError: x is not a function"
    """
    from .classifier import classify as classify_content

    analysis = classify_content(_read_content(content))
    click.echo(json.dumps(analysis.model_dump(), indent=2))


@cli.command()
@click.argument("content")
def blocks(content: str):
    """Show how a message body splits into text and code blocks."""
    from .blocks import extract_blocks, highlight_language

    for i, block in enumerate(extract_blocks(_read_content(content)), 1):
        if block.is_code_block:
            header = f"[{i}] code ({block.language}, lexer={highlight_language(block.language)}"
            header += f", {block.line_count} lines"
            if block.default_collapsed:
                header += ", collapsed"
            elif block.is_collapsible:
                header += ", collapsible"
            click.echo(click.style(header + ")", bold=True))
        else:
            click.echo(click.style(f"[{i}] text", bold=True))
        click.echo(block.text)
        click.echo()


@cli.command()
@click.argument("channel")
@click.argument("content")
@click.option("--user", "-u", required=True, help="Author user id")
def post(channel: str, content: str, user: str):
    """Post a message to a channel."""
    result = _run(_post(channel, user, _read_content(content)))
    if result is None:
        click.echo("Nothing to send.")
        return

    click.echo(f"Sent {result.message.id}")
    if result.should_open_thread:
        reason = "error output" if result.analysis.is_error else "code or long content"
        language = result.analysis.language or "none"
        click.echo(click.style(f"Thread opened ({reason}, language: {language})", fg="yellow"))


async def _post(channel: str, user: str, content: str):
    backend = _open_backend()
    try:
        session = await _connect(backend, user, channel)
        try:
            return await session.send_message(content)
        finally:
            session.close()
    finally:
        backend.store.close()


@cli.command()
@click.argument("channel")
@click.option("--pages", default=1, show_default=True, help="Number of history pages to load")
def history(channel: str, pages: int):
    """Show a channel's messages grouped by day."""
    from .thread import format_reply_count
    from .timeline import format_date_divider, format_message_time, show_author

    timeline = _run(_history(channel, pages))

    if not timeline.messages:
        click.echo("No messages yet.")
        return

    for group in timeline.groups():
        click.echo()
        click.echo(click.style(f"── {format_date_divider(group.day)} ──", dim=True))
        for idx, msg in enumerate(group.messages):
            if show_author(group, idx):
                profile = timeline.profiles.get(msg.user_id)
                name = profile.username if profile else "Unknown"
                click.echo(
                    click.style(name, bold=True) + "  " + format_message_time(msg.created_at)
                )
            click.echo(f"  {msg.content}")
            if timeline.thread_hint(msg):
                click.echo(click.style(f"  ↳ thread {msg.id} ({format_reply_count(msg.reply_count)})", fg="cyan"))

    if timeline.has_more:
        click.echo(f"\nOlder messages available — use --pages {pages + 1}.")


async def _history(channel: str, pages: int):
    from .session import ChatSession

    backend = _open_backend()
    session = ChatSession(backend, user_id="")
    try:
        timeline = await session.switch_channel(channel)
        for _ in range(pages - 1):
            if not timeline.has_more:
                break
            await timeline.load_older()
        return timeline
    finally:
        backend.store.close()


@cli.command()
@click.argument("message_id")
def thread(message_id: str):
    """Show a message and its thread replies."""
    from .blocks import extract_blocks

    parent, store = _run(_thread(message_id))

    click.echo(click.style(f"Thread · {store.reply_label}", bold=True))
    click.echo(parent.content)
    click.echo("---")
    if not store.replies:
        click.echo("No replies yet.")
    for reply in store.replies:
        click.echo(click.style(reply.user_id, bold=True))
        for block in extract_blocks(reply.content):
            click.echo(f"  {block.text}")


async def _thread(message_id: str):
    from .thread import ThreadStore

    backend = _open_backend()
    try:
        parent = await backend.get_message(message_id)
        if parent is None:
            raise click.ClickException(f"Message not found: {message_id}")
        store = ThreadStore(parent, backend)
        await store.open()
        return parent, store
    finally:
        backend.store.close()


@cli.command()
@click.argument("message_id")
@click.argument("content")
@click.option("--user", "-u", required=True, help="Author user id")
def reply(message_id: str, content: str, user: str):
    """Reply in a message's thread."""
    message = _run(_reply(message_id, user, _read_content(content)))
    if message is None:
        click.echo("Nothing to send.")
        return
    click.echo(f"Replied {message.id}")


async def _reply(message_id: str, user: str, content: str):
    from .models import Profile
    from .session import ChatSession

    backend = _open_backend()
    session = ChatSession(backend, user_id=user)
    try:
        parent = await backend.get_message(message_id)
        if parent is None:
            raise click.ClickException(f"Message not found: {message_id}")
        await backend.save_profile(Profile(id=user, username=user))

        backend.feed.subscribe(session.on_message_inserted)
        await session.switch_channel(parent.channel_id)
        await session.open_thread(parent)
        return await session.send_reply(content)
    finally:
        session.close()
        backend.store.close()


@cli.command()
def serve():
    """Start the MCP server (stdio transport)."""
    from .server import mcp

    mcp.run(transport="stdio")


@cli.command()
def stats():
    """Show statistics about stored messages."""
    if not SQLITE_PATH.exists():
        click.echo("No data found. Post a message first:")
        click.echo('  devchat post general "hello" --user alice')
        return

    from .storage import MessageStore

    store = MessageStore(SQLITE_PATH)
    try:
        s = store.get_stats()
    finally:
        store.close()

    click.echo()
    click.echo(click.style("devchat Statistics", bold=True))
    click.echo(f"  Messages:  {s['total_messages']:,}")
    click.echo(f"  Replies:   {s['total_replies']:,}")
    click.echo(f"  Users:     {s['total_profiles']:,}")
    if s["top_channels"]:
        click.echo("  Channels:")
        for c in s["top_channels"]:
            click.echo(f"    #{c['channel_id']}: {c['count']:,} (last {c['last_activity']})")

    db_size = SQLITE_PATH.stat().st_size
    click.echo(f"  Storage:   {db_size / (1024 * 1024):.1f} MB")
    click.echo(f"  Location:  {DATA_DIR}")
    click.echo()


@cli.command()
@click.confirmation_option(prompt="This will delete all messages. Are you sure?")
def reset():
    """Delete all stored data and start fresh."""
    if DATA_DIR.exists():
        shutil.rmtree(DATA_DIR)
        click.echo(f"Deleted {DATA_DIR}")
    else:
        click.echo("No data to delete.")
