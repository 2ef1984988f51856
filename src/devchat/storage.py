"""SQLite storage for messages and author profiles."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .models import Message, Profile


class MessageStore:
    """SQLite-backed storage for channel messages, thread replies and profiles."""

    def __init__(self, db_path: Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        # Calls arrive from asyncio.to_thread workers; SQLiteBackend serializes them.
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._migrate()

    def _migrate(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL,
                avatar_url TEXT,
                status TEXT NOT NULL DEFAULT 'offline',
                last_seen TEXT,
                created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                channel_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                content TEXT NOT NULL,
                parent_id TEXT,
                reply_count INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT,
                FOREIGN KEY (parent_id) REFERENCES messages(id)
            );

            CREATE INDEX IF NOT EXISTS idx_messages_channel
                ON messages(channel_id, parent_id, created_at);

            CREATE INDEX IF NOT EXISTS idx_messages_parent
                ON messages(parent_id, created_at);

            CREATE TRIGGER IF NOT EXISTS messages_reply_count
                AFTER INSERT ON messages WHEN new.parent_id IS NOT NULL BEGIN
                    UPDATE messages SET reply_count = reply_count + 1
                    WHERE id = new.parent_id;
                END;
        """)
        self.conn.commit()

    def upsert_profile(self, profile: Profile):
        self.conn.execute(
            """INSERT INTO profiles (id, username, avatar_url, status, last_seen, created_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   username = excluded.username,
                   avatar_url = excluded.avatar_url,
                   status = excluded.status,
                   last_seen = excluded.last_seen""",
            (
                profile.id,
                profile.username,
                profile.avatar_url,
                profile.status,
                _format_dt(profile.last_seen),
                _format_dt(profile.created_at or datetime.now(timezone.utc)),
            ),
        )
        self.conn.commit()

    def get_profiles(self, user_ids: set[str]) -> dict[str, Profile]:
        if not user_ids:
            return {}
        ids = sorted(user_ids)
        placeholders = ", ".join("?" for _ in ids)
        rows = self.conn.execute(
            f"SELECT * FROM profiles WHERE id IN ({placeholders})", ids
        ).fetchall()
        return {row["id"]: Profile(**dict(row)) for row in rows}

    def insert_message(
        self,
        channel_id: str,
        user_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> Message:
        """Insert a message and return the stored row.

        Replies must target an existing top-level message in the same channel;
        threads are one level deep.
        """
        if parent_id is not None:
            parent = self.get_message(parent_id)
            if parent is None:
                raise ValueError(f"Parent message not found: {parent_id}")
            if parent.parent_id is not None:
                raise ValueError(f"Cannot reply to a reply: {parent_id}")
            if parent.channel_id != channel_id:
                raise ValueError(
                    f"Reply channel {channel_id} does not match parent channel {parent.channel_id}"
                )

        message_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        self.conn.execute(
            """INSERT INTO messages (id, channel_id, user_id, content, parent_id, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (message_id, channel_id, user_id, content, parent_id, now, now),
        )
        self.conn.commit()
        return self.get_message(message_id)

    def get_message(self, message_id: str) -> Message | None:
        row = self.conn.execute(
            "SELECT * FROM messages WHERE id = ?", (message_id,)
        ).fetchone()
        if not row:
            return None
        return Message(**dict(row))

    def top_level_page(self, channel_id: str, offset: int = 0, limit: int = 50) -> list[Message]:
        """Newest-first page of top-level messages in a channel."""
        rows = self.conn.execute(
            """SELECT * FROM messages
               WHERE channel_id = ? AND parent_id IS NULL
               ORDER BY created_at DESC, rowid DESC
               LIMIT ? OFFSET ?""",
            (channel_id, limit, offset),
        ).fetchall()
        return [Message(**dict(r)) for r in rows]

    def replies(self, parent_id: str) -> list[Message]:
        """All replies to a message, oldest first."""
        rows = self.conn.execute(
            """SELECT * FROM messages
               WHERE parent_id = ?
               ORDER BY created_at ASC, rowid ASC""",
            (parent_id,),
        ).fetchall()
        return [Message(**dict(r)) for r in rows]

    def get_stats(self) -> dict:
        """Get overall database statistics."""
        msg_count = self.conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
        reply_count = self.conn.execute(
            "SELECT COUNT(*) FROM messages WHERE parent_id IS NOT NULL"
        ).fetchone()[0]
        profile_count = self.conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]

        channels = self.conn.execute(
            """SELECT channel_id, COUNT(*) as cnt, MAX(created_at) as last_activity
               FROM messages GROUP BY channel_id ORDER BY cnt DESC LIMIT 10"""
        ).fetchall()

        return {
            "total_messages": msg_count,
            "total_replies": reply_count,
            "total_profiles": profile_count,
            "top_channels": [
                {"channel_id": r[0], "count": r[1], "last_activity": _format_day(r[2])}
                for r in channels
            ],
        }

    def close(self):
        self.conn.close()


def _format_dt(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


def _format_day(value: str | None) -> str | None:
    if value is None:
        return None
    return datetime.fromisoformat(value).strftime("%Y-%m-%d")
