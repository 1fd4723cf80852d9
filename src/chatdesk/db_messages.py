"""MessagesMixin: chat message storage, listing, search and session grouping.

Every listing is ordered newest-first (``timestamp DESC, id DESC``) so that
``limit``/``offset`` pagination is deterministic.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from chatdesk.db_base import DBMixinProtocol, _escape_like, _now_iso, _to_utc_iso

if TYPE_CHECKING:
    from chatdesk.core import ChatMessage

_NEWEST_FIRST = "ORDER BY timestamp DESC, id DESC"


class MessagesMixin(DBMixinProtocol):
    """Chat messages, always scoped either by user or by session."""

    def add_message(
        self,
        user_id: int,
        message: str,
        sender_type: str,
        *,
        session_id: str | None = None,
        timestamp: datetime | str | None = None,
    ) -> ChatMessage:
        """Insert a message. ``timestamp`` defaults to now and is stored as UTC."""
        stamp = _to_utc_iso(timestamp) if timestamp is not None else _now_iso()
        try:
            cursor = self.conn.execute(
                "INSERT INTO chat_messages (user_id, message, sender_type, timestamp, session_id) VALUES (?, ?, ?, ?, ?)",
                (user_id, message, sender_type, stamp, session_id),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        rowid = cursor.lastrowid
        if rowid is None:  # pragma: no cover: INSERT always sets lastrowid
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return self.get_message(rowid)

    def get_message(self, message_id: int) -> ChatMessage:
        row = self.conn.execute("SELECT * FROM chat_messages WHERE id = ?", (message_id,)).fetchone()
        if row is None:
            msg = f"Message not found: {message_id}"
            raise KeyError(msg)
        return self._build_message(row)

    def list_user_messages(self, user_id: int, *, limit: int = 50, offset: int = 0) -> list[ChatMessage]:
        rows = self.conn.execute(
            f"SELECT * FROM chat_messages WHERE user_id = ? {_NEWEST_FIRST} LIMIT ? OFFSET ?",
            (user_id, limit, offset),
        ).fetchall()
        return [self._build_message(r) for r in rows]

    def search_user_messages(self, user_id: int, query: str, *, limit: int = 20) -> list[ChatMessage]:
        """Substring match on message text. Case folding follows SQLite's LIKE (ASCII only)."""
        rows = self.conn.execute(
            f"SELECT * FROM chat_messages WHERE user_id = ? AND message LIKE ? ESCAPE '\\' {_NEWEST_FIRST} LIMIT ?",
            (user_id, _escape_like(query), limit),
        ).fetchall()
        return [self._build_message(r) for r in rows]

    def list_session_messages(self, session_id: str, *, limit: int = 50, offset: int = 0) -> list[ChatMessage]:
        rows = self.conn.execute(
            f"SELECT * FROM chat_messages WHERE session_id = ? {_NEWEST_FIRST} LIMIT ? OFFSET ?",
            (session_id, limit, offset),
        ).fetchall()
        return [self._build_message(r) for r in rows]

    def list_user_sessions(self, user_id: int) -> list[dict[str, Any]]:
        """Group a user's messages by session, most recently active first.

        Messages without a session id are excluded.
        """
        rows = self.conn.execute(
            "SELECT session_id, MAX(timestamp) AS last_message_time FROM chat_messages "
            "WHERE user_id = ? AND session_id IS NOT NULL "
            "GROUP BY session_id ORDER BY last_message_time DESC, session_id",
            (user_id,),
        ).fetchall()
        return [{"session_id": r["session_id"], "last_message_time": r["last_message_time"]} for r in rows]

    def count_user_messages(self, user_id: int) -> int:
        result: int = self.conn.execute(
            "SELECT COUNT(*) FROM chat_messages WHERE user_id = ?",
            (user_id,),
        ).fetchone()[0]
        return result
