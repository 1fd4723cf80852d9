"""Core database operations for chatdesk.

Single source of truth for all SQLite operations. The MCP server, the HTTP
front door and the CLI all import from this module. Direct SQLite with WAL
mode; no ORM session, no cache.

Covers the two entity tables: ``users`` and ``chat_messages``.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from chatdesk.db_messages import MessagesMixin
from chatdesk.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from chatdesk.db_users import UsersMixin

logger = logging.getLogger(__name__)

DB_FILENAME = "chatdesk.db"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class User:
    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    status: str = "active"
    created_at: str = ""
    updated_at: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ChatMessage:
    id: int
    user_id: int
    message: str
    sender_type: str
    timestamp: str = ""
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "message": self.message,
            "sender_type": self.sender_type,
            "timestamp": self.timestamp,
            "session_id": self.session_id,
        }


# ---------------------------------------------------------------------------
# ChatDeskDB
# ---------------------------------------------------------------------------


class ChatDeskDB(UsersMixin, MessagesMixin):
    """Direct SQLite operations for users and chat messages."""

    def __init__(self, db_path: str | Path, *, check_same_thread: bool = True) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    def __enter__(self) -> ChatDeskDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables if the database is new. Safe to call repeatedly."""
        current_version = self.get_schema_version()
        if current_version == 0:
            self.conn.executescript(SCHEMA_SQL)
            self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
            logger.debug("Created schema v%d at %s", CURRENT_SCHEMA_VERSION, self.db_path)
        elif current_version > CURRENT_SCHEMA_VERSION:
            msg = f"Database schema v{current_version} is newer than supported v{CURRENT_SCHEMA_VERSION}"
            raise RuntimeError(msg)
        self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -- Row builders --------------------------------------------------------

    def _build_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            phone=row["phone"],
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _build_message(self, row: sqlite3.Row) -> ChatMessage:
        return ChatMessage(
            id=row["id"],
            user_id=row["user_id"],
            message=row["message"],
            sender_type=row["sender_type"],
            timestamp=row["timestamp"],
            session_id=row["session_id"],
        )
