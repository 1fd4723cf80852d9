"""Shared utilities, types, and Protocol for DB mixins."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from chatdesk.core import ChatMessage, User


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _to_utc_iso(value: datetime | str) -> str:
    """Normalize a caller-supplied timestamp to the stored UTC ISO form.

    Naive datetimes are taken to be UTC already.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _escape_like(query: str) -> str:
    """Escape LIKE wildcards so *query* matches as a literal substring."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check self.conn,
    self.get_user(), etc. Actual implementations are provided by
    ChatDeskDB at composition time.
    """

    db_path: Path
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...

    def get_user(self, user_id: int) -> User: ...

    def find_user(self, user_id: int) -> User | None: ...

    def _build_user(self, row: sqlite3.Row) -> User: ...

    def _build_message(self, row: sqlite3.Row) -> ChatMessage: ...
