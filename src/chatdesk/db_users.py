"""UsersMixin: user lookup, search, creation and partial update.

All methods access ``self.conn`` and the row builders via Python's MRO
when composed into ``ChatDeskDB``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from chatdesk.db_base import DBMixinProtocol, _escape_like, _now_iso

if TYPE_CHECKING:
    from chatdesk.core import User

# Columns a partial update may touch. Anything else in the update mapping is ignored.
UPDATABLE_USER_FIELDS: tuple[str, ...] = ("email", "first_name", "last_name", "phone", "status")


class UsersMixin(DBMixinProtocol):
    """User records.

    Two lookup styles are offered deliberately: ``get_*`` raises ``KeyError``
    for a missing record, ``find_*`` returns ``None``.
    """

    def create_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        *,
        phone: str | None = None,
        status: str = "active",
    ) -> User:
        now = _now_iso()
        try:
            cursor = self.conn.execute(
                "INSERT INTO users (email, first_name, last_name, phone, status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (email, first_name, last_name, phone, status, now, now),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        rowid = cursor.lastrowid
        if rowid is None:  # pragma: no cover: INSERT always sets lastrowid
            msg = "INSERT did not produce a lastrowid"
            raise RuntimeError(msg)
        return self.get_user(rowid)

    def get_user(self, user_id: int) -> User:
        user = self.find_user(user_id)
        if user is None:
            msg = f"User not found: {user_id}"
            raise KeyError(msg)
        return user

    def find_user(self, user_id: int) -> User | None:
        row = self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._build_user(row)

    def get_user_by_email(self, email: str) -> User:
        user = self.find_user_by_email(email)
        if user is None:
            msg = f"User not found: {email}"
            raise KeyError(msg)
        return user

    def find_user_by_email(self, email: str) -> User | None:
        row = self.conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if row is None:
            return None
        return self._build_user(row)

    def email_exists(self, email: str) -> bool:
        row = self.conn.execute("SELECT 1 FROM users WHERE email = ? LIMIT 1", (email,)).fetchone()
        return row is not None

    def update_user(self, user_id: int, fields: dict[str, Any]) -> User:
        """Apply a partial update and return the re-read record.

        Only keys in ``UPDATABLE_USER_FIELDS`` are written; omitted keys keep
        their stored value. Raises KeyError if the user does not exist.
        """
        self.get_user(user_id)
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_USER_FIELDS}
        if updates:
            assignments = ", ".join(f"{col} = ?" for col in updates)
            params = [*updates.values(), _now_iso(), user_id]
            try:
                self.conn.execute(f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?", params)
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return self.get_user(user_id)

    def search_users(self, query: str, *, limit: int = 10) -> list[User]:
        """Substring match on first name, last name or email, ordered by id."""
        pattern = _escape_like(query)
        rows = self.conn.execute(
            "SELECT * FROM users "
            "WHERE first_name LIKE ? ESCAPE '\\' OR last_name LIKE ? ESCAPE '\\' OR email LIKE ? ESCAPE '\\' "
            "ORDER BY id LIMIT ?",
            (pattern, pattern, pattern, limit),
        ).fetchall()
        return [self._build_user(r) for r in rows]

    def list_users(self) -> list[User]:
        rows = self.conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        return [self._build_user(r) for r in rows]

    def list_active_users(self, *, limit: int = 50) -> list[User]:
        rows = self.conn.execute(
            "SELECT * FROM users WHERE status = 'active' ORDER BY first_name, last_name, id LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._build_user(r) for r in rows]
