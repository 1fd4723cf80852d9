"""Response envelopes, canonical resource URIs and timestamps.

Two envelope families exist and they are intentionally asymmetric:

* Tool envelopes carry ``success``. On failure they hold ``error``, an error
  ``code`` and optional identifying context, but never a payload.
* Resource envelopes never carry ``success``. On failure they still hold the
  complete payload shape, zero-filled (empty lists, ``0``, ``None``), plus
  ``error``, the self-referencing URI and a timestamp.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any, Literal

ErrorCode = Literal["validation_error", "not_found", "store_error", "unknown_tool"]


class ResourceKind(enum.Enum):
    USER_PROFILE = "profile"
    USER_SUMMARY = "summary"
    USERS_LIST = "users_list"
    USERS_ACTIVE = "users_active"
    CHAT_HISTORY = "history"
    CHAT_RECENT = "recent"
    CHAT_SESSIONS = "sessions"
    CHAT_COUNT = "count"
    CHAT_SESSION = "session"


_URI_FORMATS: dict[ResourceKind, str] = {
    ResourceKind.USER_PROFILE: "user://{}/profile",
    ResourceKind.USER_SUMMARY: "user://{}/summary",
    ResourceKind.USERS_LIST: "users://list",
    ResourceKind.USERS_ACTIVE: "users://active",
    ResourceKind.CHAT_HISTORY: "chat://{}/history",
    ResourceKind.CHAT_RECENT: "chat://{}/recent",
    ResourceKind.CHAT_SESSIONS: "chat://{}/sessions",
    ResourceKind.CHAT_COUNT: "chat://{}/count",
    ResourceKind.CHAT_SESSION: "chat://session/{}",
}

_URL_KEYS: dict[ResourceKind, str] = {
    ResourceKind.USER_PROFILE: "profile_url",
    ResourceKind.USER_SUMMARY: "summary_url",
    ResourceKind.CHAT_HISTORY: "history_url",
    ResourceKind.CHAT_RECENT: "recent_url",
    ResourceKind.CHAT_SESSIONS: "sessions_url",
    ResourceKind.CHAT_COUNT: "count_url",
    ResourceKind.CHAT_SESSION: "session_url",
}

# URI templates advertised through resources/templates/list.
URI_TEMPLATES: dict[ResourceKind, str] = {
    ResourceKind.USER_PROFILE: "user://{user_id}/profile",
    ResourceKind.USER_SUMMARY: "user://{user_id}/summary",
    ResourceKind.CHAT_HISTORY: "chat://{user_id}/history",
    ResourceKind.CHAT_RECENT: "chat://{user_id}/recent",
    ResourceKind.CHAT_SESSIONS: "chat://{user_id}/sessions",
    ResourceKind.CHAT_COUNT: "chat://{user_id}/count",
    ResourceKind.CHAT_SESSION: "chat://session/{session_id}",
}


def build_uri(kind: ResourceKind, ident: int | str | None = None) -> str:
    """Return the canonical URI for *kind*, e.g. ``chat://42/history``."""
    fmt = _URI_FORMATS[kind]
    if "{}" in fmt:
        if ident is None:
            msg = f"{kind.name} URIs require an identifier"
            raise ValueError(msg)
        return fmt.format(ident)
    return fmt


def url_key(kind: ResourceKind) -> str:
    """Envelope key under which a resource reports its own URI."""
    return _URL_KEYS[kind]


def current_timestamp() -> str:
    """Now, ISO-8601 with offset and second precision: ``2024-01-15T10:30:00+00:00``."""
    return datetime.now(UTC).isoformat(timespec="seconds")


# ---------------------------------------------------------------------------
# Tool envelopes
# ---------------------------------------------------------------------------


def tool_success(**payload: Any) -> dict[str, Any]:
    return {"success": True, **payload}


def tool_error(message: str, code: ErrorCode, **context: Any) -> dict[str, Any]:
    return {"success": False, "error": message, "code": code, **context}


# ---------------------------------------------------------------------------
# Resource envelopes
# ---------------------------------------------------------------------------


def resource_payload(kind: ResourceKind, ident: int | str | None = None, **payload: Any) -> dict[str, Any]:
    """Successful resource body: payload, self URI (when the kind has one), timestamp."""
    body = dict(payload)
    if kind in _URL_KEYS:
        body[url_key(kind)] = build_uri(kind, ident)
    body["timestamp"] = current_timestamp()
    return body


def resource_error(message: str, kind: ResourceKind, ident: int | str, **empty_payload: Any) -> dict[str, Any]:
    """Failed resource body: ``error`` plus the zero-filled shape of the success body."""
    return {"error": message, **resource_payload(kind, ident, **empty_payload)}
