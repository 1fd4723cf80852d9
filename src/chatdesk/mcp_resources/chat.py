"""MCP resources for chat history, sessions and message counts."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mcp.types import Resource, ResourceTemplate

from chatdesk.envelopes import URI_TEMPLATES, ResourceKind, resource_error, resource_payload
from chatdesk.mcp_resources.common import ResourceHandler, int_param, user_id_from

_JSON = "application/json"

_DEFAULT_LIMIT = 50


def register() -> tuple[list[Resource], list[ResourceTemplate], dict[ResourceKind, ResourceHandler]]:
    """Return (static_resources, templates, handler_map) for chat resources."""
    templates = [
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.CHAT_HISTORY],
            name="chat_history",
            description="Chat message history for a user, newest first (?limit=&offset=)",
            mimeType=_JSON,
        ),
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.CHAT_RECENT],
            name="recent_messages",
            description="Recent chat messages for a user (?limit=&offset=)",
            mimeType=_JSON,
        ),
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.CHAT_SESSION],
            name="session_history",
            description="Chat messages for a specific session (?limit=&offset=)",
            mimeType=_JSON,
        ),
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.CHAT_SESSIONS],
            name="user_sessions",
            description="Chat sessions for a user, most recently active first",
            mimeType=_JSON,
        ),
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.CHAT_COUNT],
            name="message_count",
            description="Total message count for a user",
            mimeType=_JSON,
        ),
    ]
    handlers: dict[ResourceKind, ResourceHandler] = {
        ResourceKind.CHAT_HISTORY: _read_history,
        ResourceKind.CHAT_RECENT: _read_recent,
        ResourceKind.CHAT_SESSION: _read_session,
        ResourceKind.CHAT_SESSIONS: _read_sessions,
        ResourceKind.CHAT_COUNT: _read_count,
    }
    return [], templates, handlers


def _user_messages(kind: ResourceKind, ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    """Shared body of the history and recent resources, which differ only in their URI."""
    from chatdesk.mcp_server import _get_db

    user_id = user_id_from(ident)
    limit = int_param(params, "limit", _DEFAULT_LIMIT)
    offset = int_param(params, "offset", 0)

    db = _get_db()
    if db.find_user(user_id) is None:
        return resource_error("User not found", kind, user_id, user_id=user_id, messages=[], count=0)
    messages = db.list_user_messages(user_id, limit=limit, offset=offset)
    return resource_payload(
        kind,
        user_id,
        user_id=user_id,
        messages=[m.to_dict() for m in messages],
        count=len(messages),
    )


def _read_history(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    return _user_messages(ResourceKind.CHAT_HISTORY, ident, params)


def _read_recent(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    return _user_messages(ResourceKind.CHAT_RECENT, ident, params)


def _read_session(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    session_id = ident or ""
    messages = _get_db().list_session_messages(
        session_id,
        limit=int_param(params, "limit", _DEFAULT_LIMIT),
        offset=int_param(params, "offset", 0),
    )
    return resource_payload(
        ResourceKind.CHAT_SESSION,
        session_id,
        session_id=session_id,
        messages=[m.to_dict() for m in messages],
        count=len(messages),
    )


def _read_sessions(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    user_id = user_id_from(ident)
    db = _get_db()
    try:
        db.get_user(user_id)
    except KeyError:
        return resource_error(
            "User not found", ResourceKind.CHAT_SESSIONS, user_id, user_id=user_id, sessions=[], count=0
        )
    sessions = db.list_user_sessions(user_id)
    return resource_payload(ResourceKind.CHAT_SESSIONS, user_id, user_id=user_id, sessions=sessions, count=len(sessions))


def _read_count(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    user_id = user_id_from(ident)
    db = _get_db()
    count = db.count_user_messages(user_id) if db.find_user(user_id) is not None else 0
    return resource_payload(ResourceKind.CHAT_COUNT, user_id, user_id=user_id, message_count=count)
