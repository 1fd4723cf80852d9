"""URI parsing shared by the resource modules.

Resource URIs look like ``user://42/profile``, ``users://list`` or
``chat://session/abc``. Paginated resources also accept ``?limit=&offset=``.
Anything that does not resolve raises ``ValueError``, which the MCP SDK
reports as a protocol error.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

from chatdesk.envelopes import ResourceKind

ResourceHandler = Callable[[str | None, Mapping[str, str]], dict[str, Any]]

# (scheme, host, first path segment) -> kind. ``None`` in the host slot means
# the host is the identifier; in the segment slot it means the segment is.
_ROUTES: dict[tuple[str, str | None, str | None], ResourceKind] = {
    ("user", None, "profile"): ResourceKind.USER_PROFILE,
    ("user", None, "summary"): ResourceKind.USER_SUMMARY,
    ("users", "list", ""): ResourceKind.USERS_LIST,
    ("users", "active", ""): ResourceKind.USERS_ACTIVE,
    ("chat", "session", None): ResourceKind.CHAT_SESSION,
    ("chat", None, "history"): ResourceKind.CHAT_HISTORY,
    ("chat", None, "recent"): ResourceKind.CHAT_RECENT,
    ("chat", None, "sessions"): ResourceKind.CHAT_SESSIONS,
    ("chat", None, "count"): ResourceKind.CHAT_COUNT,
}


def parse_uri(uri: str) -> tuple[ResourceKind, str | None, dict[str, str]]:
    """Split *uri* into ``(kind, identifier, query_params)``."""
    parts = urlsplit(uri)
    scheme, host = parts.scheme, parts.netloc
    segment = unquote(parts.path.lstrip("/"))
    params = dict(parse_qsl(parts.query))

    kind = _ROUTES.get((scheme, host, ""))
    if kind is not None and not segment:
        return kind, None, params
    kind = _ROUTES.get((scheme, host, None))
    if kind is not None and segment:
        return kind, segment, params
    kind = _ROUTES.get((scheme, None, segment))
    if kind is not None and host:
        return kind, unquote(host), params

    msg = f"Unknown resource: {uri}"
    raise ValueError(msg)


def user_id_from(ident: str | None) -> int:
    """Resource user ids must be integers; anything else is a bad URI."""
    if ident is None or not ident.lstrip("-").isdigit():
        msg = f"Invalid user id in resource URI: {ident!r}"
        raise ValueError(msg)
    return int(ident)


def int_param(params: Mapping[str, str], name: str, default: int) -> int:
    raw = params.get(name)
    if raw is None or raw == "":
        return default
    if not raw.isdigit():
        msg = f"Query parameter {name} must be a non-negative integer, got {raw!r}"
        raise ValueError(msg)
    return int(raw)
