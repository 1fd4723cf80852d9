"""MCP tools for chat history, search, sessions and message creation."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from chatdesk.envelopes import tool_error, tool_success
from chatdesk.mcp_tools.common import _int_arg, _optional_str_arg, _str_arg, _text
from chatdesk.validation import (
    MIN_SEARCH_QUERY_LENGTH,
    is_valid_message_text,
    is_valid_search_query,
    is_valid_sender_type,
)

logger = logging.getLogger(__name__)

_USER_ID_PROP = {"type": "integer", "description": "User ID"}


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for chat tools."""
    tools = [
        Tool(
            name="get_chat_history",
            description="Get chat message history for a specific user, newest first",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": _USER_ID_PROP,
                    "limit": {"type": "integer", "default": 50, "minimum": 0, "description": "Max messages (default 50)"},
                    "offset": {"type": "integer", "default": 0, "minimum": 0, "description": "Skip first N messages"},
                },
                "required": ["user_id"],
            },
        ),
        Tool(
            name="get_recent_messages",
            description="Get recent chat messages for a user",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": _USER_ID_PROP,
                    "limit": {"type": "integer", "default": 10, "minimum": 0, "description": "Max messages (default 10)"},
                },
                "required": ["user_id"],
            },
        ),
        Tool(
            name="get_session_history",
            description="Get chat messages for a specific session, newest first",
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": {"type": "string", "description": "Session ID"},
                    "limit": {"type": "integer", "default": 50, "minimum": 0, "description": "Max messages (default 50)"},
                    "offset": {"type": "integer", "default": 0, "minimum": 0, "description": "Skip first N messages"},
                },
                "required": ["session_id"],
            },
        ),
        Tool(
            name="add_chat_message",
            description="Add a new chat message to the database",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": _USER_ID_PROP,
                    "message": {"type": "string", "description": "Message text"},
                    "sender_type": {
                        "type": "string",
                        "enum": ["user", "agent", "bot"],
                        "description": "Who sent the message",
                    },
                    "session_id": {"type": "string", "description": "Conversation session ID (optional)"},
                },
                "required": ["user_id", "message", "sender_type"],
            },
        ),
        Tool(
            name="search_chat_messages",
            description="Search a user's chat messages by substring",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": _USER_ID_PROP,
                    "query": {
                        "type": "string",
                        "description": f"Search text (at least {MIN_SEARCH_QUERY_LENGTH} characters)",
                    },
                    "limit": {"type": "integer", "default": 20, "minimum": 0, "description": "Max results (default 20)"},
                },
                "required": ["user_id", "query"],
            },
        ),
        Tool(
            name="get_active_sessions",
            description="Get a user's chat sessions, most recently active first",
            inputSchema={
                "type": "object",
                "properties": {"user_id": _USER_ID_PROP},
                "required": ["user_id"],
            },
        ),
        Tool(
            name="get_message_count",
            description="Get total number of messages for a user (0 for unknown users)",
            inputSchema={
                "type": "object",
                "properties": {"user_id": _USER_ID_PROP},
                "required": ["user_id"],
            },
        ),
        Tool(
            name="get_message_by_id",
            description="Get a specific chat message by its ID",
            inputSchema={
                "type": "object",
                "properties": {"message_id": {"type": "integer", "description": "Message ID"}},
                "required": ["message_id"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "get_chat_history": _handle_get_chat_history,
        "get_recent_messages": _handle_get_recent_messages,
        "get_session_history": _handle_get_session_history,
        "add_chat_message": _handle_add_chat_message,
        "search_chat_messages": _handle_search_chat_messages,
        "get_active_sessions": _handle_get_active_sessions,
        "get_message_count": _handle_get_message_count,
        "get_message_by_id": _handle_get_message_by_id,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_get_chat_history(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err
    limit, err = _int_arg(arguments, "limit", 50, min_val=0)
    if err:
        return err
    offset, err = _int_arg(arguments, "offset", 0, min_val=0)
    if err:
        return err

    db = _get_db()
    if db.find_user(user_id) is None:
        return _text(tool_error("User not found", "not_found"))
    messages = db.list_user_messages(user_id, limit=limit, offset=offset)
    return _text(
        tool_success(
            messages=[m.to_dict() for m in messages],
            count=len(messages),
            user_id=user_id,
            limit=limit,
            offset=offset,
        )
    )


async def _handle_get_recent_messages(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err
    limit, err = _int_arg(arguments, "limit", 10, min_val=0)
    if err:
        return err

    db = _get_db()
    try:
        db.get_user(user_id)
    except KeyError:
        return _text(tool_error("User not found", "not_found", user_id=user_id))
    messages = db.list_user_messages(user_id, limit=limit)
    return _text(tool_success(messages=[m.to_dict() for m in messages], count=len(messages), user_id=user_id))


async def _handle_get_session_history(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    session_id, err = _str_arg(arguments, "session_id")
    if err:
        return err
    limit, err = _int_arg(arguments, "limit", 50, min_val=0)
    if err:
        return err
    offset, err = _int_arg(arguments, "offset", 0, min_val=0)
    if err:
        return err

    messages = _get_db().list_session_messages(session_id, limit=limit, offset=offset)
    return _text(tool_success(messages=[m.to_dict() for m in messages], count=len(messages), session_id=session_id))


async def _handle_add_chat_message(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err
    message, err = _str_arg(arguments, "message")
    if err:
        return err
    session_id, err = _optional_str_arg(arguments, "session_id")
    if err:
        return err

    # Malformed input is rejected before the store is touched.
    if not is_valid_sender_type(arguments.get("sender_type")):
        return _text(tool_error("Invalid sender type. Must be user, agent, or bot", "validation_error"))
    if not is_valid_message_text(message):
        return _text(tool_error("Message cannot be empty", "validation_error"))

    db = _get_db()
    if db.find_user(user_id) is None:
        return _text(tool_error("User not found", "not_found", user_id=user_id))
    try:
        saved = db.add_message(user_id, message, arguments["sender_type"], session_id=session_id)
    except sqlite3.Error:
        logger.error("add_chat_message failed for user %s", user_id, exc_info=True)
        return _text(tool_error("Failed to add message", "store_error"))
    return _text(tool_success(message=saved.to_dict()))


async def _handle_search_chat_messages(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err
    query, err = _str_arg(arguments, "query")
    if err:
        return err
    limit, err = _int_arg(arguments, "limit", 20, min_val=0)
    if err:
        return err

    if not is_valid_search_query(query):
        return _text(
            tool_error(
                f"Search query must be at least {MIN_SEARCH_QUERY_LENGTH} characters long",
                "validation_error",
            )
        )

    db = _get_db()
    try:
        db.get_user(user_id)
    except KeyError:
        return _text(tool_error("User not found", "not_found", user_id=user_id))
    messages = db.search_user_messages(user_id, query, limit=limit)
    return _text(
        tool_success(
            messages=[m.to_dict() for m in messages],
            count=len(messages),
            user_id=user_id,
            query=query,
        )
    )


async def _handle_get_active_sessions(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err

    db = _get_db()
    try:
        db.get_user(user_id)
    except KeyError:
        return _text(tool_error("User not found", "not_found", user_id=user_id))
    sessions = db.list_user_sessions(user_id)
    return _text(tool_success(sessions=sessions, count=len(sessions), user_id=user_id))


async def _handle_get_message_count(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err

    db = _get_db()
    count = db.count_user_messages(user_id) if db.find_user(user_id) is not None else 0
    return _text(tool_success(count=count, user_id=user_id))


async def _handle_get_message_by_id(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    message_id, err = _int_arg(arguments, "message_id")
    if err:
        return err

    try:
        message = _get_db().get_message(message_id)
    except KeyError:
        return _text(tool_error("Message not found", "not_found", message_id=message_id))
    return _text(tool_success(message=message.to_dict()))
