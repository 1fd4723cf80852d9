"""MCP tools for user lookup, search, creation and update."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from chatdesk.envelopes import tool_error, tool_success
from chatdesk.mcp_tools.common import _int_arg, _optional_str_arg, _str_arg, _text
from chatdesk.validation import MIN_SEARCH_QUERY_LENGTH, is_valid_email, is_valid_search_query

logger = logging.getLogger(__name__)


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for user tools."""
    tools = [
        Tool(
            name="get_user_info",
            description="Get detailed information about a user",
            inputSchema={
                "type": "object",
                "properties": {"user_id": {"type": "integer", "description": "User ID"}},
                "required": ["user_id"],
            },
        ),
        Tool(
            name="search_users",
            description="Search users by first name, last name or email",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": f"Search text (at least {MIN_SEARCH_QUERY_LENGTH} characters)",
                    },
                    "limit": {"type": "integer", "default": 10, "minimum": 0, "description": "Max results (default 10)"},
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="get_active_users",
            description="List users whose status is active, ordered by name",
            inputSchema={
                "type": "object",
                "properties": {
                    "limit": {"type": "integer", "default": 50, "minimum": 0, "description": "Max results (default 50)"},
                },
            },
        ),
        Tool(
            name="get_user_by_email",
            description="Look up a user by exact email address",
            inputSchema={
                "type": "object",
                "properties": {"email": {"type": "string", "description": "Email address"}},
                "required": ["email"],
            },
        ),
        Tool(
            name="create_user",
            description="Create a new user with status 'active'",
            inputSchema={
                "type": "object",
                "properties": {
                    "email": {"type": "string", "description": "Unique email address"},
                    "first_name": {"type": "string", "description": "First name"},
                    "last_name": {"type": "string", "description": "Last name"},
                    "phone": {"type": "string", "description": "Phone number (optional)"},
                },
                "required": ["email", "first_name", "last_name"],
            },
        ),
        Tool(
            name="update_user",
            description="Update some fields of an existing user; omitted fields are left unchanged",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": {"type": "integer", "description": "User ID"},
                    "user_data": {
                        "type": "object",
                        "description": "Fields to change: email, first_name, last_name, phone, status",
                        "properties": {
                            "email": {"type": "string"},
                            "first_name": {"type": "string"},
                            "last_name": {"type": "string"},
                            "phone": {"type": ["string", "null"]},
                            "status": {"type": "string"},
                        },
                    },
                },
                "required": ["user_id", "user_data"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "get_user_info": _handle_get_user_info,
        "search_users": _handle_search_users,
        "get_active_users": _handle_get_active_users,
        "get_user_by_email": _handle_get_user_by_email,
        "create_user": _handle_create_user,
        "update_user": _handle_update_user,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_get_user_info(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err

    try:
        user = _get_db().get_user(user_id)
    except KeyError:
        return _text(tool_error("User not found", "not_found", user_id=user_id))
    return _text(tool_success(user=user.to_dict()))


async def _handle_search_users(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    query, err = _str_arg(arguments, "query")
    if err:
        return err
    limit, err = _int_arg(arguments, "limit", 10, min_val=0)
    if err:
        return err

    if not is_valid_search_query(query):
        return _text(
            tool_error(
                f"Search query must be at least {MIN_SEARCH_QUERY_LENGTH} characters long",
                "validation_error",
            )
        )

    users = _get_db().search_users(query, limit=limit)
    return _text(tool_success(users=[u.to_dict() for u in users], count=len(users), query=query))


async def _handle_get_active_users(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    limit, err = _int_arg(arguments, "limit", 50, min_val=0)
    if err:
        return err

    users = _get_db().list_active_users(limit=limit)
    return _text(tool_success(users=[u.to_dict() for u in users], count=len(users)))


async def _handle_get_user_by_email(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    email, err = _str_arg(arguments, "email")
    if err:
        return err
    if not is_valid_email(email):
        return _text(tool_error("Invalid email address format", "validation_error"))

    try:
        user = _get_db().get_user_by_email(email)
    except KeyError:
        return _text(tool_error("User not found", "not_found", email=email))
    return _text(tool_success(user=user.to_dict()))


async def _handle_create_user(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    email, err = _str_arg(arguments, "email")
    if err:
        return err
    first_name, err = _str_arg(arguments, "first_name")
    if err:
        return err
    last_name, err = _str_arg(arguments, "last_name")
    if err:
        return err
    phone, err = _optional_str_arg(arguments, "phone")
    if err:
        return err

    if not is_valid_email(email):
        return _text(tool_error("Invalid email address format", "validation_error"))

    db = _get_db()
    if db.email_exists(email):
        return _text(tool_error("User with this email already exists", "validation_error", email=email))
    try:
        user = db.create_user(email, first_name, last_name, phone=phone)
    except sqlite3.Error:
        logger.error("create_user failed for %s", email, exc_info=True)
        return _text(tool_error("Failed to create user", "store_error"))
    return _text(tool_success(user=user.to_dict(), message="User created successfully"))


async def _handle_update_user(arguments: dict[str, Any]) -> list[TextContent]:
    from chatdesk.mcp_server import _get_db

    user_id, err = _int_arg(arguments, "user_id")
    if err:
        return err
    user_data = arguments.get("user_data")
    if not isinstance(user_data, dict):
        return _text(tool_error("user_data must be an object", "validation_error"))

    db = _get_db()
    if db.find_user(user_id) is None:
        return _text(tool_error("User not found", "not_found", user_id=user_id))
    if "email" in user_data and not is_valid_email(user_data["email"]):
        return _text(tool_error("Invalid email address format", "validation_error"))

    try:
        user = db.update_user(user_id, user_data)
    except sqlite3.Error:
        logger.error("update_user failed for user %s", user_id, exc_info=True)
        return _text(tool_error("Failed to update user", "store_error", user_id=user_id))
    return _text(tool_success(user=user.to_dict(), message="User updated successfully"))
