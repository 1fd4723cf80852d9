"""MCP resources for user profiles, summaries and user lists."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mcp.types import Resource, ResourceTemplate

from chatdesk.envelopes import URI_TEMPLATES, ResourceKind, build_uri, resource_error, resource_payload
from chatdesk.mcp_resources.common import ResourceHandler, int_param, user_id_from

_JSON = "application/json"


def register() -> tuple[list[Resource], list[ResourceTemplate], dict[ResourceKind, ResourceHandler]]:
    """Return (static_resources, templates, handler_map) for user resources."""
    resources = [
        Resource(
            uri=build_uri(ResourceKind.USERS_LIST),  # type: ignore[arg-type]
            name="users_list",
            description="List of all users in the system",
            mimeType=_JSON,
        ),
        Resource(
            uri=build_uri(ResourceKind.USERS_ACTIVE),  # type: ignore[arg-type]
            name="active_users",
            description="List of all active users, ordered by name",
            mimeType=_JSON,
        ),
    ]
    templates = [
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.USER_PROFILE],
            name="user_profile",
            description="User profile information",
            mimeType=_JSON,
        ),
        ResourceTemplate(
            uriTemplate=URI_TEMPLATES[ResourceKind.USER_SUMMARY],
            name="user_summary",
            description="User summary information",
            mimeType=_JSON,
        ),
    ]
    handlers: dict[ResourceKind, ResourceHandler] = {
        ResourceKind.USER_PROFILE: _read_profile,
        ResourceKind.USER_SUMMARY: _read_summary,
        ResourceKind.USERS_LIST: _read_users_list,
        ResourceKind.USERS_ACTIVE: _read_active_users,
    }
    return resources, templates, handlers


def _read_profile(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    user_id = user_id_from(ident)
    user = _get_db().find_user(user_id)
    if user is None:
        return resource_error("User not found", ResourceKind.USER_PROFILE, user_id, user_id=user_id, user=None)
    return resource_payload(ResourceKind.USER_PROFILE, user_id, user=user.to_dict())


def _read_summary(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    user_id = user_id_from(ident)
    user = _get_db().find_user(user_id)
    if user is None:
        return resource_error(
            "User not found",
            ResourceKind.USER_SUMMARY,
            user_id,
            user_id=user_id,
            id=None,
            name=None,
            email=None,
            status=None,
            created_at=None,
        )
    return resource_payload(
        ResourceKind.USER_SUMMARY,
        user_id,
        id=user.id,
        name=user.full_name,
        email=user.email,
        status=user.status,
        created_at=user.created_at,
    )


def _read_users_list(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    users = _get_db().list_users()
    return resource_payload(ResourceKind.USERS_LIST, users=[u.to_dict() for u in users], count=len(users))


def _read_active_users(ident: str | None, params: Mapping[str, str]) -> dict[str, Any]:
    from chatdesk.mcp_server import _get_db

    users = _get_db().list_active_users(limit=int_param(params, "limit", 50))
    return resource_payload(ResourceKind.USERS_ACTIVE, users=[u.to_dict() for u in users], count=len(users))
