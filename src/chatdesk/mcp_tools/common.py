"""Pure helpers shared across MCP tool modules.

This module has NO dependency on ``mcp_server`` module globals, so it can
be imported freely without triggering circular-import issues.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.types import TextContent

from chatdesk.envelopes import tool_error

logger = logging.getLogger(__name__)


def _text(content: object) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _int_arg(
    arguments: dict[str, Any],
    name: str,
    default: int | None = None,
    *,
    min_val: int | None = None,
) -> tuple[int, list[TextContent] | None]:
    """Coerce ``arguments[name]`` to int.

    Accepts ints and numeric strings (transports may deliver either). Returns
    ``(value, None)`` or ``(0, error_response)``. A missing key falls back to
    *default*; a missing key with no default is a validation error.
    """
    raw = arguments.get(name, default)
    if raw is None:
        return 0, _text(tool_error(f"{name} is required", "validation_error"))
    if isinstance(raw, bool):
        return 0, _text(tool_error(f"{name} must be an integer", "validation_error"))
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            return 0, _text(tool_error(f"{name} must be an integer", "validation_error"))
    else:
        return 0, _text(tool_error(f"{name} must be an integer", "validation_error"))
    if min_val is not None and value < min_val:
        return 0, _text(tool_error(f"{name} must be >= {min_val}", "validation_error"))
    return value, None


def _str_arg(arguments: dict[str, Any], name: str) -> tuple[str, list[TextContent] | None]:
    """Return the required string argument *name*, or ``("", error_response)``."""
    value = arguments.get(name)
    if value is None:
        return "", _text(tool_error(f"{name} is required", "validation_error"))
    if not isinstance(value, str):
        return "", _text(tool_error(f"{name} must be a string", "validation_error"))
    return value, None


def _optional_str_arg(arguments: dict[str, Any], name: str) -> tuple[str | None, list[TextContent] | None]:
    """Like :func:`_str_arg` but a missing or null value yields ``None``."""
    value = arguments.get(name)
    if value is not None and not isinstance(value, str):
        return None, _text(tool_error(f"{name} must be a string", "validation_error"))
    return value, None
