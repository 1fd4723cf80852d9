"""MCP server for the chat-support desk.

Exposes users and chat messages as MCP tools, resources and prompts.
Direct SQLite, no daemon.

Usage:
    chatdesk-mcp                           # stdio, database from CHATDESK_DB_PATH
    chatdesk-mcp --db /path/to/chatdesk.db # explicit database
    chatdesk-mcp --transport http          # streamable HTTP on MCP_SERVER_HOST:MCP_SERVER_PORT
"""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
import sys
import time
from collections.abc import Callable
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import GetPromptResult, Prompt, Resource, ResourceTemplate, TextContent, Tool

from chatdesk.config import ServerConfig
from chatdesk.core import ChatDeskDB
from chatdesk.envelopes import ResourceKind, tool_error
from chatdesk.errors import ChatDeskError, StartupError
from chatdesk.mcp_resources import chat as chat_resources
from chatdesk.mcp_resources import users as user_resources
from chatdesk.mcp_resources.common import ResourceHandler, parse_uri
from chatdesk.mcp_tools import chat as chat_tools
from chatdesk.mcp_tools import users as user_tools
from chatdesk.mcp_tools.common import _text
from chatdesk.prompts import get_prompt_result, list_prompt_definitions

# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

server = Server("chatdesk")
db: ChatDeskDB | None = None
_logger: logging.Logger | None = None
_request_db: ContextVar[ChatDeskDB | None] = ContextVar("chatdesk_request_db", default=None)


def _get_db() -> ChatDeskDB:
    active_db = _request_db.get() or db
    if active_db is None:
        msg = "Database not initialized"
        raise RuntimeError(msg)
    return active_db


def _collect_tools() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    tools: list[Tool] = []
    handlers: dict[str, Callable[..., Any]] = {}
    for register in (user_tools.register, chat_tools.register):
        module_tools, module_handlers = register()
        tools.extend(module_tools)
        handlers.update(module_handlers)
    return tools, handlers


def _collect_resources() -> tuple[list[Resource], list[ResourceTemplate], dict[ResourceKind, ResourceHandler]]:
    resources: list[Resource] = []
    templates: list[ResourceTemplate] = []
    handlers: dict[ResourceKind, ResourceHandler] = {}
    for register in (user_resources.register, chat_resources.register):
        module_resources, module_templates, module_handlers = register()
        resources.extend(module_resources)
        templates.extend(module_templates)
        handlers.update(module_handlers)
    return resources, templates, handlers


_TOOLS, _TOOL_HANDLERS = _collect_tools()
_RESOURCES, _RESOURCE_TEMPLATES, _RESOURCE_HANDLERS = _collect_resources()


def configure(config: ServerConfig) -> None:
    """Advertise the configured name and version during MCP initialization."""
    server.name = config["name"]
    server.version = config["version"]


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@server.list_resources()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_resources() -> list[Resource]:
    return list(_RESOURCES)


@server.list_resource_templates()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_resource_templates() -> list[ResourceTemplate]:
    return list(_RESOURCE_TEMPLATES)


@server.read_resource()  # type: ignore[untyped-decorator,no-untyped-call]
async def read_resource(uri: Any) -> list[ReadResourceContents]:
    t0 = time.monotonic()
    kind, ident, params = parse_uri(str(uri))
    body = _RESOURCE_HANDLERS[kind](ident, params)
    if _logger:
        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        _logger.info("resource_read", extra={"resource": str(uri), "duration_ms": duration_ms})
    return [ReadResourceContents(content=json.dumps(body, indent=2, default=str), mime_type="application/json")]


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


@server.list_prompts()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_prompts() -> list[Prompt]:
    return list_prompt_definitions()


@server.get_prompt()  # type: ignore[untyped-decorator,no-untyped-call]
async def get_prompt(name: str, arguments: dict[str, str] | None = None) -> GetPromptResult:
    result = get_prompt_result(name, arguments)
    if _logger:
        _logger.info("prompt_get", extra={"prompt": name, "args_data": arguments or {}})
    return result


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@server.list_tools()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_tools() -> list[Tool]:
    return list(_TOOLS)


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    handler = _TOOL_HANDLERS.get(name)
    if handler is None:
        return _text(tool_error(f"Unknown tool: {name}", "unknown_tool"))

    store = _get_db()
    t0 = time.monotonic()
    try:
        result: list[TextContent] = await handler(arguments or {})
    except Exception:
        if _logger:
            _logger.error("tool_error", extra={"tool": name, "args_data": arguments}, exc_info=True)
        raise
    else:
        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        if _logger:
            _logger.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
        return result
    finally:
        # Writes commit explicitly; anything still open here came from a failed mutation.
        if store.conn.in_transaction:
            store.conn.rollback()


# ---------------------------------------------------------------------------
# HTTP transport factory
# ---------------------------------------------------------------------------


def create_mcp_app(db_resolver: Callable[[], ChatDeskDB | None] | None = None) -> Any:
    """Create an ASGI app + lifespan hook for MCP streamable-HTTP.

    Returns ``(asgi_app, lifespan_context_manager)``. The lifespan must be
    entered during the parent application's lifespan so the underlying
    ``StreamableHTTPSessionManager`` task group is running before the first
    request arrives.

    ``db_resolver`` optionally returns the :class:`ChatDeskDB` each request
    should use; it is installed in a request-local ``ContextVar``.
    """
    from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
    from starlette.responses import JSONResponse

    session_manager = StreamableHTTPSessionManager(
        app=server,
        json_response=False,
        stateless=True,
    )

    async def _handle_mcp(scope: Any, receive: Any, send: Any) -> None:
        db_token: Any = None
        if db_resolver is not None:
            resolved = db_resolver()
            if resolved is None:
                resp = JSONResponse(
                    {"error": "Database not initialized", "code": "store_unavailable"},
                    status_code=503,
                )
                await resp(scope, receive, send)
                return
            db_token = _request_db.set(resolved)
        try:
            await session_manager.handle_request(scope, receive, send)
        except RuntimeError:
            # Session manager not started (lifespan not entered).
            resp = JSONResponse({"error": "MCP session manager not initialized"}, status_code=503)
            await resp(scope, receive, send)
        finally:
            if db_token is not None:
                _request_db.reset(db_token)

    return _handle_mcp, session_manager.run


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def open_database(db_path: Path, *, check_same_thread: bool = True) -> ChatDeskDB:
    """Open and initialize the database at *db_path*.

    The parent directory must already exist. Raises StartupError if the file
    cannot be opened or carries a newer schema than this release supports.
    """
    if not db_path.parent.is_dir():
        msg = f"Database directory does not exist: {db_path.parent}"
        raise StartupError(msg)
    store = ChatDeskDB(db_path, check_same_thread=check_same_thread)
    try:
        store.initialize()
    except (sqlite3.Error, RuntimeError) as exc:
        store.close()
        msg = f"Cannot open database {db_path}: {exc}"
        raise StartupError(msg) from exc
    return store


def start_logging(config: ServerConfig) -> logging.Logger:
    """Install the module logger; file output only when a log directory is configured."""
    global _logger

    if config["log_dir"] is not None:
        from chatdesk.logging import setup_logging

        _logger = setup_logging(config["log_dir"])
    else:
        from chatdesk.logging import LOGGER_NAME

        _logger = logging.getLogger(LOGGER_NAME)
    return _logger


async def _run(config: ServerConfig) -> None:
    global db

    configure(config)
    db = open_database(config["db_path"])
    logger = start_logging(config)
    logger.info("mcp_server_start", extra={"tool": "server", "args_data": {"db": str(config["db_path"])}})

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        db.close()
        db = None


def main() -> None:
    import asyncio

    from chatdesk.config import TRANSPORTS, load_env, read_config

    parser = argparse.ArgumentParser(description="Chat support MCP server")
    parser.add_argument("--transport", choices=TRANSPORTS, default="stdio", help="MCP transport (default: stdio)")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (overrides CHATDESK_DB_PATH)")
    args = parser.parse_args()

    load_env()
    try:
        config = read_config()
        if args.db is not None:
            config["db_path"] = args.db

        if args.transport == "http":
            from chatdesk.web import main as web_main

            web_main(config)
        else:
            asyncio.run(_run(config))
    except ChatDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
