"""MCP server plumbing: tool registry, dispatch, logging and rollback."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

import chatdesk.mcp_server as mcp_mod
from chatdesk.config import read_config
from chatdesk.core import ChatDeskDB
from chatdesk.errors import StartupError
from chatdesk.mcp_server import _get_db, call_tool, configure, list_tools, open_database
from tests.mcp._helpers import _parse

EXPECTED_TOOLS = {
    "get_user_info",
    "search_users",
    "get_active_users",
    "get_user_by_email",
    "create_user",
    "update_user",
    "get_chat_history",
    "get_recent_messages",
    "get_session_history",
    "add_chat_message",
    "search_chat_messages",
    "get_active_sessions",
    "get_message_count",
    "get_message_by_id",
}


class TestToolRegistry:
    async def test_all_tools_listed(self) -> None:
        tools = await list_tools()
        assert {t.name for t in tools} == EXPECTED_TOOLS
        assert len(tools) == len(EXPECTED_TOOLS)

    async def test_every_tool_has_object_schema(self) -> None:
        for tool in await list_tools():
            assert tool.inputSchema["type"] == "object"
            for required in tool.inputSchema.get("required", []):
                assert required in tool.inputSchema["properties"]

    async def test_unknown_tool(self, mcp_db: ChatDeskDB) -> None:
        data = _parse(await call_tool("delete_everything", {}))
        assert data == {"success": False, "error": "Unknown tool: delete_everything", "code": "unknown_tool"}

    def test_get_db_without_database(self) -> None:
        with patch.object(mcp_mod, "db", None), pytest.raises(RuntimeError, match="not initialized"):
            _get_db()


class TestToolLogging:
    async def test_tool_call_logged_with_duration(self, mcp_db: ChatDeskDB) -> None:
        logger = logging.getLogger("chatdesk.test_tool_logging")
        records: list[logging.LogRecord] = []
        handler = logging.Handler()
        handler.emit = records.append  # type: ignore[method-assign]
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        with patch.object(mcp_mod, "_logger", logger):
            await call_tool("get_message_count", {"user_id": 1})
        logger.removeHandler(handler)

        assert [r.getMessage() for r in records] == ["tool_call"]
        record: Any = records[0]
        assert record.tool == "get_message_count"
        assert record.args_data == {"user_id": 1}
        assert record.duration_ms >= 0

    async def test_handler_exception_logged_and_reraised(self, mcp_db: ChatDeskDB) -> None:
        logger = logging.getLogger("chatdesk.test_tool_errors")
        records: list[logging.LogRecord] = []
        handler = logging.Handler()
        handler.emit = records.append  # type: ignore[method-assign]
        logger.addHandler(handler)
        with (
            patch.object(mcp_mod, "_logger", logger),
            patch.object(ChatDeskDB, "find_user", side_effect=RuntimeError("boom")),
            pytest.raises(RuntimeError, match="boom"),
        ):
            await call_tool("get_message_count", {"user_id": 1})
        logger.removeHandler(handler)

        assert [r.getMessage() for r in records] == ["tool_error"]
        assert records[0].exc_info is not None


class TestRollback:
    async def test_open_transaction_rolled_back_after_call(self, mcp_db: ChatDeskDB) -> None:
        mcp_db.conn.execute(
            "INSERT INTO users (email, first_name, last_name, status, created_at, updated_at) "
            "VALUES ('dirty@example.com', 'D', 'T', 'active', 'x', 'x')"
        )
        assert mcp_db.conn.in_transaction
        await call_tool("get_active_users", {})
        assert not mcp_db.conn.in_transaction
        assert mcp_db.find_user_by_email("dirty@example.com") is None


class TestStartup:
    def test_configure_sets_advertised_identity(self) -> None:
        original = (mcp_mod.server.name, mcp_mod.server.version)
        try:
            configure(read_config({"MCP_SERVER_NAME": "Desk", "MCP_SERVER_VERSION": "2.0.0"}))
            options = mcp_mod.server.create_initialization_options()
            assert options.server_name == "Desk"
            assert options.server_version == "2.0.0"
        finally:
            mcp_mod.server.name, mcp_mod.server.version = original

    def test_open_database_creates_schema(self, tmp_path: Path) -> None:
        store = open_database(tmp_path / "chat.db")
        try:
            assert store.get_schema_version() == 1
        finally:
            store.close()

    def test_open_database_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(StartupError, match="does not exist"):
            open_database(tmp_path / "missing" / "chat.db")

    def test_open_database_newer_schema(self, tmp_path: Path) -> None:
        path = tmp_path / "future.db"
        with ChatDeskDB(path) as store:
            store.conn.execute("PRAGMA user_version = 99")
            store.conn.commit()
        with pytest.raises(StartupError, match="newer"):
            open_database(path)
