"""Fixtures for MCP server tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from chatdesk.core import ChatDeskDB


@pytest.fixture
def mcp_db(db: ChatDeskDB) -> Generator[ChatDeskDB, None, None]:
    """Point the MCP module global at the per-test database."""
    import chatdesk.mcp_server as mcp_mod

    original_db = mcp_mod.db
    mcp_mod.db = db

    yield db

    mcp_mod.db = original_db
