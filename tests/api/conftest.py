"""Fixtures for the HTTP front door tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import chatdesk.web as web_module
from chatdesk.config import read_config
from chatdesk.core import ChatDeskDB
from chatdesk.web import create_app
from tests._db_factory import make_db


@pytest.fixture
def web_db(tmp_path: Path) -> Generator[ChatDeskDB, None, None]:
    """ChatDeskDB opened with check_same_thread=False like the HTTP server."""
    d = make_db(tmp_path, check_same_thread=False)
    yield d
    d.close()


@pytest.fixture
async def client(web_db: ChatDeskDB) -> AsyncIterator[AsyncClient]:
    """Client for an app configured from a fixed environment."""
    web_module._db = web_db
    app = create_app(read_config({"MCP_SERVER_NAME": "Desk Under Test", "MCP_SERVER_VERSION": "9.9.9"}))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    web_module._db = None
