"""Streamable-HTTP front door for the chat-support MCP server.

A small FastAPI application: the MCP endpoint is mounted at ``/mcp`` and
``GET /api/health`` reports liveness together with the configured server
name and version. The database is opened with ``check_same_thread=False``
because uvicorn may serve requests from worker threads.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from chatdesk.config import ServerConfig
from chatdesk.core import ChatDeskDB

logger = logging.getLogger(__name__)

_db: ChatDeskDB | None = None


def create_app(config: ServerConfig) -> Any:
    """Create the FastAPI application serving MCP over streamable HTTP."""
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse
    from starlette.routing import Mount

    from chatdesk.mcp_server import create_mcp_app

    mcp_handler, mcp_lifespan_factory = create_mcp_app(db_resolver=lambda: _db)

    @contextlib.asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with mcp_lifespan_factory():
            yield

    app = FastAPI(title=config["name"], version=config["version"], docs_url=None, redoc_url=None, lifespan=_lifespan)

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok", "name": config["name"], "version": config["version"]})

    app.routes.append(Mount("/mcp", app=mcp_handler))
    return app


def main(config: ServerConfig) -> None:
    """Open the database and serve until interrupted."""
    import uvicorn

    from chatdesk.mcp_server import configure, open_database, start_logging

    global _db

    configure(config)
    _db = open_database(config["db_path"], check_same_thread=False)
    start_logging(config).info(
        "mcp_server_start",
        extra={"tool": "server", "args_data": {"db": str(config["db_path"]), "port": config["port"]}},
    )

    app = create_app(config)
    print(f"{config['name']}: http://{config['host']}:{config['port']}/mcp")
    try:
        uvicorn.run(app, host=config["host"], port=config["port"], log_level="warning")
    finally:
        _db.close()
        _db = None
