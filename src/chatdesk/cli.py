"""CLI for the chat-support MCP server.

Usage:
    chatdesk init                          # Create the database schema
    chatdesk init --db /tmp/chat.db        # ... at an explicit path
    chatdesk serve                         # MCP over stdio
    chatdesk serve --transport http        # MCP over streamable HTTP
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from chatdesk import __version__
from chatdesk.config import TRANSPORTS, load_env, read_config
from chatdesk.errors import ConfigurationError, StartupError

logger = logging.getLogger(__name__)


def _fail(label: str, exc: BaseException) -> NoReturn:
    click.echo(f"[{label}] {exc}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="chatdesk")
def cli() -> None:
    """Chatdesk: MCP server for chat-support users and messages."""
    load_env()


@cli.command()
@click.option("--db", "db_path", type=click.Path(path_type=Path), default=None, help="Database path (default: CHATDESK_DB_PATH)")
def init(db_path: Path | None) -> None:
    """Create or upgrade the database schema."""
    from chatdesk.mcp_server import open_database

    try:
        path = db_path or read_config()["db_path"]
        store = open_database(path)
    except ConfigurationError as exc:
        _fail("CONFIGURATION ERROR", exc)
    except StartupError as exc:
        _fail("STARTUP ERROR", exc)
    version = store.get_schema_version()
    store.close()
    click.echo(f"Initialized {path} (schema v{version})")


@cli.command()
@click.option("--transport", type=click.Choice(TRANSPORTS), default="stdio", show_default=True, help="MCP transport")
@click.option("--host", default=None, help="HTTP bind address (default: MCP_SERVER_HOST)")
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="HTTP port (default: MCP_SERVER_PORT)")
@click.option("--db", "db_path", type=click.Path(path_type=Path), default=None, help="Database path (default: CHATDESK_DB_PATH)")
def serve(transport: str, host: str | None, port: int | None, db_path: Path | None) -> None:
    """Run the MCP server until interrupted."""
    from chatdesk.mcp_server import _run
    from chatdesk.web import main as web_main

    try:
        config = read_config()
        if host is not None:
            config["host"] = host
        if port is not None:
            config["port"] = port
        if db_path is not None:
            config["db_path"] = db_path

        if transport == "http":
            web_main(config)
        else:
            asyncio.run(_run(config))
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        _fail("CONFIGURATION ERROR", exc)
    except StartupError as exc:
        logger.error("Startup error: %s", exc)
        _fail("STARTUP ERROR", exc)
    except Exception as exc:
        logger.critical("Unhandled error while serving", exc_info=True)
        _fail("CRITICAL ERROR", exc)
