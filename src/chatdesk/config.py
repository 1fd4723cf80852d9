"""Server configuration read from environment variables.

Entry points call ``load_env()`` first so a ``.env`` file in the working
directory can supply any of the variables below.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import TypedDict

from dotenv import find_dotenv, load_dotenv

from chatdesk.core import DB_FILENAME
from chatdesk.errors import ConfigurationError

logger = logging.getLogger(__name__)

TRANSPORTS: tuple[str, ...] = ("stdio", "http")


class ServerConfig(TypedDict):
    """Resolved server settings."""

    name: str
    version: str
    host: str
    port: int
    db_path: Path
    log_dir: Path | None


DEFAULT_NAME = "Chat Support MCP Server"
DEFAULT_VERSION = "1.0.0"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8087


def load_env(dotenv_path: str | Path | None = None) -> bool:
    """Load a ``.env`` file into ``os.environ`` without overriding set variables.

    Without *dotenv_path* the file is looked up from the working directory upwards.
    """
    if dotenv_path is None:
        dotenv_path = find_dotenv(usecwd=True)
        if not dotenv_path:
            return False
    loaded = load_dotenv(dotenv_path, override=False)
    if loaded:
        logger.debug("Loaded environment from %s", dotenv_path)
    return loaded


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        msg = f"MCP_SERVER_PORT must be an integer, got {raw!r}"
        raise ConfigurationError(msg) from None
    if not (0 < port < 65536):
        msg = f"MCP_SERVER_PORT must be between 1 and 65535, got {port}"
        raise ConfigurationError(msg)
    return port


def read_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Build a ServerConfig from *environ* (default ``os.environ``)."""
    env = os.environ if environ is None else environ

    name = env.get("MCP_SERVER_NAME", DEFAULT_NAME).strip()
    if not name:
        msg = "MCP_SERVER_NAME must not be empty"
        raise ConfigurationError(msg)

    log_dir_raw = env.get("CHATDESK_LOG_DIR", "").strip()
    return ServerConfig(
        name=name,
        version=env.get("MCP_SERVER_VERSION", DEFAULT_VERSION).strip() or DEFAULT_VERSION,
        host=env.get("MCP_SERVER_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=_parse_port(env.get("MCP_SERVER_PORT", str(DEFAULT_PORT)).strip()),
        db_path=Path(env.get("CHATDESK_DB_PATH", DB_FILENAME)),
        log_dir=Path(log_dir_raw) if log_dir_raw else None,
    )
