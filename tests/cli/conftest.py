"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from unittest.mock import patch

import pytest

_ENV_VARS = (
    "MCP_SERVER_NAME",
    "MCP_SERVER_VERSION",
    "MCP_SERVER_HOST",
    "MCP_SERVER_PORT",
    "CHATDESK_DB_PATH",
    "CHATDESK_LOG_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> Generator[None, None, None]:
    """Run every CLI test from an empty directory with no server variables set.

    ``.env`` loading writes straight into ``os.environ``, so the whole mapping
    is restored afterwards.
    """
    with patch.dict(os.environ):
        for name in _ENV_VARS:
            os.environ.pop(name, None)
        monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
        yield
