"""Fixtures for core DB tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from chatdesk.core import ChatDeskDB
from tests._db_factory import make_db


@pytest.fixture
def threaded_db(tmp_path: Path) -> Generator[ChatDeskDB, None, None]:
    """ChatDeskDB usable from worker threads, as the HTTP front door opens it."""
    d = make_db(tmp_path, check_same_thread=False)
    yield d
    d.close()
