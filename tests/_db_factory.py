"""Shared ChatDeskDB factory for test fixtures.

Importable by any conftest.py or test file in the test suite.
"""

from __future__ import annotations

from pathlib import Path

from chatdesk.core import DB_FILENAME, ChatDeskDB


def make_db(tmp_path: Path, *, check_same_thread: bool = True) -> ChatDeskDB:
    """Factory for initialized ChatDeskDB instances in tests."""
    d = ChatDeskDB(tmp_path / DB_FILENAME, check_same_thread=check_same_thread)
    d.initialize()
    return d
