"""Shared pytest fixtures for chatdesk tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner
from faker import Faker

from chatdesk.core import ChatDeskDB
from tests._db_factory import make_db
from tests._factories import ChatFactory, UserFactory


@pytest.fixture
def db(tmp_path: Path) -> Generator[ChatDeskDB, None, None]:
    """Fresh ChatDeskDB for each test."""
    d = make_db(tmp_path)
    yield d
    d.close()


@pytest.fixture
def faker() -> Faker:
    """Seeded Faker instance; never the shared class-level generator."""
    fake = Faker()
    fake.seed_instance(20240115)
    return fake


@pytest.fixture
def users(db: ChatDeskDB, faker: Faker) -> UserFactory:
    return UserFactory(db, faker)


@pytest.fixture
def chats(db: ChatDeskDB, faker: Faker, users: UserFactory) -> ChatFactory:
    return ChatFactory(db, faker, users)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
