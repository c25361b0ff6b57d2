"""Shared fixtures for storage tests - every test runs against both backends."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from lanlearner.storage.base import CardStorage
from lanlearner.storage.memory_store import InMemoryCardStorage
from lanlearner.storage.sqlite_store import SQLiteCardStorage


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def storage(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncIterator[CardStorage]:
    """Create an initialized, empty deck."""
    backend: CardStorage
    if request.param == "memory":
        backend = InMemoryCardStorage()
    else:
        backend = SQLiteCardStorage(tmp_path / "decks" / "test.db")
    await backend.initialize()

    yield backend

    await backend.close()
