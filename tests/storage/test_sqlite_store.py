"""SQLite-specific storage tests: persistence and load validation."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from lanlearner.core.card import Card, ReviewAction
from lanlearner.engine.review import record_review
from lanlearner.errors import CardValidationError
from lanlearner.storage.memory_store import InMemoryCardStorage
from lanlearner.storage.sqlite_store import SQLiteCardStorage


async def _open(path: Path, strict: bool = False) -> SQLiteCardStorage:
    storage = SQLiteCardStorage(path, strict=strict)
    await storage.initialize()
    return storage


class TestPersistence:
    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "deck.db"
        card = record_review(Card.create("a", now=0), ReviewAction.REMEMBERED, 500)

        storage = await _open(path)
        await storage.add_card(card)
        await storage.close()

        storage = await _open(path)
        try:
            assert await storage.get_cards() == [card]
        finally:
            await storage.close()

    @pytest.mark.asyncio
    async def test_uninitialized_raises(self, tmp_path: Path) -> None:
        storage = SQLiteCardStorage(tmp_path / "deck.db")
        with pytest.raises(RuntimeError, match="not initialized"):
            await storage.get_cards()


class TestLoadValidation:
    @pytest.mark.asyncio
    async def test_lenient_load_warns(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        storage = await _open(tmp_path / "deck.db")
        try:
            await storage.add_card(Card(id="bad", stage=9, review_count=0))
            with caplog.at_level(logging.WARNING, logger="lanlearner.storage.base"):
                cards = await storage.get_cards()
        finally:
            await storage.close()

        assert [c.id for c in cards] == ["bad"]
        assert "violates invariants" in caplog.text

    @pytest.mark.asyncio
    async def test_strict_load_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "deck.db"
        storage = await _open(path)
        await storage.add_card(Card(id="bad", stage=0, review_count=2))
        await storage.close()

        storage = await _open(path, strict=True)
        try:
            with pytest.raises(CardValidationError) as exc_info:
                await storage.get_cards()
        finally:
            await storage.close()
        assert exc_info.value.card_id == "bad"

    def test_strict_memory_store(self) -> None:
        with pytest.raises(CardValidationError):
            InMemoryCardStorage([Card(id="bad", stage=-1)], strict=True)
