"""Behavioural tests shared by all card storage backends."""

from __future__ import annotations

import pytest

from lanlearner.core.card import Card, ContentBlock, ReviewAction, TagData
from lanlearner.engine.review import record_review
from lanlearner.errors import CardNotFoundError
from lanlearner.storage.base import CardStorage


def _card(title: str, now: int = 0) -> Card:
    return Card.create(title=title, blocks=[ContentBlock.text(f"{title} text")], now=now)


class TestCardCrud:
    @pytest.mark.asyncio
    async def test_add_and_get(self, storage: CardStorage) -> None:
        card = _card("alpha")
        assert await storage.add_card(card) == card.id
        assert await storage.get_card(card.id) == card

    @pytest.mark.asyncio
    async def test_get_missing(self, storage: CardStorage) -> None:
        assert await storage.get_card("nope") is None

    @pytest.mark.asyncio
    async def test_newest_first(self, storage: CardStorage) -> None:
        for title in ("a", "b", "c"):
            await storage.add_card(_card(title))
        assert [c.title for c in await storage.get_cards()] == ["c", "b", "a"]

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, storage: CardStorage) -> None:
        card = _card("a")
        await storage.add_card(card)
        with pytest.raises(ValueError, match="already exists"):
            await storage.add_card(card)
        assert len(await storage.get_cards()) == 1

    @pytest.mark.asyncio
    async def test_delete(self, storage: CardStorage) -> None:
        card = _card("a")
        await storage.add_card(card)
        assert await storage.delete_card(card.id) is True
        assert await storage.delete_card(card.id) is False
        assert await storage.get_cards() == []


class TestUpdateCard:
    @pytest.mark.asyncio
    async def test_review_replaces_only_that_card(self, storage: CardStorage) -> None:
        cards = [_card(title) for title in ("a", "b", "c")]
        for card in cards:
            await storage.add_card(card)
        before = await storage.get_cards()

        reviewed = record_review(cards[1], ReviewAction.REMEMBERED, 1000)
        await storage.update_card(reviewed)

        after = await storage.get_cards()
        assert [c.id for c in after] == [c.id for c in before]
        for old, new in zip(before, after, strict=True):
            if new.id == reviewed.id:
                assert new == reviewed
            else:
                assert new == old

    @pytest.mark.asyncio
    async def test_history_accumulates(self, storage: CardStorage) -> None:
        card = _card("a")
        await storage.add_card(card)
        for t, outcome in enumerate(
            [ReviewAction.REMEMBERED, ReviewAction.REMEMBERED, ReviewAction.FORGOT], start=1
        ):
            card = record_review(card, outcome, t * 1000)
            await storage.update_card(card)

        loaded = await storage.get_card(card.id)
        assert loaded == card
        assert loaded is not None
        assert loaded.review_count == len(loaded.history) == 3
        assert [h.action for h in loaded.history] == [
            ReviewAction.REMEMBERED,
            ReviewAction.REMEMBERED,
            ReviewAction.FORGOT,
        ]

    @pytest.mark.asyncio
    async def test_unknown_card(self, storage: CardStorage) -> None:
        with pytest.raises(CardNotFoundError):
            await storage.update_card(_card("ghost"))

    @pytest.mark.asyncio
    async def test_content_edit(self, storage: CardStorage) -> None:
        card = _card("a")
        await storage.add_card(card)
        edited = card.with_content(title="b", tags=["x"], remark="note", now=5)
        await storage.update_card(edited)
        assert await storage.get_card(card.id) == edited

    @pytest.mark.asyncio
    async def test_history_cannot_shrink(self, storage: CardStorage) -> None:
        card = _card("a")
        await storage.add_card(card)
        await storage.update_card(record_review(card, ReviewAction.FORGOT, 10))

        with pytest.raises(ValueError, match="append-only"):
            await storage.update_card(card)

        loaded = await storage.get_card(card.id)
        assert loaded is not None
        assert loaded.review_count == 1

    @pytest.mark.asyncio
    async def test_history_cannot_be_rewritten(self, storage: CardStorage) -> None:
        card = _card("a")
        await storage.add_card(card)
        forgot = record_review(card, ReviewAction.FORGOT, 10)
        await storage.update_card(forgot)

        rewritten = record_review(card, ReviewAction.REMEMBERED, 10)
        with pytest.raises(ValueError, match="append-only"):
            await storage.update_card(rewritten)
        assert await storage.get_card(card.id) == forgot


class TestReplaceAll:
    @pytest.mark.asyncio
    async def test_replaces_deck_in_order(self, storage: CardStorage) -> None:
        await storage.add_card(_card("old"))
        reviewed = record_review(_card("x"), ReviewAction.REMEMBERED, 10)
        new_cards = [reviewed, _card("y"), _card("z")]
        tags = [TagData("english", True), TagData("math")]

        await storage.replace_all(new_cards, tags)

        assert await storage.get_cards() == new_cards
        assert await storage.get_tags() == tags

    @pytest.mark.asyncio
    async def test_add_after_replace_goes_first(self, storage: CardStorage) -> None:
        await storage.replace_all([_card("a"), _card("b")], [])
        await storage.add_card(_card("new"))
        assert [c.title for c in await storage.get_cards()] == ["new", "a", "b"]

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected(self, storage: CardStorage) -> None:
        card = _card("a")
        with pytest.raises(ValueError, match="Duplicate"):
            await storage.replace_all([card, card], [])


class TestTags:
    @pytest.mark.asyncio
    async def test_save_and_get(self, storage: CardStorage) -> None:
        tags = [TagData("b"), TagData("a", is_pinned=True)]
        await storage.save_tags(tags)
        assert await storage.get_tags() == tags

    @pytest.mark.asyncio
    async def test_starts_empty(self, storage: CardStorage) -> None:
        assert await storage.get_tags() == []
