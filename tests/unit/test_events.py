"""Tests for typed deck events."""

from __future__ import annotations

import logging

import pytest

from lanlearner.core.card import Card, ReviewAction
from lanlearner.engine.events import (
    CardChanged,
    ChangeKind,
    DeckEvents,
    DeckRestored,
    ReviewRecorded,
)
from lanlearner.engine.review import record_review


def _card_at_stage(stage: int) -> Card:
    card = Card.create("word", now=0)
    for t in range(stage):
        card = record_review(card, ReviewAction.REMEMBERED, t)
    return card


class TestReviewRecorded:
    def test_from_card_takes_latest_entry(self) -> None:
        card = record_review(_card_at_stage(2), ReviewAction.FORGOT, 100)
        event = ReviewRecorded.from_card(card)
        assert event.entry == card.history[-1]
        assert event.entry.stage_before == 2
        assert event.lapsed is True
        assert event.reached_mastery is False

    def test_reached_mastery_only_on_the_crossing_review(self) -> None:
        mastered = record_review(_card_at_stage(4), ReviewAction.REMEMBERED, 100)
        assert ReviewRecorded.from_card(mastered).reached_mastery is True

        again = record_review(mastered, ReviewAction.REMEMBERED, 200)
        assert ReviewRecorded.from_card(again).reached_mastery is False

    def test_forgetting_a_new_card_is_not_a_lapse(self) -> None:
        card = record_review(_card_at_stage(0), ReviewAction.FORGOT, 1)
        assert ReviewRecorded.from_card(card).lapsed is False


class TestDeckEvents:
    @pytest.mark.asyncio
    async def test_delivers_by_event_type(self) -> None:
        events = DeckEvents()
        reviews: list[ReviewRecorded] = []
        changes: list[CardChanged] = []

        async def on_review(event: ReviewRecorded) -> None:
            reviews.append(event)

        async def on_change(event: CardChanged) -> None:
            changes.append(event)

        events.subscribe(ReviewRecorded, on_review)
        events.subscribe(CardChanged, on_change)

        card = record_review(Card.create("a", now=0), ReviewAction.REMEMBERED, 5)
        await events.publish(ReviewRecorded.from_card(card))
        await events.publish(CardChanged(ChangeKind.DELETED, "x"))
        await events.publish(DeckRestored(card_count=3, tag_count=1))

        assert [e.card.id for e in reviews] == [card.id]
        assert changes == [CardChanged(ChangeKind.DELETED, "x")]

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_logged_and_skipped(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        events = DeckEvents()
        seen: list[int] = []

        async def broken(event: DeckRestored) -> None:
            raise RuntimeError("boom")

        async def counter(event: DeckRestored) -> None:
            seen.append(event.card_count)

        events.subscribe(DeckRestored, broken)
        events.subscribe(DeckRestored, counter)
        with caplog.at_level(logging.ERROR, logger="lanlearner.engine.events"):
            await events.publish(DeckRestored(card_count=2, tag_count=0))

        assert seen == [2]
        assert "broken" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        events = DeckEvents()
        seen: list[DeckRestored] = []

        async def subscriber(event: DeckRestored) -> None:
            seen.append(event)

        unsubscribe = events.subscribe(DeckRestored, subscriber)
        assert events.subscriber_count(DeckRestored) == 1
        unsubscribe()
        unsubscribe()
        await events.publish(DeckRestored(card_count=0, tag_count=0))

        assert seen == []
        assert events.subscriber_count(DeckRestored) == 0
