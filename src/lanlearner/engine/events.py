"""Deck change events.

ReviewService publishes one event after each change has been written to
storage, so a subscriber never hears about a change that was rolled back.
Events are typed per kind of change:

    CardChanged      a card was created, edited or deleted
    ReviewRecorded   a review (or manual reset) was stored, with its log entry
    DeckRestored     the whole deck was replaced from a backup

Usage:
    events = DeckEvents()
    unsubscribe = events.subscribe(ReviewRecorded, update_streak)
    ...
    unsubscribe()
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

from lanlearner.core.card import Card, ReviewAction, ReviewLog
from lanlearner.core.intervals import MAX_STAGE

logger = logging.getLogger(__name__)


class ChangeKind(StrEnum):
    CREATED = "created"
    EDITED = "edited"
    DELETED = "deleted"


@dataclass(frozen=True)
class CardChanged:
    """A card's content changed. ``card`` is None once deleted."""

    kind: ChangeKind
    card_id: str
    card: Card | None = None


@dataclass(frozen=True)
class ReviewRecorded:
    """A review event was stored for ``card``; ``entry`` is its newest log entry."""

    card: Card
    entry: ReviewLog

    @classmethod
    def from_card(cls, card: Card) -> ReviewRecorded:
        return cls(card=card, entry=card.history[-1])

    @property
    def reached_mastery(self) -> bool:
        return self.entry.stage_before < MAX_STAGE <= self.entry.stage_after

    @property
    def lapsed(self) -> bool:
        """Forgotten after having made progress."""
        return self.entry.action == ReviewAction.FORGOT and self.entry.stage_before > 0


@dataclass(frozen=True)
class DeckRestored:
    card_count: int
    tag_count: int


DeckEvent = CardChanged | ReviewRecorded | DeckRestored

E = TypeVar("E", CardChanged, ReviewRecorded, DeckRestored)


class DeckEvents:
    """Delivers deck events to async subscribers by event type.

    A failing subscriber is logged and skipped; the change it was told about
    has already been stored.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], Awaitable[None]]]] = defaultdict(
            list
        )

    def subscribe(
        self, event_type: type[E], subscriber: Callable[[E], Awaitable[None]]
    ) -> Callable[[], None]:
        """Register ``subscriber`` for ``event_type``. Returns an unsubscribe function."""
        self._subscribers[event_type].append(subscriber)

        def unsubscribe() -> None:
            subscribers = self._subscribers[event_type]
            if subscriber in subscribers:
                subscribers.remove(subscriber)

        return unsubscribe

    def subscriber_count(self, event_type: type[DeckEvent]) -> int:
        return len(self._subscribers.get(event_type, []))

    async def publish(self, event: DeckEvent) -> None:
        for subscriber in list(self._subscribers.get(type(event), [])):
            try:
                await subscriber(event)
            except Exception:
                logger.error(
                    "Subscriber %s failed on %s",
                    getattr(subscriber, "__name__", repr(subscriber)),
                    type(event).__name__,
                    exc_info=True,
                )
