"""Working-set selection over a card collection."""

from __future__ import annotations

import random
from collections.abc import Iterable, MutableSequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from lanlearner.core.card import Card
from lanlearner.core.intervals import MAX_STAGE, MIN_STAGE

DEFAULT_SAMPLE_SIZE = 10


class RandomSource(Protocol):
    """Anything that can shuffle a list in place. ``random.Random`` qualifies."""

    def shuffle(self, x: MutableSequence[Any]) -> None: ...


def select_due(cards: Iterable[Card], now: int) -> list[Card]:
    """Return the cards due for review at ``now``, in collection order.

    Mastered cards are never due, whatever their review date.
    """
    return [card for card in cards if card.stage < MAX_STAGE and card.next_review_date <= now]


def select_daily_sample(
    cards: Iterable[Card],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    random_source: RandomSource | None = None,
) -> list[Card]:
    """Draw up to ``sample_size`` cards from the whole collection for recall practice.

    Stage and due date are ignored. Pass a seeded ``random.Random`` to get a
    reproducible sample.

    Raises:
        ValueError: If ``sample_size`` is negative
    """
    if sample_size < 0:
        raise ValueError(f"sample_size must be >= 0, got {sample_size}")
    pool = list(cards)
    (random_source or random.Random()).shuffle(pool)
    return pool[:sample_size]


@dataclass(frozen=True)
class ReviewStats:
    """Counts describing a collection's review state at one instant."""

    total: int = 0
    due: int = 0
    mastered: int = 0
    by_stage: dict[int, int] = field(default_factory=dict)
    next_due: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "due": self.due,
            "mastered": self.mastered,
            "by_stage": {str(stage): count for stage, count in self.by_stage.items()},
            "next_due": self.next_due,
        }


def summarize(cards: Iterable[Card], now: int) -> ReviewStats:
    """Count cards per stage, due now, mastered, and find the next upcoming review."""
    by_stage = {stage: 0 for stage in range(MIN_STAGE, MAX_STAGE + 1)}
    total = due = mastered = 0
    next_due: int | None = None

    for card in cards:
        total += 1
        by_stage[card.stage] = by_stage.get(card.stage, 0) + 1
        if card.is_mastered:
            mastered += 1
        elif card.next_review_date <= now:
            due += 1
        elif next_due is None or card.next_review_date < next_due:
            next_due = card.next_review_date

    return ReviewStats(
        total=total, due=due, mastered=mastered, by_stage=by_stage, next_due=next_due
    )
