"""Card review state machine.

Each review event moves a card to a new stage and reschedules it:

    remembered  stage -> min(stage + 1, MAX_STAGE)
    forgot      stage -> 0
    reset       stage -> 0  (manual "reset progress")

The stage, next review date, review count and history all change together
in the single Card returned; the input card is left untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from lanlearner.core.card import Card, ReviewAction, ReviewLog
from lanlearner.core.intervals import MAX_STAGE, MIN_STAGE
from lanlearner.core.review_schedule import calculate_next_review

logger = logging.getLogger(__name__)


def next_stage(stage: int, outcome: ReviewAction) -> int:
    """Return the stage reached from ``stage`` after ``outcome``."""
    if outcome == ReviewAction.REMEMBERED:
        return min(stage + 1, MAX_STAGE)
    return MIN_STAGE


def record_review(card: Card, outcome: ReviewAction | str, event_time: int) -> Card:
    """Apply one review event to ``card``.

    Event times earlier than the last history entry are accepted as-is.

    Args:
        card: Card being reviewed
        outcome: ``remembered``, ``forgot`` or ``reset``
        event_time: Epoch milliseconds of the event

    Returns:
        New Card with stage, next_review_date, review_count and history updated

    Raises:
        ValueError: If ``outcome`` is not a known review action
    """
    action = ReviewAction(outcome)
    stage_before = card.stage
    stage_after = next_stage(stage_before, action)

    entry = ReviewLog(
        date=event_time,
        action=action,
        stage_before=stage_before,
        stage_after=stage_after,
    )
    logger.debug(
        "Card %s %s: stage %d -> %d", card.id, action.value, stage_before, stage_after
    )

    return replace(
        card,
        stage=stage_after,
        next_review_date=calculate_next_review(stage_after, event_time),
        review_count=card.review_count + 1,
        history=(*card.history, entry),
    )


def reset_progress(card: Card, event_time: int) -> Card:
    """Send ``card`` back to stage 0, logging a ``reset`` entry."""
    return record_review(card, ReviewAction.RESET, event_time)
