"""Next-review computation for the Ebbinghaus schedule."""

from __future__ import annotations

from lanlearner.core.intervals import (
    HOUR_MS,
    MASTERED_DELAY_MS,
    MAX_STAGE,
    interval_hours_for_stage,
)


def calculate_next_review(stage: int, reference_time: int) -> int:
    """Return the epoch-ms timestamp at which a card at ``stage`` is due.

    Mastered cards are pushed a full year out so the result stays a plain
    orderable timestamp.

    Args:
        stage: Stage the card has just reached
        reference_time: Epoch milliseconds of the triggering event

    Returns:
        Epoch milliseconds of the next review
    """
    if stage >= MAX_STAGE:
        return reference_time + MASTERED_DELAY_MS
    return reference_time + interval_hours_for_stage(stage) * HOUR_MS
