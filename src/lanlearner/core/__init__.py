"""Core data models for Lanlearner."""

from lanlearner.core.card import (
    BlockType,
    Card,
    ContentBlock,
    ReviewAction,
    ReviewLog,
    TagData,
    check_card_invariants,
)
from lanlearner.core.intervals import (
    DEFAULT_INTERVAL_HOURS,
    EBBINGHAUS_INTERVALS_HOURS,
    MAX_STAGE,
    MIN_STAGE,
    interval_hours_for_stage,
)
from lanlearner.core.review_schedule import calculate_next_review

__all__ = [
    # Cards
    "BlockType",
    "Card",
    "ContentBlock",
    "ReviewAction",
    "ReviewLog",
    "TagData",
    "check_card_invariants",
    # Schedule
    "DEFAULT_INTERVAL_HOURS",
    "EBBINGHAUS_INTERVALS_HOURS",
    "MAX_STAGE",
    "MIN_STAGE",
    "calculate_next_review",
    "interval_hours_for_stage",
]
