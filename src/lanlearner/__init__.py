"""Lanlearner - Ebbinghaus spaced-repetition flashcards."""

from lanlearner.core.card import Card, ReviewAction, ReviewLog
from lanlearner.core.intervals import MAX_STAGE
from lanlearner.core.review_schedule import calculate_next_review
from lanlearner.engine.review import record_review, reset_progress
from lanlearner.engine.selection import select_daily_sample, select_due

__version__ = "0.3.0"

__all__ = [
    "MAX_STAGE",
    "Card",
    "ReviewAction",
    "ReviewLog",
    "__version__",
    "calculate_next_review",
    "record_review",
    "reset_progress",
    "select_daily_sample",
    "select_due",
]
