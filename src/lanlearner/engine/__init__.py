"""Scheduling engine: review transitions, selection and the deck service."""

from lanlearner.engine.events import (
    CardChanged,
    ChangeKind,
    DeckEvents,
    DeckRestored,
    ReviewRecorded,
)
from lanlearner.engine.review import next_stage, record_review, reset_progress
from lanlearner.engine.selection import (
    RandomSource,
    ReviewStats,
    select_daily_sample,
    select_due,
    summarize,
)
from lanlearner.engine.service import ReviewService

__all__ = [
    "CardChanged",
    "ChangeKind",
    "DeckEvents",
    "DeckRestored",
    "RandomSource",
    "ReviewRecorded",
    "ReviewService",
    "ReviewStats",
    "next_stage",
    "record_review",
    "reset_progress",
    "select_daily_sample",
    "select_due",
    "summarize",
]
