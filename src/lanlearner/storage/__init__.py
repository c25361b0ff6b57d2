"""Storage backends for Lanlearner decks."""

from lanlearner.storage.base import CardStorage
from lanlearner.storage.memory_store import InMemoryCardStorage
from lanlearner.storage.sqlite_store import SQLiteCardStorage

__all__ = [
    "CardStorage",
    "InMemoryCardStorage",
    "SQLiteCardStorage",
]
