"""Abstract base class for card storage backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from lanlearner.core.card import Card, ReviewLog, TagData, check_card_invariants
from lanlearner.errors import CardValidationError

logger = logging.getLogger(__name__)


class CardStorage(ABC):
    """
    Persistence for one deck: an ordered card collection plus its tags.

    Collection order is newest-first: ``add_card`` puts the card at the
    front. ``update_card`` replaces exactly one card by id and keeps its
    position, so a review on one card can never touch another.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    async def initialize(self) -> None:
        """Prepare the backend. No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def add_card(self, card: Card) -> str:
        """
        Add a new card at the front of the collection.

        Returns:
            The card ID

        Raises:
            ValueError: If a card with the same ID exists
        """
        ...

    @abstractmethod
    async def get_card(self, card_id: str) -> Card | None:
        """Get a card by ID, or None."""
        ...

    @abstractmethod
    async def get_cards(self) -> list[Card]:
        """All cards in collection order."""
        ...

    @abstractmethod
    async def update_card(self, card: Card) -> None:
        """
        Replace the stored card having ``card.id``.

        Review history is append-only: the new history must start with the
        stored entries.

        Raises:
            CardNotFoundError: If no card has that ID
            ValueError: If stored history entries were dropped or changed
        """
        ...

    @abstractmethod
    async def delete_card(self, card_id: str) -> bool:
        """Delete a card. Returns True if it existed."""
        ...

    @abstractmethod
    async def replace_all(self, cards: list[Card], tags: list[TagData]) -> None:
        """Replace the whole deck (bulk import). ``cards`` is taken in collection order."""
        ...

    @abstractmethod
    async def get_tags(self) -> list[TagData]:
        ...

    @abstractmethod
    async def save_tags(self, tags: list[TagData]) -> None:
        ...

    @staticmethod
    def _ensure_unique_ids(cards: list[Card]) -> None:
        seen: set[str] = set()
        for card in cards:
            if card.id in seen:
                raise ValueError(f"Duplicate card id {card.id}")
            seen.add(card.id)

    @staticmethod
    def _ensure_history_appends(
        card_id: str, stored: Sequence[ReviewLog], updated: Sequence[ReviewLog]
    ) -> None:
        """Reject an update that drops or rewrites already stored review entries."""
        if len(updated) < len(stored):
            raise ValueError(
                f"Card {card_id} history has {len(updated)} entries, "
                f"{len(stored)} already stored; history is append-only"
            )
        for index, (old, new) in enumerate(zip(stored, updated)):
            if old != new:
                raise ValueError(
                    f"Card {card_id} history entry {index} differs from the stored one; "
                    "history is append-only"
                )

    def _check_loaded(self, card: Card) -> Card:
        """Validate a card read from persistence.

        Strict storages raise; lenient ones log and keep the card so the rest
        of the deck stays usable.
        """
        problems = check_card_invariants(card)
        if problems:
            if self._strict:
                raise CardValidationError(card.id, problems)
            logger.warning("Loaded card %s violates invariants: %s", card.id, "; ".join(problems))
        return card
