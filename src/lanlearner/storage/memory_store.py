"""In-memory card storage, used by tests and as a scratch deck."""

from __future__ import annotations

from lanlearner.core.card import Card, TagData
from lanlearner.errors import CardNotFoundError
from lanlearner.storage.base import CardStorage


class InMemoryCardStorage(CardStorage):
    """Keeps cards in a dict keyed by id, with a separate list for order."""

    def __init__(self, cards: list[Card] | None = None, strict: bool = False) -> None:
        super().__init__(strict=strict)
        self._cards: dict[str, Card] = {}
        self._order: list[str] = []
        self._tags: list[TagData] = []
        self._ensure_unique_ids(cards or [])
        for card in cards or []:
            self._cards[card.id] = self._check_loaded(card)
            self._order.append(card.id)

    async def add_card(self, card: Card) -> str:
        if card.id in self._cards:
            raise ValueError(f"Card {card.id} already exists")
        self._cards[card.id] = card
        self._order.insert(0, card.id)
        return card.id

    async def get_card(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    async def get_cards(self) -> list[Card]:
        return [self._cards[card_id] for card_id in self._order]

    async def update_card(self, card: Card) -> None:
        stored = self._cards.get(card.id)
        if stored is None:
            raise CardNotFoundError(card.id)
        self._ensure_history_appends(card.id, stored.history, card.history)
        self._cards[card.id] = card

    async def delete_card(self, card_id: str) -> bool:
        if card_id not in self._cards:
            return False
        del self._cards[card_id]
        self._order.remove(card_id)
        return True

    async def replace_all(self, cards: list[Card], tags: list[TagData]) -> None:
        self._ensure_unique_ids(cards)
        checked = [self._check_loaded(card) for card in cards]
        self._cards = {card.id: card for card in checked}
        self._order = [card.id for card in checked]
        self._tags = list(tags)

    async def get_tags(self) -> list[TagData]:
        return list(self._tags)

    async def save_tags(self, tags: list[TagData]) -> None:
        self._tags = list(tags)
