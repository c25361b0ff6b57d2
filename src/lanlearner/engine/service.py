"""Review service - wires card storage to the scheduling engine.

The scheduling functions stay pure; this layer loads a card, applies the
transition and writes the single updated card back by id.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path

from lanlearner.core.card import BlockType, Card, ContentBlock, ReviewAction, TagData
from lanlearner.engine.events import (
    CardChanged,
    ChangeKind,
    DeckEvents,
    DeckRestored,
    ReviewRecorded,
)
from lanlearner.engine.review import record_review, reset_progress
from lanlearner.engine.selection import (
    RandomSource,
    ReviewStats,
    select_daily_sample,
    select_due,
    summarize,
)
from lanlearner.errors import CardNotFoundError
from lanlearner.io.spreadsheet import WorkbookContents, export_workbook, import_workbook
from lanlearner.storage.base import CardStorage
from lanlearner.utils.config import Config
from lanlearner.utils.timeutils import now_ms

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

_INLINE_TAG = re.compile(r"#(\S+)")
_TITLE_LINK = re.compile(r"@(\S+)")


def _scan_text_blocks(pattern: re.Pattern[str], blocks: list[ContentBlock]) -> list[str]:
    found: dict[str, None] = {}
    for block in blocks:
        if block.type == BlockType.TEXT:
            for match in pattern.findall(block.content):
                found.setdefault(match, None)
    return list(found)


def extract_inline_tags(blocks: list[ContentBlock]) -> list[str]:
    """Collect ``#tag`` words from text blocks, first occurrence order."""
    return _scan_text_blocks(_INLINE_TAG, blocks)


def extract_title_links(blocks: list[ContentBlock]) -> list[str]:
    """Collect ``@Title`` references from text blocks, first occurrence order."""
    return _scan_text_blocks(_TITLE_LINK, blocks)


def find_titled(cards: list[Card], title: str) -> Card | None:
    """First card in ``cards`` whose title equals ``title``, ignoring outer whitespace."""
    wanted = title.strip()
    return next((card for card in cards if card.title.strip() == wanted), None)


def merge_tags(explicit: list[str], blocks: list[ContentBlock]) -> list[str]:
    merged: dict[str, None] = dict.fromkeys(explicit)
    for tag in extract_inline_tags(blocks):
        merged.setdefault(tag, None)
    return list(merged)


def sort_tags(tags: list[TagData]) -> list[TagData]:
    """Pinned tags first, then by name."""
    return sorted(tags, key=lambda t: (not t.is_pinned, t.name))


class ReviewService:
    """
    Deck operations used by the CLI and other front ends.

    Args:
        storage: Initialized card storage for the deck
        config: Settings (defaults used when omitted)
        random_source: Shuffler for the daily sample; pass a seeded
            ``random.Random`` for reproducible samples
        clock: Returns the current time in epoch ms
        events: Receives a typed event after each stored change
    """

    def __init__(
        self,
        storage: CardStorage,
        config: Config | None = None,
        random_source: RandomSource | None = None,
        clock: Clock | None = None,
        events: DeckEvents | None = None,
    ) -> None:
        self._storage = storage
        self._config = config or Config()
        self._random_source = random_source
        self._clock = clock or now_ms
        self._events = events or DeckEvents()

    @property
    def events(self) -> DeckEvents:
        return self._events

    # ========== Cards ==========

    async def create_card(
        self,
        title: str,
        blocks: list[ContentBlock] | None = None,
        tags: list[str] | None = None,
        remark: str = "",
        linked_card_ids: list[str] | None = None,
    ) -> Card:
        """Create and store a card. Inline ``#tags`` in text blocks are added to ``tags``.

        Raises:
            ValueError: If ``title`` is blank
        """
        if not title.strip():
            raise ValueError("Card title must not be empty")

        body = blocks or []
        final_tags = merge_tags(tags or [], body)
        card = Card.create(
            title=title,
            blocks=body,
            tags=final_tags,
            remark=remark,
            linked_card_ids=linked_card_ids,
            now=self._clock(),
        )
        await self._storage.add_card(card)
        await self._register_tags(final_tags)
        logger.info("Created card %s", card.id)
        await self._events.publish(CardChanged(ChangeKind.CREATED, card.id, card))
        return card

    async def edit_card(
        self,
        card_id: str,
        title: str | None = None,
        blocks: list[ContentBlock] | None = None,
        tags: list[str] | None = None,
        remark: str | None = None,
        linked_card_ids: list[str] | None = None,
    ) -> Card:
        """Edit card content. Review state is left as it is."""
        if title is not None and not title.strip():
            raise ValueError("Card title must not be empty")

        card = await self.get_card(card_id)
        final_tags = None
        if tags is not None or blocks is not None:
            final_tags = merge_tags(
                list(card.tags) if tags is None else tags,
                list(card.blocks) if blocks is None else blocks,
            )
        updated = card.with_content(
            title=title,
            blocks=blocks,
            tags=final_tags,
            remark=remark,
            linked_card_ids=linked_card_ids,
            now=self._clock(),
        )
        await self._storage.update_card(updated)
        if final_tags:
            await self._register_tags(final_tags)
        await self._events.publish(CardChanged(ChangeKind.EDITED, card_id, updated))
        return updated

    async def delete_card(self, card_id: str) -> bool:
        deleted = await self._storage.delete_card(card_id)
        if deleted:
            logger.info("Deleted card %s", card_id)
            await self._events.publish(CardChanged(ChangeKind.DELETED, card_id))
        return deleted

    async def get_card(self, card_id: str) -> Card:
        card = await self._storage.get_card(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    async def list_cards(self, tag: str | None = None) -> list[Card]:
        cards = await self._storage.get_cards()
        if tag is None:
            return cards
        return [card for card in cards if tag in card.tags]

    async def search(self, query: str) -> list[Card]:
        """Case-insensitive match on title, tags and text blocks."""
        if not query:
            return []
        needle = query.lower()
        return [
            card
            for card in await self._storage.get_cards()
            if needle in card.title.lower()
            or any(needle in tag.lower() for tag in card.tags)
            or any(
                block.type == BlockType.TEXT and needle in block.content.lower()
                for block in card.blocks
            )
        ]

    async def find_by_title(self, title: str) -> Card | None:
        """Resolve an ``@Title`` link: the first card, newest first, with that title."""
        return find_titled(await self._storage.get_cards(), title)

    async def linked_cards(self, card_id: str) -> list[Card]:
        """Cards related to ``card_id``.

        Explicit ``linked_card_ids`` come first, then cards named by ``@Title``
        links in the card's text. Ids and titles that match no card are skipped.

        Raises:
            CardNotFoundError: If ``card_id`` is unknown
        """
        card = await self.get_card(card_id)
        cards = await self._storage.get_cards()
        by_id = {c.id: c for c in cards}

        related: dict[str, Card] = {}
        for linked_id in card.linked_card_ids:
            if linked_id in by_id:
                related.setdefault(linked_id, by_id[linked_id])
        for title in extract_title_links(list(card.blocks)):
            target = find_titled(cards, title)
            if target is not None:
                related.setdefault(target.id, target)
        related.pop(card.id, None)
        return list(related.values())

    # ========== Reviews ==========

    async def review(self, card_id: str, outcome: ReviewAction | str) -> Card:
        """Record a review of one card and persist it.

        Raises:
            CardNotFoundError: If ``card_id`` is unknown
            ValueError: If ``outcome`` is not a review action
        """
        card = await self.get_card(card_id)
        updated = record_review(card, outcome, self._clock())
        await self._storage.update_card(updated)
        await self._events.publish(ReviewRecorded.from_card(updated))
        return updated

    async def reset(self, card_id: str) -> Card:
        """Manually send a card back to stage 0."""
        card = await self.get_card(card_id)
        updated = reset_progress(card, self._clock())
        await self._storage.update_card(updated)
        await self._events.publish(ReviewRecorded.from_card(updated))
        return updated

    async def due_cards(self) -> list[Card]:
        return select_due(await self._storage.get_cards(), self._clock())

    async def daily_sample(self, size: int | None = None) -> list[Card]:
        sample_size = self._config.daily_sample_size if size is None else size
        return select_daily_sample(
            await self._storage.get_cards(), sample_size, self._random_source
        )

    async def stats(self) -> ReviewStats:
        return summarize(await self._storage.get_cards(), self._clock())

    # ========== Tags ==========

    async def tags(self) -> list[TagData]:
        return sort_tags(await self._storage.get_tags())

    async def set_tag_pinned(self, name: str, pinned: bool) -> bool:
        tags = await self._storage.get_tags()
        if not any(t.name == name for t in tags):
            return False
        await self._storage.save_tags(
            [TagData(t.name, pinned) if t.name == name else t for t in tags]
        )
        return True

    async def delete_tag(self, name: str) -> bool:
        """Remove a tag from the tag list. Cards keep their tag strings."""
        tags = await self._storage.get_tags()
        remaining = [t for t in tags if t.name != name]
        if len(remaining) == len(tags):
            return False
        await self._storage.save_tags(remaining)
        return True

    # ========== Import / Export ==========

    async def export_to(self, path: str | Path) -> Path:
        cards = await self._storage.get_cards()
        tags = await self._storage.get_tags()
        return export_workbook(cards, tags, path)

    async def import_from(self, path: str | Path) -> WorkbookContents:
        """Replace the whole deck with a workbook's contents."""
        contents = import_workbook(path)
        await self.restore(contents)
        return contents

    async def restore(self, contents: WorkbookContents) -> None:
        """Replace the whole deck with already-read backup contents."""
        await self._storage.replace_all(contents.cards, contents.tags)
        logger.info("Restored deck with %d cards", len(contents.cards))
        await self._events.publish(DeckRestored(len(contents.cards), len(contents.tags)))

    # ========== Helpers ==========

    async def _register_tags(self, names: list[str]) -> None:
        tags = await self._storage.get_tags()
        known = {t.name for t in tags}
        new = [TagData(name=name) for name in names if name not in known]
        if new:
            await self._storage.save_tags([*tags, *new])
