"""Card data structures - the unit of spaced repetition."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any
from uuid import uuid4

from lanlearner.core.intervals import MAX_STAGE, MIN_STAGE
from lanlearner.core.review_schedule import calculate_next_review
from lanlearner.utils.timeutils import now_ms


class ReviewAction(StrEnum):
    """Outcome kinds recorded in a card's review history."""

    REMEMBERED = "remembered"
    FORGOT = "forgot"
    RESET = "reset"  # Manual "reset progress"


class BlockType(StrEnum):
    """Kinds of content block a card body is made of."""

    TEXT = "text"
    IMAGE = "image"  # content holds a base64 data URL
    TABLE = "table"


@dataclass(frozen=True)
class ReviewLog:
    """
    One review event in a card's history.

    Attributes:
        date: Epoch milliseconds of the event
        action: What happened
        stage_before: Stage prior to the event
        stage_after: Stage after the event
    """

    date: int
    action: ReviewAction
    stage_before: int
    stage_after: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "action": self.action.value,
            "stageBefore": self.stage_before,
            "stageAfter": self.stage_after,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewLog:
        return cls(
            date=int(data["date"]),
            action=ReviewAction(data["action"]),
            stage_before=int(data["stageBefore"]),
            stage_after=int(data["stageAfter"]),
        )


@dataclass(frozen=True)
class ContentBlock:
    """A block of card content. Opaque to scheduling."""

    id: str
    type: BlockType
    content: str = ""
    table_rows: tuple[tuple[str, ...], ...] | None = None

    @classmethod
    def text(cls, content: str) -> ContentBlock:
        return cls(id=str(uuid4()), type=BlockType.TEXT, content=content)

    def summary(self) -> str:
        """Short plain-text rendering used in listings and the readable sheet."""
        if self.type == BlockType.TEXT:
            return self.content
        return f"[{self.type.value}]"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type.value, "content": self.content}
        if self.table_rows is not None:
            data["tableData"] = {"rows": [list(row) for row in self.table_rows]}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentBlock:
        table = data.get("tableData")
        rows = None
        if table is not None:
            rows = tuple(tuple(str(cell) for cell in row) for row in table.get("rows", []))
        return cls(
            id=str(data["id"]),
            type=BlockType(data.get("type", "text")),
            content=str(data.get("content", "")),
            table_rows=rows,
        )


@dataclass(frozen=True)
class TagData:
    """A tag known to the collection."""

    name: str
    is_pinned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "isPinned": self.is_pinned}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TagData:
        return cls(name=str(data["name"]), is_pinned=bool(data.get("isPinned", False)))


@dataclass(frozen=True)
class Card:
    """
    A flashcard together with its review state.

    Cards are immutable: content edits and review events both return a new
    Card which the caller swaps into the collection by id.

    Attributes:
        id: Unique identifier, fixed at creation
        title: Card front
        blocks: Card body
        tags: Tag names
        remark: Free-form note
        created_at: Epoch ms of creation
        updated_at: Epoch ms of the last content edit
        stage: Mastery level, 0 (new) to MAX_STAGE (mastered)
        next_review_date: Epoch ms at or after which the card is due
        review_count: Number of review events so far
        history: Review events, oldest first
        linked_card_ids: Ids of related cards
    """

    id: str
    title: str = ""
    blocks: tuple[ContentBlock, ...] = ()
    tags: tuple[str, ...] = ()
    remark: str = ""
    created_at: int = 0
    updated_at: int = 0
    stage: int = MIN_STAGE
    next_review_date: int = 0
    review_count: int = 0
    history: tuple[ReviewLog, ...] = field(default_factory=tuple)
    linked_card_ids: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        title: str,
        blocks: list[ContentBlock] | None = None,
        tags: list[str] | None = None,
        remark: str = "",
        linked_card_ids: list[str] | None = None,
        now: int | None = None,
        card_id: str | None = None,
    ) -> Card:
        """
        Create a new card at stage 0, first due one interval after ``now``.

        Args:
            title: Card front
            blocks: Optional body blocks
            tags: Optional tag names
            remark: Optional note
            linked_card_ids: Optional related card ids
            now: Creation time in epoch ms (current time if not provided)
            card_id: Optional explicit ID (generates UUID if not provided)

        Returns:
            A new Card instance
        """
        created = now_ms() if now is None else now
        return cls(
            id=card_id or str(uuid4()),
            title=title,
            blocks=tuple(blocks or ()),
            tags=tuple(tags or ()),
            remark=remark,
            created_at=created,
            updated_at=created,
            stage=MIN_STAGE,
            next_review_date=calculate_next_review(MIN_STAGE, created),
            review_count=0,
            history=(),
            linked_card_ids=tuple(linked_card_ids or ()),
        )

    @property
    def is_mastered(self) -> bool:
        return self.stage >= MAX_STAGE

    def is_due(self, now: int) -> bool:
        """A card is due when not mastered and ``now`` has reached its review date."""
        return self.stage < MAX_STAGE and self.next_review_date <= now

    def with_content(
        self,
        title: str | None = None,
        blocks: list[ContentBlock] | None = None,
        tags: list[str] | None = None,
        remark: str | None = None,
        linked_card_ids: list[str] | None = None,
        now: int | None = None,
    ) -> Card:
        """Return a copy with edited content. Scheduling fields are untouched."""
        changes: dict[str, Any] = {"updated_at": now_ms() if now is None else now}
        if title is not None:
            changes["title"] = title
        if blocks is not None:
            changes["blocks"] = tuple(blocks)
        if tags is not None:
            changes["tags"] = tuple(tags)
        if remark is not None:
            changes["remark"] = remark
        if linked_card_ids is not None:
            changes["linked_card_ids"] = tuple(linked_card_ids)
        return replace(self, **changes)

    def content_summary(self) -> str:
        return " ".join(block.summary() for block in self.blocks)

    def to_dict(self) -> dict[str, Any]:
        """Serialize every field, history included, using the backup key names."""
        return {
            "id": self.id,
            "title": self.title,
            "blocks": [block.to_dict() for block in self.blocks],
            "tags": list(self.tags),
            "remark": self.remark,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "stage": self.stage,
            "nextReviewDate": self.next_review_date,
            "reviewCount": self.review_count,
            "history": [entry.to_dict() for entry in self.history],
            "linkedCardIds": list(self.linked_card_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        """Inverse of :meth:`to_dict`.

        Raises:
            KeyError, ValueError, TypeError: on malformed input
        """
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            blocks=tuple(ContentBlock.from_dict(b) for b in data.get("blocks", [])),
            tags=tuple(str(t) for t in data.get("tags", [])),
            remark=str(data.get("remark", "")),
            created_at=int(data.get("createdAt", 0)),
            updated_at=int(data.get("updatedAt", 0)),
            stage=int(data["stage"]),
            next_review_date=int(data["nextReviewDate"]),
            review_count=int(data["reviewCount"]),
            history=tuple(ReviewLog.from_dict(h) for h in data.get("history", [])),
            linked_card_ids=tuple(str(i) for i in data.get("linkedCardIds", [])),
        )


def check_card_invariants(card: Card) -> list[str]:
    """Return a list of data-model violations for ``card`` (empty when valid)."""
    problems: list[str] = []
    if not MIN_STAGE <= card.stage <= MAX_STAGE:
        problems.append(f"stage {card.stage} outside [{MIN_STAGE}, {MAX_STAGE}]")
    if card.review_count < 0:
        problems.append(f"negative review_count {card.review_count}")
    if len(card.history) != card.review_count:
        problems.append(
            f"history has {len(card.history)} entries but review_count is {card.review_count}"
        )
    for index, entry in enumerate(card.history):
        for value in (entry.stage_before, entry.stage_after):
            if not MIN_STAGE <= value <= MAX_STAGE:
                problems.append(f"history[{index}] stage {value} out of range")
                break
    return problems
