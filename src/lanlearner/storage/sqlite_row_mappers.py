"""Row <-> model conversion for the SQLite backend."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from lanlearner.core.card import Card, ContentBlock, ReviewAction, ReviewLog, TagData


def card_payload(card: Card) -> str:
    """JSON for the fields the scheduler never reads."""
    return json.dumps(
        {
            "blocks": [block.to_dict() for block in card.blocks],
            "tags": list(card.tags),
            "remark": card.remark,
            "linkedCardIds": list(card.linked_card_ids),
        },
        ensure_ascii=False,
    )


def row_to_review_log(row: Any) -> ReviewLog:
    return ReviewLog(
        date=row["date"],
        action=ReviewAction(row["action"]),
        stage_before=row["stage_before"],
        stage_after=row["stage_after"],
    )


def row_to_card(row: Any, log_rows: Sequence[Any]) -> Card:
    payload = json.loads(row["payload"] or "{}")
    return Card(
        id=row["id"],
        title=row["title"],
        blocks=tuple(ContentBlock.from_dict(b) for b in payload.get("blocks", [])),
        tags=tuple(payload.get("tags", [])),
        remark=payload.get("remark", ""),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        stage=row["stage"],
        next_review_date=row["next_review_date"],
        review_count=row["review_count"],
        history=tuple(row_to_review_log(r) for r in log_rows),
        linked_card_ids=tuple(payload.get("linkedCardIds", [])),
    )


def row_to_tag(row: Any) -> TagData:
    return TagData(name=row["name"], is_pinned=bool(row["is_pinned"]))
