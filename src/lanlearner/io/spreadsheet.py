"""Excel backup format for a deck.

A workbook holds three sheets:

    Cards (Readable)  one row per card for people to browse
    RAW_DATA          id + full card JSON, the source of truth on import
    TAGS              tag name, pinned flag and the tag as JSON

Cards are read back from the RAW_DATA JSON and tags from the TAGS JSON
column, so stage, review count, history, next review date and tag names
survive an export/import cycle exactly. The readable columns are for people
only: control characters a worksheet cannot store are dropped from them.
"""

from __future__ import annotations

import json
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.worksheet import Worksheet

from lanlearner.core.card import Card, TagData
from lanlearner.errors import ExportError, ImportFormatError
from lanlearner.utils.timeutils import ms_to_datetime

logger = logging.getLogger(__name__)

READABLE_SHEET = "Cards (Readable)"
RAW_SHEET = "RAW_DATA"
TAGS_SHEET = "TAGS"

READABLE_COLUMNS = [
    "ID",
    "Title",
    "ContentSummary",
    "Tags",
    "Created",
    "ReviewStage",
    "NextReview",
]
RAW_COLUMNS = ["id", "json"]
TAG_COLUMNS = ["tag", "isPinned", "json"]


@dataclass(frozen=True)
class WorkbookContents:
    """Cards (collection order) and tags read from a backup workbook."""

    cards: list[Card] = field(default_factory=list)
    tags: list[TagData] = field(default_factory=list)


def default_export_name(now: datetime) -> str:
    return f"Lanlearner_Backup_{now.strftime('%Y-%m-%d')}.xlsx"


def _cell_text(value: str) -> str:
    """Drop control characters that openpyxl refuses to write."""
    return ILLEGAL_CHARACTERS_RE.sub("", value)


def _to_json(data: dict[str, Any]) -> str:
    # json escapes every control character, so the payload is always storable
    return json.dumps(data, ensure_ascii=False)


def _keep_strings_literal(sheet: Worksheet) -> None:
    """Store cells openpyxl took for formulas (text starting with '=') as text."""
    for row in sheet.iter_rows():
        for cell in row:
            if cell.data_type == "f":
                cell.data_type = "s"


def _readable_frame(cards: list[Card]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "ID": _cell_text(card.id),
                "Title": _cell_text(card.title),
                "ContentSummary": _cell_text(card.content_summary()),
                "Tags": _cell_text(", ".join(card.tags)),
                "Created": ms_to_datetime(card.created_at).isoformat(),
                "ReviewStage": card.stage,
                "NextReview": ms_to_datetime(card.next_review_date).isoformat(),
            }
            for card in cards
        ],
        columns=READABLE_COLUMNS,
    )


def export_workbook(cards: list[Card], tags: list[TagData], path: str | Path) -> Path:
    """Write ``cards`` and ``tags`` to an .xlsx backup at ``path``.

    Raises:
        ExportError: If the workbook cannot be written
    """
    out = Path(path)
    raw = pd.DataFrame(
        [{"id": _cell_text(card.id), "json": _to_json(card.to_dict())} for card in cards],
        columns=RAW_COLUMNS,
    )
    tag_frame = pd.DataFrame(
        [
            {
                "tag": _cell_text(tag.name),
                "isPinned": 1 if tag.is_pinned else 0,
                "json": _to_json(tag.to_dict()),
            }
            for tag in tags
        ],
        columns=TAG_COLUMNS,
    )

    try:
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            _readable_frame(cards).to_excel(writer, sheet_name=READABLE_SHEET, index=False)
            raw.to_excel(writer, sheet_name=RAW_SHEET, index=False)
            tag_frame.to_excel(writer, sheet_name=TAGS_SHEET, index=False)
            for sheet in writer.sheets.values():
                _keep_strings_literal(sheet)
    except (IllegalCharacterError, ValueError, OSError) as e:
        raise ExportError(f"Cannot write backup {out}: {e}") from e

    logger.info("Exported %d cards and %d tags to %s", len(cards), len(tags), out)
    return out


def _parse_pinned(value: object) -> bool:
    return str(value).strip().lower() in ("1", "1.0", "true")


def _read_tags(frame: pd.DataFrame) -> list[TagData]:
    """Tags from the JSON column, or from tag/isPinned in backups without one."""
    tags: list[TagData] = []
    has_json = "json" in frame.columns
    for row_number, row in enumerate(frame.to_dict("records"), start=2):
        payload = row.get("json", "") if has_json else ""
        if payload:
            try:
                tags.append(TagData.from_dict(json.loads(payload)))
            except (ValueError, KeyError, TypeError) as e:
                raise ImportFormatError(f"{TAGS_SHEET} row {row_number}: invalid tag ({e})") from e
        elif row.get("tag"):
            tags.append(TagData(name=row["tag"], is_pinned=_parse_pinned(row.get("isPinned"))))
    return tags


def import_workbook(path: str | Path) -> WorkbookContents:
    """Read a backup written by :func:`export_workbook`.

    Raises:
        ImportFormatError: If the file is not a workbook, RAW_DATA is missing,
            or a RAW_DATA or TAGS row cannot be parsed
    """
    try:
        sheets = pd.read_excel(
            Path(path),
            sheet_name=None,
            dtype=str,
            keep_default_na=False,
            engine="openpyxl",
        )
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise ImportFormatError(f"Cannot read workbook {path}: {e}") from e

    if RAW_SHEET not in sheets:
        raise ImportFormatError(f"Workbook {path} has no {RAW_SHEET} sheet")

    raw = sheets[RAW_SHEET]
    if "json" not in raw.columns:
        raise ImportFormatError(f"{RAW_SHEET} sheet has no 'json' column")

    cards: list[Card] = []
    # Row numbers as shown in Excel (header is row 1).
    for row_number, payload in enumerate(raw["json"], start=2):
        try:
            cards.append(Card.from_dict(json.loads(payload)))
        except (ValueError, KeyError, TypeError) as e:
            raise ImportFormatError(f"{RAW_SHEET} row {row_number}: invalid card ({e})") from e

    tag_frame = sheets.get(TAGS_SHEET)
    tags = _read_tags(tag_frame) if tag_frame is not None else []

    logger.info("Read %d cards and %d tags from %s", len(cards), len(tags), path)
    return WorkbookContents(cards=cards, tags=tags)
