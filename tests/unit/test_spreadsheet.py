"""Tests for the Excel backup format."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from lanlearner.core.card import Card, ContentBlock, ReviewAction, TagData
from lanlearner.engine.review import record_review
from lanlearner.errors import ExportError, ImportFormatError
from lanlearner.io.spreadsheet import (
    RAW_SHEET,
    READABLE_SHEET,
    TAGS_SHEET,
    default_export_name,
    export_workbook,
    import_workbook,
)


def _reviewed_card(title: str, reviews: list[ReviewAction], start: int = 0) -> Card:
    card = Card.create(
        title=title,
        blocks=[ContentBlock.text(f"{title} body #tag"), ContentBlock.text("第二段")],
        tags=["english"],
        now=start,
    )
    for i, outcome in enumerate(reviews):
        card = record_review(card, outcome, start + (i + 1) * 3_600_000)
    return card


class TestExportImport:
    def test_scheduler_fields_survive(self, tmp_path: Path) -> None:
        cards = [
            _reviewed_card("a", [ReviewAction.REMEMBERED, ReviewAction.REMEMBERED]),
            _reviewed_card("b", [ReviewAction.FORGOT]),
            _reviewed_card("c", []),
        ]
        tags = [TagData("english", is_pinned=True), TagData("阅读")]
        path = export_workbook(cards, tags, tmp_path / "backup.xlsx")

        contents = import_workbook(path)

        assert contents.cards == cards
        assert contents.tags == tags

    def test_sheets_written(self, tmp_path: Path) -> None:
        card = _reviewed_card("a", [ReviewAction.REMEMBERED])
        path = export_workbook([card], [], tmp_path / "backup.xlsx")

        sheets = pd.read_excel(path, sheet_name=None, dtype=str, engine="openpyxl")
        assert set(sheets) == {READABLE_SHEET, RAW_SHEET, TAGS_SHEET}
        readable = sheets[READABLE_SHEET]
        assert readable.loc[0, "ID"] == card.id
        assert readable.loc[0, "ReviewStage"] == "1"
        assert readable.loc[0, "ContentSummary"] == "a body #tag 第二段"

    def test_empty_deck(self, tmp_path: Path) -> None:
        path = export_workbook([], [], tmp_path / "empty.xlsx")
        contents = import_workbook(path)
        assert contents.cards == []
        assert contents.tags == []

    def test_control_characters(self, tmp_path: Path) -> None:
        card = Card.create(
            "bell\x07",
            blocks=[ContentBlock.text("x\x01y\x0bz")],
            tags=["a\x0bb"],
            remark="tab\tand\nnewline",
            now=0,
        )
        tags = [TagData("a\x0bb", is_pinned=True)]
        path = export_workbook([card], tags, tmp_path / "backup.xlsx")

        contents = import_workbook(path)
        assert contents.cards == [card]
        assert contents.tags == tags

        readable = pd.read_excel(path, sheet_name=READABLE_SHEET, dtype=str, engine="openpyxl")
        assert readable.loc[0, "Title"] == "bell"
        assert readable.loc[0, "ContentSummary"] == "xyz"

    def test_formula_like_text_stays_text(self, tmp_path: Path) -> None:
        card = Card.create("=SUM(A1:A3)", tags=["=x", "+1"], now=0)
        tags = [TagData("=x", is_pinned=True), TagData("+1"), TagData("-y")]
        path = export_workbook([card], tags, tmp_path / "backup.xlsx")

        contents = import_workbook(path)
        assert contents.cards == [card]
        assert contents.tags == tags

        sheets = pd.read_excel(path, sheet_name=None, dtype=str, engine="openpyxl")
        assert sheets[READABLE_SHEET].loc[0, "Title"] == "=SUM(A1:A3)"
        assert list(sheets[TAGS_SHEET]["tag"]) == ["=x", "+1", "-y"]

    def test_tags_sheet_without_json_column(self, tmp_path: Path) -> None:
        card = _reviewed_card("a", [])
        path = tmp_path / "older.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(
                {"id": [card.id], "json": [json.dumps(card.to_dict())]}
            ).to_excel(writer, sheet_name=RAW_SHEET, index=False)
            pd.DataFrame({"tag": ["english", "math"], "isPinned": [1, 0]}).to_excel(
                writer, sheet_name=TAGS_SHEET, index=False
            )

        contents = import_workbook(path)
        assert contents.cards == [card]
        assert contents.tags == [TagData("english", is_pinned=True), TagData("math")]


class TestExportErrors:
    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ExportError, match="Cannot write backup"):
            export_workbook([], [], tmp_path / "missing" / "backup.xlsx")


class TestImportErrors:
    def test_missing_raw_sheet(self, tmp_path: Path) -> None:
        path = tmp_path / "other.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"x": [1]}).to_excel(writer, sheet_name="Sheet1", index=False)

        with pytest.raises(ImportFormatError, match="RAW_DATA"):
            import_workbook(path)

    def test_bad_json_row(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"id": ["x"], "json": ["{not json"]}).to_excel(
                writer, sheet_name=RAW_SHEET, index=False
            )

        with pytest.raises(ImportFormatError, match="row 2"):
            import_workbook(path)

    def test_bad_tag_json_row(self, tmp_path: Path) -> None:
        path = tmp_path / "bad_tags.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"id": [], "json": []}).to_excel(writer, sheet_name=RAW_SHEET, index=False)
            pd.DataFrame(
                {"tag": ["a", "b"], "isPinned": [0, 0], "json": ['{"name": "a"}', "[]"]}
            ).to_excel(writer, sheet_name=TAGS_SHEET, index=False)

        with pytest.raises(ImportFormatError, match="TAGS row 3"):
            import_workbook(path)

    def test_not_a_workbook(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.xlsx"
        path.write_text("hello", encoding="utf-8")
        with pytest.raises(ImportFormatError):
            import_workbook(path)


def test_default_export_name() -> None:
    assert default_export_name(datetime(2024, 3, 9)) == "Lanlearner_Backup_2024-03-09.xlsx"
