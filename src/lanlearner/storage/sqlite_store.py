"""SQLite-backed card storage."""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from pathlib import Path
from typing import Any

import aiosqlite

from lanlearner.core.card import Card, ReviewLog, TagData
from lanlearner.errors import CardNotFoundError
from lanlearner.storage.base import CardStorage
from lanlearner.storage.sqlite_row_mappers import (
    card_payload,
    row_to_card,
    row_to_review_log,
    row_to_tag,
)
from lanlearner.storage.sqlite_schema import SCHEMA, SCHEMA_VERSION

logger = logging.getLogger(__name__)


class SQLiteCardStorage(CardStorage):
    """
    One deck in one SQLite file.

    Every mutating call runs in its own transaction and is rolled back on
    failure, so callers only ever see whole transitions.

    Usage:
        storage = SQLiteCardStorage(path)
        await storage.initialize()
        await storage.add_card(card)
        await storage.close()
    """

    def __init__(self, db_path: str | Path, strict: bool = False) -> None:
        super().__init__(strict=strict)
        self._db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    def _ensure_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Storage not initialized. Call initialize() first.")
        return self._conn

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.executescript(SCHEMA)

        async with self._conn.execute("SELECT version FROM schema_version") as cursor:
            row = await cursor.fetchone()
        if row is None:
            await self._conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
        elif row["version"] > SCHEMA_VERSION:
            raise RuntimeError(
                f"{self._db_path} has schema v{row['version']}, "
                f"this version supports up to v{SCHEMA_VERSION}"
            )
        await self._conn.commit()
        logger.debug("Opened deck %s", self._db_path)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    # ========== Card Operations ==========

    async def add_card(self, card: Card) -> str:
        conn = self._ensure_conn()
        async with conn.execute("SELECT COALESCE(MAX(position), 0) FROM cards") as cursor:
            row = await cursor.fetchone()
        position = (row[0] if row else 0) + 1

        try:
            await self._insert_card(conn, card, position)
            await conn.commit()
        except sqlite3.IntegrityError:
            await conn.rollback()
            raise ValueError(f"Card {card.id} already exists")
        except Exception:
            await conn.rollback()
            raise
        return card.id

    async def get_card(self, card_id: str) -> Card | None:
        conn = self._ensure_conn()
        async with conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        async with conn.execute(
            "SELECT * FROM review_logs WHERE card_id = ? ORDER BY seq", (card_id,)
        ) as cursor:
            log_rows = await cursor.fetchall()
        return self._check_loaded(row_to_card(row, log_rows))

    async def get_cards(self) -> list[Card]:
        conn = self._ensure_conn()
        logs: dict[str, list[Any]] = defaultdict(list)
        async with conn.execute("SELECT * FROM review_logs ORDER BY card_id, seq") as cursor:
            async for log_row in cursor:
                logs[log_row["card_id"]].append(log_row)

        async with conn.execute("SELECT * FROM cards ORDER BY position DESC") as cursor:
            rows = await cursor.fetchall()
        return [self._check_loaded(row_to_card(row, logs.get(row["id"], []))) for row in rows]

    async def update_card(self, card: Card) -> None:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT * FROM review_logs WHERE card_id = ? ORDER BY seq", (card.id,)
        ) as cursor:
            stored = [row_to_review_log(row) for row in await cursor.fetchall()]
        self._ensure_history_appends(card.id, stored, card.history)
        stored_logs = len(stored)

        try:
            cursor = await conn.execute(
                """UPDATE cards SET title = ?, payload = ?, updated_at = ?, stage = ?,
                   next_review_date = ?, review_count = ?
                   WHERE id = ?""",
                (
                    card.title,
                    card_payload(card),
                    card.updated_at,
                    card.stage,
                    card.next_review_date,
                    card.review_count,
                    card.id,
                ),
            )
            if cursor.rowcount == 0:
                raise CardNotFoundError(card.id)
            await self._insert_logs(conn, card.id, card.history[stored_logs:], stored_logs)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    async def delete_card(self, card_id: str) -> bool:
        conn = self._ensure_conn()
        try:
            cursor = await conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            await conn.execute("DELETE FROM review_logs WHERE card_id = ?", (card_id,))
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        return cursor.rowcount > 0

    async def replace_all(self, cards: list[Card], tags: list[TagData]) -> None:
        self._ensure_unique_ids(cards)
        for card in cards:
            self._check_loaded(card)

        conn = self._ensure_conn()
        try:
            await conn.execute("DELETE FROM review_logs")
            await conn.execute("DELETE FROM cards")
            await conn.execute("DELETE FROM tags")
            # Highest position is the front of the collection.
            for offset, card in enumerate(cards):
                await self._insert_card(conn, card, len(cards) - offset)
            await self._insert_tags(conn, tags)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        logger.info("Replaced deck %s with %d cards", self._db_path, len(cards))

    # ========== Tag Operations ==========

    async def get_tags(self) -> list[TagData]:
        conn = self._ensure_conn()
        async with conn.execute("SELECT * FROM tags ORDER BY position") as cursor:
            rows = await cursor.fetchall()
        return [row_to_tag(row) for row in rows]

    async def save_tags(self, tags: list[TagData]) -> None:
        conn = self._ensure_conn()
        try:
            await conn.execute("DELETE FROM tags")
            await self._insert_tags(conn, tags)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    # ========== Helpers ==========

    async def _insert_card(self, conn: aiosqlite.Connection, card: Card, position: int) -> None:
        await conn.execute(
            """INSERT INTO cards (id, position, title, payload, created_at, updated_at,
               stage, next_review_date, review_count)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                card.id,
                position,
                card.title,
                card_payload(card),
                card.created_at,
                card.updated_at,
                card.stage,
                card.next_review_date,
                card.review_count,
            ),
        )
        await self._insert_logs(conn, card.id, card.history, 0)

    async def _insert_logs(
        self,
        conn: aiosqlite.Connection,
        card_id: str,
        entries: tuple[ReviewLog, ...],
        first_seq: int,
    ) -> None:
        if not entries:
            return
        await conn.executemany(
            """INSERT INTO review_logs (card_id, seq, date, action, stage_before, stage_after)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (card_id, first_seq + i, e.date, e.action.value, e.stage_before, e.stage_after)
                for i, e in enumerate(entries)
            ],
        )

    async def _insert_tags(self, conn: aiosqlite.Connection, tags: list[TagData]) -> None:
        await conn.executemany(
            "INSERT OR REPLACE INTO tags (name, position, is_pinned) VALUES (?, ?, ?)",
            [(tag.name, i, int(tag.is_pinned)) for i, tag in enumerate(tags)],
        )
