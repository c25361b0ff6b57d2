"""SQLite schema for card decks."""

from __future__ import annotations

SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    payload TEXT NOT NULL DEFAULT '{}',  -- blocks, tags, remark, linked ids (JSON)
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    stage INTEGER NOT NULL DEFAULT 0,
    next_review_date INTEGER NOT NULL,
    review_count INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_cards_position ON cards(position);
CREATE INDEX IF NOT EXISTS idx_cards_due ON cards(stage, next_review_date);

-- Append-only: rows are inserted on review and never updated.
CREATE TABLE IF NOT EXISTS review_logs (
    card_id TEXT NOT NULL,
    seq INTEGER NOT NULL,
    date INTEGER NOT NULL,
    action TEXT NOT NULL,
    stage_before INTEGER NOT NULL,
    stage_after INTEGER NOT NULL,
    PRIMARY KEY (card_id, seq)
);

CREATE TABLE IF NOT EXISTS tags (
    name TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    is_pinned INTEGER NOT NULL DEFAULT 0
);
"""
