"""Epoch-millisecond time utilities.

Card timestamps are integer milliseconds since the Unix epoch, matching the
persisted format of existing backups. These helpers convert at the edges
(CLI display, spreadsheet readable sheet).
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as an aware datetime."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Return the current time in epoch milliseconds."""
    return datetime_to_ms(utcnow())


def datetime_to_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def ms_to_datetime(value: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def format_ms(value: int) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DD HH:MM`` (UTC)."""
    return ms_to_datetime(value).strftime("%Y-%m-%d %H:%M")
