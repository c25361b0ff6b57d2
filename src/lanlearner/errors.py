"""Exception types raised by Lanlearner storage and I/O layers.

The scheduling core itself never raises for well-formed input.
"""

from __future__ import annotations


class LanlearnerError(Exception):
    """Base class for Lanlearner errors."""


class CardNotFoundError(LanlearnerError, KeyError):
    """Raised when a card id is not present in the collection."""

    def __init__(self, card_id: str) -> None:
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card {self.card_id} not found"


class CardValidationError(LanlearnerError, ValueError):
    """Raised when a persisted card violates the data model invariants."""

    def __init__(self, card_id: str, problems: list[str]) -> None:
        super().__init__(f"Card {card_id} is invalid: {'; '.join(problems)}")
        self.card_id = card_id
        self.problems = problems


class ImportFormatError(LanlearnerError, ValueError):
    """Raised when an import file is missing required sheets or rows are malformed."""


class ExportError(LanlearnerError):
    """Raised when a backup workbook cannot be written."""
