"""Configuration for Lanlearner.

Settings live in ``<data_dir>/config.toml``. The data directory defaults to
``~/.lanlearner`` and can be moved with the ``LANLEARNER_HOME`` environment
variable.
"""

from __future__ import annotations

import logging
import os
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import tomli_w

logger = logging.getLogger(__name__)

ENV_HOME = "LANLEARNER_HOME"
CONFIG_FILENAME = "config.toml"

_DECK_NAME = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off", "")


def default_data_dir() -> Path:
    override = os.environ.get(ENV_HOME)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".lanlearner"


def parse_flag(value: Any) -> bool:
    """Read a boolean setting written as a TOML bool, a number or a word like "yes"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"Expected a true/false value, got '{value}'")


def validate_deck_name(name: str) -> str:
    """Return ``name`` if usable as a deck file name, else raise ValueError."""
    if not _DECK_NAME.match(name):
        raise ValueError(
            f"Invalid deck name '{name}': use 1-64 letters, digits, '-' or '_'"
        )
    return name


@dataclass(frozen=True)
class Config:
    """Lanlearner settings.

    Attributes:
        data_dir: Directory holding config.toml and the decks/ folder.
        current_deck: Deck opened by default.
        daily_sample_size: Cards drawn for the daily recall sample.
        strict_load: Refuse to load cards that violate the data model
            invariants instead of logging a warning.
        log_level: Root log level used by the CLI.
    """

    data_dir: Path = field(default_factory=default_data_dir)
    current_deck: str = "default"
    daily_sample_size: int = 10
    strict_load: bool = False
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        validate_deck_name(self.current_deck)
        if self.daily_sample_size < 0:
            raise ValueError(f"daily_sample_size must be >= 0, got {self.daily_sample_size}")
        if self.log_level not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {_VALID_LOG_LEVELS}, got '{self.log_level}'"
            )

    @property
    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME

    @property
    def decks_dir(self) -> Path:
        return self.data_dir / "decks"

    def get_deck_path(self, name: str | None = None) -> Path:
        """Path of the SQLite file backing deck ``name`` (current deck by default)."""
        deck = validate_deck_name(name or self.current_deck)
        return self.decks_dir / f"{deck}.db"

    def list_decks(self) -> list[str]:
        if not self.decks_dir.exists():
            return []
        return sorted(p.stem for p in self.decks_dir.glob("*.db"))

    def with_values(self, **changes: Any) -> Config:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_deck": self.current_deck,
            "daily_sample_size": self.daily_sample_size,
            "strict_load": self.strict_load,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], data_dir: Path | None = None) -> Config:
        base_dir = data_dir or default_data_dir()
        try:
            return cls(
                data_dir=base_dir,
                current_deck=str(data.get("current_deck", "default")),
                daily_sample_size=int(data.get("daily_sample_size", 10)),
                strict_load=parse_flag(data.get("strict_load", False)),
                log_level=str(data.get("log_level", "WARNING")).upper(),
            )
        except (ValueError, TypeError):
            logger.warning("Invalid values in %s, using defaults", base_dir / CONFIG_FILENAME)
            return cls(data_dir=base_dir)

    @classmethod
    def load(cls, data_dir: Path | None = None) -> Config:
        """Load config.toml, falling back to defaults when absent or unreadable."""
        base_dir = data_dir or default_data_dir()
        path = base_dir / CONFIG_FILENAME
        if not path.exists():
            return cls(data_dir=base_dir)
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, OSError):
            logger.warning("Could not read %s, using defaults", path, exc_info=True)
            return cls(data_dir=base_dir)
        return cls.from_dict(data, data_dir=base_dir)

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.decks_dir.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("wb") as f:
            tomli_w.dump(self.to_dict(), f)


def get_config() -> Config:
    """Load the configuration from the default data directory."""
    return Config.load()
