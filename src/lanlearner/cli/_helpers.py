"""Shared helpers for CLI commands."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, NoReturn, TypeVar

import typer

from lanlearner.core.card import Card
from lanlearner.core.intervals import MAX_STAGE
from lanlearner.engine.selection import RandomSource
from lanlearner.engine.service import ReviewService
from lanlearner.errors import CardNotFoundError
from lanlearner.storage.sqlite_store import SQLiteCardStorage
from lanlearner.utils.config import Config
from lanlearner.utils.timeutils import format_ms

T = TypeVar("T")


@dataclass
class CLIState:
    """Options given before the subcommand."""

    deck: str | None = None
    verbose: bool = False


def get_config() -> Config:
    """Get CLI configuration."""
    return Config.load()


def setup_logging(config: Config, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, config.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_state(ctx: typer.Context) -> CLIState:
    return ctx.obj if isinstance(ctx.obj, CLIState) else CLIState()


@asynccontextmanager
async def open_service(
    config: Config,
    deck: str | None = None,
    random_source: RandomSource | None = None,
) -> AsyncIterator[ReviewService]:
    """Open the deck's storage for the duration of one command."""
    storage = SQLiteCardStorage(config.get_deck_path(deck), strict=config.strict_load)
    await storage.initialize()
    try:
        yield ReviewService(storage, config, random_source=random_source)
    finally:
        await storage.close()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def fail(message: str) -> NoReturn:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


async def resolve_card(service: ReviewService, card_id: str) -> Card:
    """Find a card by full id, unique id prefix, or ``@Title``."""
    if card_id.startswith("@") and len(card_id) > 1:
        card = await service.find_by_title(card_id[1:])
        if card is None:
            raise CardNotFoundError(card_id)
        return card
    try:
        return await service.get_card(card_id)
    except CardNotFoundError:
        matches = [c for c in await service.list_cards() if c.id.startswith(card_id)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ValueError(f"Id prefix '{card_id}' matches {len(matches)} cards") from None
        raise


def card_summary(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "title": card.title,
        "tags": list(card.tags),
        "stage": card.stage,
        "next_review_date": card.next_review_date,
        "review_count": card.review_count,
    }


def echo_card_line(card: Card) -> None:
    status = "mastered" if card.stage >= MAX_STAGE else f"due {format_ms(card.next_review_date)}"
    tags = f"  #{' #'.join(card.tags)}" if card.tags else ""
    typer.echo(f"  {card.id[:8]}  [{card.stage}/{MAX_STAGE}] {card.title}{tags}")
    typer.secho(f"            {status}, reviews: {card.review_count}", fg=typer.colors.BRIGHT_BLACK)


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output result in appropriate format."""
    if as_json:
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))
    elif "error" in data:
        typer.secho(f"Error: {data['error']}", fg=typer.colors.RED)
    elif "message" in data:
        typer.secho(data["message"], fg=typer.colors.GREEN)
    else:
        typer.echo(str(data))
