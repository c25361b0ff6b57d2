"""CLI commands for configuration management."""

from __future__ import annotations

from typing import Annotated

import typer

from lanlearner.cli._helpers import fail, get_config
from lanlearner.utils.config import parse_flag

config_app = typer.Typer(help="Configuration management")

_SETTABLE_KEYS: tuple[str, ...] = ("daily_sample_size", "strict_load", "log_level")


@config_app.command("show")
def show_cmd() -> None:
    """Show the current configuration.

    Examples:
        lanlearner config show
    """
    config = get_config()
    typer.echo(f"Config file: {config.config_path}")
    typer.echo(f"Data dir:    {config.data_dir}")
    for key, value in config.to_dict().items():
        typer.echo(f"  {key} = {value}")
    decks = config.list_decks()
    if decks:
        typer.echo(f"Decks: {', '.join(decks)}")


@config_app.command("set")
def set_cmd(
    key: Annotated[str, typer.Argument(help=f"One of: {', '.join(_SETTABLE_KEYS)}")],
    value: Annotated[str, typer.Argument(help="New value")],
) -> None:
    """Change a setting.

    Examples:
        lanlearner config set daily_sample_size 20
        lanlearner config set strict_load true
        lanlearner config set log_level INFO
    """
    if key not in _SETTABLE_KEYS:
        fail(f"Unknown key '{key}'. Valid keys: {', '.join(_SETTABLE_KEYS)}")

    config = get_config()
    try:
        if key == "daily_sample_size":
            updated = config.with_values(daily_sample_size=int(value))
        elif key == "strict_load":
            updated = config.with_values(strict_load=parse_flag(value))
        else:
            updated = config.with_values(log_level=value.strip().upper())
    except ValueError as e:
        fail(str(e))

    updated.save()
    typer.secho(f"{key} set to: {getattr(updated, key)}", fg=typer.colors.GREEN)


@config_app.command("use")
def use_cmd(
    deck: Annotated[str, typer.Argument(help="Deck name to switch to")],
) -> None:
    """Switch the current deck. A new deck is created on first use.

    Examples:
        lanlearner config use english
    """
    config = get_config()
    try:
        updated = config.with_values(current_deck=deck)
    except ValueError as e:
        fail(str(e))

    updated.save()
    if deck not in config.list_decks():
        typer.secho(f"Switched to new deck: {deck}", fg=typer.colors.GREEN)
    else:
        typer.secho(f"Switched to deck: {deck}", fg=typer.colors.GREEN)
