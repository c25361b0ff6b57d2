"""Tag management commands."""

from __future__ import annotations

from typing import Annotated

import typer

from lanlearner.cli._helpers import (
    fail,
    get_config,
    get_state,
    open_service,
    output_result,
    run_async,
)

tags_app = typer.Typer(help="Tag management commands")


@tags_app.command("list")
def tags_list(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List tags, pinned first, with card counts.

    Examples:
        lanlearner tags list
        lanlearner tags list --json
    """
    state = get_state(ctx)

    async def _list() -> list[dict]:
        async with open_service(get_config(), state.deck) as service:
            tags = await service.tags()
            cards = await service.list_cards()
        return [
            {
                "name": tag.name,
                "pinned": tag.is_pinned,
                "cards": sum(1 for card in cards if tag.name in card.tags),
            }
            for tag in tags
        ]

    rows = run_async(_list())
    if json_output:
        output_result({"tags": rows, "count": len(rows)}, True)
        return
    if not rows:
        typer.echo("No tags yet.")
        return
    for row in rows:
        marker = "*" if row["pinned"] else " "
        typer.echo(f"  {marker} #{row['name']}  ({row['cards']})")


def _set_pinned(ctx: typer.Context, name: str, pinned: bool) -> None:
    state = get_state(ctx)

    async def _pin() -> bool:
        async with open_service(get_config(), state.deck) as service:
            return await service.set_tag_pinned(name, pinned)

    if not run_async(_pin()):
        fail(f"Tag '{name}' not found")
    typer.secho(f"{'Pinned' if pinned else 'Unpinned'} #{name}", fg=typer.colors.GREEN)


@tags_app.command("pin")
def tags_pin(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Tag name")],
) -> None:
    """Pin a tag to the top of the list."""
    _set_pinned(ctx, name, True)


@tags_app.command("unpin")
def tags_unpin(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Tag name")],
) -> None:
    """Unpin a tag."""
    _set_pinned(ctx, name, False)


@tags_app.command("delete")
def tags_delete(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Tag name")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Delete a tag from the tag list. Cards keep the tag text."""
    if not force and not typer.confirm(f"Delete tag #{name}?"):
        raise typer.Exit(0)
    state = get_state(ctx)

    async def _delete() -> bool:
        async with open_service(get_config(), state.deck) as service:
            return await service.delete_tag(name)

    if not run_async(_delete()):
        fail(f"Tag '{name}' not found")
    typer.secho(f"Deleted #{name}", fg=typer.colors.GREEN)
