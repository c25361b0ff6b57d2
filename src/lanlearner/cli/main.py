"""Lanlearner CLI main entry point."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Annotated, Optional

import typer

from lanlearner.cli._helpers import (
    CLIState,
    card_summary,
    echo_card_line,
    fail,
    get_config,
    get_state,
    open_service,
    output_result,
    resolve_card,
    run_async,
    setup_logging,
)
from lanlearner.cli.commands import config_cmd, tags_cmd
from lanlearner.core.card import ContentBlock, ReviewAction
from lanlearner.core.intervals import MAX_STAGE
from lanlearner.engine.events import ReviewRecorded
from lanlearner.errors import LanlearnerError
from lanlearner.io.spreadsheet import default_export_name, import_workbook
from lanlearner.utils.config import validate_deck_name
from lanlearner.utils.timeutils import format_ms, utcnow

# Main app
app = typer.Typer(
    name="lanlearner",
    help="Lanlearner - Ebbinghaus spaced-repetition flashcards",
    no_args_is_help=True,
)
app.add_typer(config_cmd.config_app, name="config")
app.add_typer(tags_cmd.tags_app, name="tags")


@app.callback()
def main_callback(
    ctx: typer.Context,
    deck: Annotated[
        Optional[str], typer.Option("--deck", "-d", help="Deck to use (default: current)")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Lanlearner - Ebbinghaus spaced-repetition flashcards."""
    setup_logging(get_config(), verbose)
    if deck is not None:
        try:
            validate_deck_name(deck)
        except ValueError as e:
            fail(str(e))
    ctx.obj = CLIState(deck=deck, verbose=verbose)


# =============================================================================
# Card Commands
# =============================================================================


@app.command()
def add(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Card title (front)")],
    text: Annotated[
        Optional[list[str]],
        typer.Option("--text", "-x", help="Text block; repeat for several. #words become tags"),
    ] = None,
    tags: Annotated[Optional[list[str]], typer.Option("--tag", "-t", help="Tag")] = None,
    remark: Annotated[str, typer.Option("--remark", "-r", help="Remark")] = "",
    links: Annotated[
        Optional[list[str]],
        typer.Option("--link", "-l", help="Related card (id, prefix or @Title); repeatable"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Create a card. It is first due 24 hours from now.

    Examples:
        lanlearner add "ephemeral" -x "lasting a very short time #english"
        lanlearner add "TCP handshake" -x "SYN, SYN-ACK, ACK" -t networking
        lanlearner add "transient" -x "see @ephemeral"
    """
    state = get_state(ctx)

    async def _add() -> dict:
        config = get_config()
        async with open_service(config, state.deck) as service:
            try:
                linked_ids = [(await resolve_card(service, ref)).id for ref in links or []]
                card = await service.create_card(
                    title=title,
                    blocks=[ContentBlock.text(t) for t in text or []],
                    tags=tags or [],
                    remark=remark,
                    linked_card_ids=linked_ids,
                )
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
        return {
            "message": f"Added card {card.id[:8]}: {card.title}",
            "card": card_summary(card),
        }

    output_result(run_async(_add()), json_output)


@app.command("list")
def list_cards(
    ctx: typer.Context,
    tag: Annotated[Optional[str], typer.Option("--tag", "-t", help="Only cards with tag")] = None,
    search: Annotated[
        Optional[str], typer.Option("--search", "-s", help="Search title, tags and text")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List cards, newest first.

    Examples:
        lanlearner list
        lanlearner list --tag english
        lanlearner list --search handshake --json
    """
    state = get_state(ctx)

    async def _list() -> list:
        async with open_service(get_config(), state.deck) as service:
            if search:
                cards = await service.search(search)
                if tag:
                    cards = [c for c in cards if tag in c.tags]
                return cards
            return await service.list_cards(tag=tag)

    cards = run_async(_list())
    if json_output:
        output_result({"cards": [card_summary(c) for c in cards], "count": len(cards)}, True)
        return
    if not cards:
        typer.echo("No cards.")
        return
    typer.echo(f"Cards ({len(cards)}):")
    for card in cards:
        echo_card_line(card)


@app.command()
def show(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id, unique prefix or @Title")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show a card with its review history."""
    state = get_state(ctx)

    async def _show() -> dict:
        async with open_service(get_config(), state.deck) as service:
            try:
                card = await resolve_card(service, card_id)
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
        return card.to_dict()

    data = run_async(_show())
    if json_output:
        output_result(data, True)
        return

    typer.secho(data["title"], bold=True)
    for block in data["blocks"]:
        body = block["content"] if block["type"] == "text" else f"[{block['type']}]"
        typer.echo(f"  {body}")
    if data["remark"]:
        typer.secho(f"  ({data['remark']})", fg=typer.colors.BRIGHT_BLACK)
    if data["tags"]:
        typer.echo(f"  #{' #'.join(data['tags'])}")
    typer.echo(
        f"\nStage {data['stage']}/{MAX_STAGE}, reviews: {data['reviewCount']}, "
        f"next review: {format_ms(data['nextReviewDate'])}"
    )
    if data["history"]:
        typer.echo("History:")
        for entry in data["history"]:
            typer.echo(
                f"  {format_ms(entry['date'])}  {entry['action']:<10} "
                f"{entry['stageBefore']} -> {entry['stageAfter']}"
            )


@app.command()
def edit(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id, unique prefix or @Title")],
    title: Annotated[Optional[str], typer.Option("--title", "-T", help="New title")] = None,
    text: Annotated[
        Optional[list[str]],
        typer.Option("--text", "-x", help="Replace the body; repeat for several blocks"),
    ] = None,
    tags: Annotated[
        Optional[list[str]], typer.Option("--tag", "-t", help="Replace the tags")
    ] = None,
    remark: Annotated[Optional[str], typer.Option("--remark", "-r", help="New remark")] = None,
    links: Annotated[
        Optional[list[str]],
        typer.Option("--link", "-l", help="Replace related cards (id, prefix or @Title)"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Edit a card's content. Its review progress is kept.

    Examples:
        lanlearner edit 3f2a --title "ephemeral (adj.)"
        lanlearner edit @ephemeral -x "lasting a very short time #english"
        lanlearner edit 3f2a --link @transient
    """
    if all(value is None for value in (title, text, tags, remark, links)):
        fail("Nothing to change. Use --title, --text, --tag, --remark or --link.")
    state = get_state(ctx)

    async def _edit() -> dict:
        async with open_service(get_config(), state.deck) as service:
            try:
                card = await resolve_card(service, card_id)
                linked_ids = None
                if links is not None:
                    linked_ids = [(await resolve_card(service, ref)).id for ref in links]
                updated = await service.edit_card(
                    card.id,
                    title=title,
                    blocks=None if text is None else [ContentBlock.text(t) for t in text],
                    tags=tags,
                    remark=remark,
                    linked_card_ids=linked_ids,
                )
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
        return {
            "message": f"Updated card {updated.id[:8]}: {updated.title}",
            "card": card_summary(updated),
        }

    output_result(run_async(_edit()), json_output)


@app.command()
def related(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id, unique prefix or @Title")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List cards linked from a card, by --link or by @Title in its text."""
    state = get_state(ctx)

    async def _related() -> list:
        async with open_service(get_config(), state.deck) as service:
            try:
                card = await resolve_card(service, card_id)
                return await service.linked_cards(card.id)
            except (LanlearnerError, ValueError) as e:
                fail(str(e))

    cards = run_async(_related())
    if json_output:
        output_result({"related": [card_summary(c) for c in cards], "count": len(cards)}, True)
        return
    if not cards:
        typer.echo("No related cards.")
        return
    typer.echo(f"Related ({len(cards)}):")
    for card in cards:
        echo_card_line(card)


@app.command()
def delete(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id, unique prefix or @Title")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Delete a card."""
    state = get_state(ctx)

    async def _delete() -> dict:
        async with open_service(get_config(), state.deck) as service:
            try:
                card = await resolve_card(service, card_id)
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
            if not force and not typer.confirm(f"Delete card '{card.title}'?"):
                raise typer.Exit(0)
            await service.delete_card(card.id)
        return {"message": f"Deleted card {card.id[:8]}"}

    output_result(run_async(_delete()))


# =============================================================================
# Review Commands
# =============================================================================


@app.command()
def due(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List cards due for review now."""
    state = get_state(ctx)

    async def _due() -> list:
        async with open_service(get_config(), state.deck) as service:
            return await service.due_cards()

    cards = run_async(_due())
    if json_output:
        output_result({"due": [card_summary(c) for c in cards], "count": len(cards)}, True)
        return
    if not cards:
        typer.secho("Nothing due. Well done!", fg=typer.colors.GREEN)
        return
    typer.echo(f"Due now ({len(cards)}):")
    for card in cards:
        echo_card_line(card)


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id, unique prefix or @Title")],
    remembered: Annotated[
        bool,
        typer.Option("--remembered/--forgot", help="Whether you recalled the card"),
    ],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Record a review outcome.

    Remembering moves the card up one stage; forgetting sends it back to 0.

    Examples:
        lanlearner review 3f2a --remembered
        lanlearner review 3f2a --forgot
    """
    outcome = ReviewAction.REMEMBERED if remembered else ReviewAction.FORGOT
    state = get_state(ctx)

    async def _review() -> dict:
        recorded: list[ReviewRecorded] = []

        async def remember(event: ReviewRecorded) -> None:
            recorded.append(event)

        async with open_service(get_config(), state.deck) as service:
            service.events.subscribe(ReviewRecorded, remember)
            try:
                card = await resolve_card(service, card_id)
                await service.review(card.id, outcome)
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
        event = recorded[-1]
        updated, entry = event.card, event.entry
        if event.reached_mastery:
            when = "mastered!"
        elif updated.stage >= MAX_STAGE:
            when = "already mastered"
        else:
            when = f"next review {format_ms(updated.next_review_date)}"
        return {
            "message": (
                f"{updated.title}: stage {entry.stage_before} -> {entry.stage_after}, {when}"
            ),
            "card": card_summary(updated),
            "mastered": event.reached_mastery,
            "lapsed": event.lapsed,
        }

    output_result(run_async(_review()), json_output)


@app.command()
def reset(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id, unique prefix or @Title")],
) -> None:
    """Reset a card's progress to stage 0."""
    state = get_state(ctx)

    async def _reset() -> dict:
        async with open_service(get_config(), state.deck) as service:
            try:
                card = await resolve_card(service, card_id)
                updated = await service.reset(card.id)
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
        return {
            "message": (
                f"Reset {updated.title}; next review {format_ms(updated.next_review_date)}"
            )
        }

    output_result(run_async(_reset()))


@app.command()
def daily(
    ctx: typer.Context,
    size: Annotated[
        Optional[int], typer.Option("--size", "-n", help="Sample size (default from config)")
    ] = None,
    seed: Annotated[
        Optional[int], typer.Option("--seed", help="Seed for a reproducible sample")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Draw a random sample of cards for casual recall practice."""
    state = get_state(ctx)
    random_source = random.Random(seed) if seed is not None else None

    async def _daily() -> list:
        async with open_service(get_config(), state.deck, random_source) as service:
            try:
                return await service.daily_sample(size)
            except ValueError as e:
                fail(str(e))

    cards = run_async(_daily())
    if json_output:
        output_result({"sample": [card_summary(c) for c in cards], "count": len(cards)}, True)
        return
    if not cards:
        typer.echo("No cards yet.")
        return
    typer.echo(f"Daily sample ({len(cards)}):")
    for card in cards:
        echo_card_line(card)


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show review statistics for the deck."""
    state = get_state(ctx)

    async def _stats() -> dict:
        async with open_service(get_config(), state.deck) as service:
            return (await service.stats()).to_dict()

    data = run_async(_stats())
    if json_output:
        output_result(data, True)
        return

    typer.echo(f"Cards: {data['total']}  Due: {data['due']}  Mastered: {data['mastered']}")
    for stage, count in data["by_stage"].items():
        typer.echo(f"  stage {stage}: {count}")
    if data["next_due"] is not None:
        typer.secho(
            f"Next review: {format_ms(data['next_due'])}", fg=typer.colors.BRIGHT_BLACK
        )


# =============================================================================
# Backup Commands
# =============================================================================


@app.command("export")
def export_deck(
    ctx: typer.Context,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Output .xlsx path")
    ] = None,
) -> None:
    """Export the deck to an Excel backup.

    Examples:
        lanlearner export
        lanlearner export -o backup.xlsx
    """
    state = get_state(ctx)
    target = output or Path(default_export_name(utcnow()))

    async def _export() -> dict:
        async with open_service(get_config(), state.deck) as service:
            try:
                path = await service.export_to(target)
            except LanlearnerError as e:
                fail(str(e))
        return {"message": f"Exported to: {path}"}

    output_result(run_async(_export()))


@app.command("import")
def import_deck(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Backup .xlsx to import")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Replace the deck with the contents of an Excel backup."""
    state = get_state(ctx)
    try:
        contents = import_workbook(file)
    except (LanlearnerError, ValueError) as e:
        fail(str(e))

    if not yes and not typer.confirm(
        f"Found {len(contents.cards)} cards. This overwrites the current deck. Continue?"
    ):
        raise typer.Exit(0)

    async def _import() -> dict:
        async with open_service(get_config(), state.deck) as service:
            try:
                await service.restore(contents)
            except (LanlearnerError, ValueError) as e:
                fail(str(e))
        return {
            "message": f"Imported {len(contents.cards)} cards and {len(contents.tags)} tags"
        }

    output_result(run_async(_import()))


# =============================================================================
# Utility Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from lanlearner import __version__

    typer.echo(f"lanlearner v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
