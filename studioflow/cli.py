"""Command line interface for inspecting wizards, schedules and campaigns."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import typer

from studioflow.errors import FeasibilityError, NotFoundError, StudioflowError
from studioflow.persistence import CampaignStore, ProgressionStore, get_storage
from studioflow.scheduling import batch_progress, check_feasibility, distribute
from studioflow.steps import STEP_TABLE

app = typer.Typer(help="CLI for studioflow wizards and campaigns")

# Command groups
steps_app = typer.Typer(help="Inspect step definitions")
schedule_app = typer.Typer(help="Check and plan campaign schedules")
progress_app = typer.Typer(help="Inspect persisted progressions")
campaign_app = typer.Typer(help="Inspect persisted campaigns")

app.add_typer(steps_app, name="steps")
app.add_typer(schedule_app, name="schedule")
app.add_typer(progress_app, name="progress")
app.add_typer(campaign_app, name="campaign")

DATE_FORMATS = ["%Y-%m-%d"]


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
) -> None:
    """studioflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_flags(flags: Optional[List[str]]) -> Dict[str, Any]:
    context: Dict[str, Any] = {}
    for flag in flags or []:
        name, sep, raw = flag.partition("=")
        if not sep:
            context[name] = True
            continue
        lowered = raw.lower()
        if lowered in ("true", "yes", "on", "1"):
            context[name] = True
        elif lowered in ("false", "no", "off", "0"):
            context[name] = False
        else:
            context[name] = raw
    return context


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _as_date(value: datetime) -> date:
    return value.date()


@steps_app.command("list")
def steps_list(
    mode: str,
    flag: Optional[List[str]] = typer.Option(
        None, "--flag", "-f", help="Context value as name=value, e.g. voiceover_enabled=true"
    ),
) -> None:
    """
    Show the visible steps of a mode.

    Example:
        studioflow steps list ambient --flag voiceover_enabled=true
    """
    context = _parse_flags(flag)
    try:
        steps = STEP_TABLE.get_visible_steps(mode, context)
    except StudioflowError as e:
        _fail(str(e))
    for position, step in enumerate(steps, start=1):
        typer.echo(f"{position}. {step.id}\t{step.label}")


@schedule_app.command("check")
def schedule_check(
    n: int,
    start: datetime = typer.Argument(..., formats=DATE_FORMATS),
    end: datetime = typer.Argument(..., formats=DATE_FORMATS),
    max_per_day: int = typer.Argument(...),
) -> None:
    """
    Check whether N items fit between START and END at MAX_PER_DAY.

    Example:
        studioflow schedule check 12 2024-01-01 2024-01-05 2
        # Output: Cannot fit 12 items in 5 days with max 2/day; maximum capacity is 10
    """
    try:
        report = check_feasibility(n, _as_date(start), _as_date(end), max_per_day)
    except FeasibilityError as e:
        _fail(f"{e} (short by {e.shortfall})")
    except StudioflowError as e:
        _fail(str(e))
    typer.echo(
        f"Feasible: {report.n} items in {report.days} days "
        f"(capacity {report.capacity}, {report.remaining} free slots)"
    )


@schedule_app.command("plan")
def schedule_plan(
    start: datetime = typer.Argument(..., formats=DATE_FORMATS),
    end: datetime = typer.Argument(..., formats=DATE_FORMATS),
    max_per_day: int = typer.Argument(...),
    ideas: List[str] = typer.Argument(...),
) -> None:
    """
    Print the publish date assigned to each idea.

    Example:
        studioflow schedule plan 2024-01-01 2024-01-02 2 "rain" "forest" "ocean"
    """
    try:
        schedule = distribute(len(ideas), _as_date(start), _as_date(end), max_per_day)
    except StudioflowError as e:
        _fail(str(e))
    for index, day in schedule.items():
        typer.echo(f"{index}\t{day.isoformat()}\t{ideas[index]}")


@progress_app.command("show")
def progress_show(item_id: str) -> None:
    """Show the current step, completed steps and dirty steps of a progression."""
    store = ProgressionStore(get_storage())
    try:
        state = asyncio.run(store.load(item_id))
    except NotFoundError:
        _fail("Progression not found")
    typer.echo(f"Progression {item_id}: {state.mode}")
    typer.echo(f"Current step: {state.current_step}" + (" (locked)" if state.locked else ""))
    typer.echo(f"Completed: {', '.join(state.completed_steps) or '-'}")
    typer.echo(f"Dirty: {', '.join(state.dirty_steps) or '-'}")


@campaign_app.command("list")
def campaign_list() -> None:
    """List persisted campaigns with their status and progress."""
    store = CampaignStore(get_storage())

    async def _collect():
        return [(batch_id, await store.load(batch_id)) for batch_id in await store.list_ids()]

    batches = asyncio.run(_collect())
    if not batches:
        typer.echo("No campaigns found")
        return
    for batch_id, batch in batches:
        progress = batch_progress(batch)
        typer.echo(
            f"{batch_id}\t{batch.status.value}\t{progress.completed}/{progress.total}\t{batch.name}"
        )


@campaign_app.command("show")
def campaign_show(batch_id: str) -> None:
    """Show every item of a campaign with its status and publish date."""
    store = CampaignStore(get_storage())
    try:
        batch = asyncio.run(store.load(batch_id))
    except NotFoundError:
        _fail("Campaign not found")
    typer.echo(f"Campaign {batch_id}: {batch.status.value}")
    typer.echo(
        f"Window: {batch.date_range.start.isoformat()} -> {batch.date_range.end.isoformat()}"
        f" (max {batch.max_per_day}/day)"
    )
    for item in batch.items:
        entry = batch.schedule.get(item.index)
        when = entry.scheduled_date.isoformat() if entry else "unscheduled"
        line = f"- {item.index}: {item.status.value} {when} {item.source_idea}"
        if item.error:
            line += f" ({item.error})"
        typer.echo(line)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
