"""Command-line interface for shopplan."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from .config import ShopPlanConfig, discover_config, set_config_path
from .exceptions import ShopPlanError
from .loader import YamlSnapshotSource, load_snapshot
from .logger import setup_logger
from .scheduler import (
    SchedulingConfig,
    SchedulingResult,
    SchedulingService,
    YamlScheduleStore,
    read_schedule_file,
    run_batch,
)

app = typer.Typer(
    name="shopplan",
    help="Calendar-aware production scheduling for a manufacturing shop",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: shopplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for shopplan commands."""
    setup_logger(verbose)
    set_config_path(config)


def _parse_start_option(value: str | None) -> datetime | None:
    """Parse the --start option (YYYY-MM-DD or YYYY-MM-DDTHH:MM)."""
    if value is None:
        return None

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        typer.echo(
            f"Error: Invalid start '{value}'. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _load_scheduling_config(snapshot: Path, project_limit: int | None) -> SchedulingConfig:
    """Find the config file for snapshot and apply command-line overrides."""
    try:
        config: ShopPlanConfig = discover_config(snapshot)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    scheduler_config = config.scheduler
    if project_limit is not None:
        scheduler_config = scheduler_config.model_copy(update={"project_limit": project_limit})
    return scheduler_config


def _display_schedule_results(result: SchedulingResult) -> None:
    """Display placements and run counts to stdout."""
    typer.echo("Schedule Results")
    typer.echo("=" * 80)
    typer.echo("")

    for placement in result.placements:
        task = placement.task
        typer.echo(f"{task.title or task.id} ({task.id}, project {task.project_id})")
        typer.echo(f"  Employee:    {placement.employee_name or placement.employee_id}")
        typer.echo(f"  Workstation: {placement.workstation_id}")
        for slot in result.slots_for_task(task.id):
            typer.echo(
                f"    {slot.scheduled_date}  {slot.start:%H:%M}-{slot.end:%H:%M}"
                f"  lane {slot.lane}"
            )
        typer.echo("")

    meta = result.metadata
    typer.echo(
        f"Placed {meta.get('tasks_placed', 0)} of {meta.get('tasks', 0)} task(s) "
        f"in {meta.get('slots', 0)} slot(s) across {meta.get('projects', 0)} project(s)"
    )
    typer.echo(
        f"Unschedulable: {meta.get('unschedulable', 0)}  "
        f"Unresolved dependencies: {meta.get('unresolved', 0)}"
    )


def _display_warnings(result: SchedulingResult) -> None:
    if result.warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in result.warnings:
            typer.echo(f"  - {warning}", err=True)


@app.command()
def schedule(
    snapshot: Annotated[Path, typer.Argument(help="Path to the reference-data snapshot YAML")],
    start: Annotated[
        str | None,
        typer.Option(
            "--start",
            "-s",
            help="Timeline start (YYYY-MM-DD or YYYY-MM-DDTHH:MM). Defaults to now",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Schedule file to replace with the new result",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Only schedule the N most urgent projects", min=1),
    ] = None,
) -> None:
    """Compute a schedule and optionally replace the stored one."""
    timeline_start = _parse_start_option(start)
    scheduler_config = _load_scheduling_config(snapshot, limit)

    try:
        if output is not None:
            result = run_batch(
                YamlSnapshotSource(snapshot),
                YamlScheduleStore(output),
                timeline_start,
                scheduler_config,
            )
        else:
            result = SchedulingService(
                load_snapshot(snapshot), timeline_start, scheduler_config
            ).schedule()
    except ShopPlanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _display_schedule_results(result)
    if output is not None:
        typer.echo(f"\nSchedule written to {output}")
    _display_warnings(result)


@app.command()
def completion(
    snapshot: Annotated[Path, typer.Argument(help="Path to the reference-data snapshot YAML")],
    start: Annotated[
        str | None,
        typer.Option(
            "--start",
            "-s",
            help="Timeline start (YYYY-MM-DD or YYYY-MM-DDTHH:MM). Defaults to now",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Only schedule the N most urgent projects", min=1),
    ] = None,
) -> None:
    """Show when each project's final production step finishes."""
    timeline_start = _parse_start_option(start)
    scheduler_config = _load_scheduling_config(snapshot, limit)

    try:
        result = SchedulingService(
            load_snapshot(snapshot), timeline_start, scheduler_config
        ).schedule()
    except ShopPlanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"{'Project':<20} {'Target':<12} {'Last step':<18} {'Days':>5}  Status")
    typer.echo("-" * 72)
    for summary in result.completions:
        last_end = (
            f"{summary.last_step_end:%Y-%m-%d %H:%M}" if summary.last_step_end else "-"
        )
        typer.echo(
            f"{summary.project_id:<20} {summary.target_date.isoformat():<12} "
            f"{last_end:<18} {summary.days_remaining:>5}  {summary.status.value}"
        )
    _display_warnings(result)


@app.command()
def show(
    schedule_file: Annotated[Path, typer.Argument(help="Schedule file written by 'schedule'")],
) -> None:
    """List the records of a stored schedule."""
    try:
        slots = read_schedule_file(schedule_file)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    for slot in sorted(slots, key=lambda s: (s.start, s.workstation_id, s.lane)):
        typer.echo(
            f"{slot.scheduled_date}  {slot.start:%H:%M}-{slot.end:%H:%M}  "
            f"{slot.workstation_id}[{slot.lane}]  {slot.task_id}  {slot.employee_id}"
        )
    typer.echo(f"{len(slots)} record(s)")


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
