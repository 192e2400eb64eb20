"""phaseweight command-line interface."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from phaseweight.config import get_settings
from phaseweight.db import TrackerSnapshot, TrackerStore, get_db
from phaseweight.tracking.composition import APPROXIMATION_NOTE
from phaseweight.tracking.defaults import (
    create_default_app_state,
    create_default_phases,
    create_default_profile,
    create_sample_history,
)
from phaseweight.tracking.engine import (
    EventKind,
    amend_weigh_in,
    complete_onboarding,
    record_weigh_in,
    set_trend_view,
    update_profile_assumptions,
    validate_weight,
)
from phaseweight.tracking.models import PhaseWeightError
from phaseweight.tracking.phases import update_plateau
from phaseweight.tracking.projection import is_sunday
from phaseweight.tracking.reports import build_dashboard, format_dashboard, history_frame
from phaseweight.tracking.trend import DEFAULT_PLATEAU_THRESHOLD, detect_plateau

app = typer.Typer(
    help="Weekly weigh-in tracking with a three-phase weight-loss plan",
    no_args_is_help=True,
)
console = Console()

profile_app = typer.Typer(help="Show and edit profile assumptions")
app.add_typer(profile_app, name="profile")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict) -> None:
    """Print a JSON response envelope to stdout."""
    print(json.dumps(response, indent=2, default=str))


def fail(command: str, message: str, json_output: bool) -> None:
    """Report an error and exit with status 1."""
    if json_output:
        output_json({"success": False, "command": command, "errors": [message]})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def use_json(json_output: bool) -> bool:
    """JSON output if requested or configured as the default format."""
    return json_output or get_settings().defaults.output_format == "json"


def get_store() -> TrackerStore:
    try:
        return TrackerStore(get_db())
    except PhaseWeightError as e:
        console.print(f"[red]Cannot open tracker data: {e}[/red]")
        raise typer.Exit(1)


def load_snapshot(store: TrackerStore) -> TrackerSnapshot:
    settings = get_settings()
    return store.load_snapshot(trend_view_weeks=settings.tracking.default_trend_view_weeks)


def require_initialized(
    snapshot: TrackerSnapshot, command: str, json_output: bool = False
) -> None:
    """Refuse partial writes to a store that holds no profile, phases or state."""
    if not snapshot.initialized:
        fail(command, "Tracker not initialized. Run 'phaseweight init' first.", json_output)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Weekly weigh-in tracking with a three-phase weight-loss plan."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    try:
        get_settings()
    except PhaseWeightError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Setup Commands
# ============================================================================


@app.command()
def init(
    sample: bool = typer.Option(
        False, "--sample", help="Seed eight weeks of demo weigh-ins"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Initialize the tracker with the default profile and phase plan."""
    json_output = use_json(json_output)
    store = get_store()
    if store.has_data():
        fail("init", "Tracker already initialized. Use 'phaseweight reset --yes' first.", json_output)

    settings = get_settings()
    profile = create_default_profile()
    phases = create_default_phases()
    state = create_default_app_state(profile, settings.tracking.default_trend_view_weeks)
    history = []

    if sample:
        history, phases, state = create_sample_history(profile, phases, state)

    store.save_snapshot(TrackerSnapshot(profile, phases, history, state))

    if json_output:
        output_json({
            "success": True,
            "command": "init",
            "data": {"weigh_ins": len(history), "db_path": str(store.db.db_path)},
            "human_summary": f"Initialized with {len(history)} weigh-ins",
        })
    else:
        console.print(f"[green]Initialized tracker at {store.db.db_path}[/green]")
        if sample:
            console.print(f"Seeded {len(history)} sample weigh-ins")


@app.command()
def onboard() -> None:
    """Mark onboarding complete."""
    store = get_store()
    snapshot = load_snapshot(store)
    require_initialized(snapshot, "onboard")
    store.save_app_state(complete_onboarding(snapshot.state))
    console.print("[green]Onboarding complete.[/green] You'll weigh in every Sunday.")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", help="Confirm deleting all data"),
) -> None:
    """Delete all tracker data and start over with defaults."""
    if not yes:
        console.print("[yellow]This deletes all weigh-ins. Re-run with --yes to confirm.[/yellow]")
        raise typer.Exit(1)

    store = get_store()
    store.clear_all()
    settings = get_settings()
    profile = create_default_profile()
    store.save_snapshot(
        TrackerSnapshot(
            profile,
            create_default_phases(),
            [],
            create_default_app_state(profile, settings.tracking.default_trend_view_weeks),
        )
    )
    console.print("[green]All data reset.[/green]")


# ============================================================================
# Weigh-in Commands
# ============================================================================


@app.command("weigh-in")
def weigh_in(
    weight: str = typer.Argument(..., help="Weight in kg"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    notes: str = typer.Option("", "--notes", "-n", help="Optional notes"),
    photo: Optional[str] = typer.Option(None, "--photo", help="Progress photo reference"),
    any_day: bool = typer.Option(
        False, "--any-day", help="Allow weighing in on a day other than Sunday"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Record this week's weigh-in."""
    json_output = use_json(json_output)
    try:
        weight_kg = validate_weight(weight)
    except PhaseWeightError as e:
        fail("weigh-in", str(e), json_output)

    try:
        when = datetime.fromisoformat(date_str) if date_str else datetime.now()
    except ValueError:
        fail("weigh-in", f"Invalid date: {date_str} (expected YYYY-MM-DD)", json_output)

    settings = get_settings()
    if settings.tracking.enforce_sunday and not any_day and not is_sunday(when):
        fail(
            "weigh-in",
            f"Weigh-ins happen on Sundays ({when:%A} given). Use --any-day to override.",
            json_output,
        )

    store = get_store()
    snapshot = load_snapshot(store)

    try:
        outcome = record_weigh_in(
            snapshot.profile,
            snapshot.phases,
            snapshot.history,
            snapshot.state,
            weight_kg,
            when=when,
            notes=notes,
            photo_path=photo,
        )
        store.save_snapshot(
            TrackerSnapshot(snapshot.profile, outcome.phases, outcome.history, outcome.state)
        )
    except PhaseWeightError as e:
        fail("weigh-in", str(e), json_output)

    entry = outcome.weigh_in
    if json_output:
        output_json({
            "success": True,
            "command": "weigh-in",
            "data": {
                "id": entry.id,
                "weight_kg": entry.weight_kg,
                "weekly_delta_kg": round(entry.weekly_delta_kg, 2),
                "four_week_avg_kg": round(entry.four_week_avg_kg, 2),
                "estimated_bf_pct": round(entry.estimated_bf_pct, 1),
                "phase_id": entry.phase_id,
                "current_phase": outcome.state.current_phase,
                "plateau_mode": outcome.state.plateau_mode,
                "events": [event.kind.value for event in outcome.events],
                "insight": entry.insight,
            },
            "human_summary": f"Logged {entry.weight_kg:.1f} kg ({entry.weekly_delta_kg:+.1f} kg)",
        })
        return

    console.print(f"[green]Logged:[/green] {entry.weight_kg:.1f} kg on {entry.date:%Y-%m-%d}")
    console.print(f"[blue]4-week average:[/blue] {entry.four_week_avg_kg:.1f} kg")
    console.print()
    console.print(entry.insight)

    for event in outcome.events:
        if event.kind is EventKind.PHASE_COMPLETED:
            console.print()
            console.print(f"[bold green]Phase {event.phase_id} complete![/bold green]")
            if event.unlocked_phase_id:
                console.print(f"Phase {event.unlocked_phase_id} is now unlocked.")
            else:
                console.print("That was the final phase. Program complete.")
        elif event.kind is EventKind.NEW_LOW:
            console.print("[cyan]New low weight.[/cyan]")
        elif event.kind is EventKind.PLATEAU_DETECTED:
            console.print("[yellow]Plateau detected over the last 3 weigh-ins.[/yellow]")
        elif event.kind is EventKind.PLATEAU_CLEARED:
            console.print("[green]Plateau cleared.[/green]")

    console.print()
    console.print(f"Next weigh-in: {outcome.state.next_weigh_in_date:%A %b %d}")


@app.command()
def amend(
    entry_id: str = typer.Argument(..., help="ID of the weigh-in to amend"),
    weight: str = typer.Argument(..., help="Corrected weight in kg"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Replace notes"),
) -> None:
    """Correct a past weigh-in and recompute derived values."""
    try:
        weight_kg = validate_weight(weight)
        store = get_store()
        snapshot = load_snapshot(store)
        amended = amend_weigh_in(
            snapshot.profile, snapshot.phases, snapshot.history, entry_id, weight_kg, notes
        )
    except PhaseWeightError as e:
        fail("amend", str(e), False)

    state = snapshot.state
    if amended[-1].id == entry_id:
        state = update_plateau(
            replace(state, current_weight_kg=weight_kg),
            detect_plateau(amended, DEFAULT_PLATEAU_THRESHOLD),
        )

    store.save_weigh_ins(amended)
    store.save_app_state(state)
    console.print(f"[green]Amended {entry_id}:[/green] {weight_kg:.1f} kg")


@app.command()
def history(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Export history to CSV"),
) -> None:
    """List weigh-in history."""
    json_output = use_json(json_output)
    snapshot = load_snapshot(get_store())
    entries = snapshot.history

    if csv_path is not None:
        history_frame(entries).to_csv(csv_path, index=False)
        console.print(f"Exported {len(entries)} weigh-ins to {csv_path}")
        return

    if not entries:
        if json_output:
            output_json({
                "success": True,
                "command": "history",
                "data": {"entries": []},
                "human_summary": "No weigh-ins yet",
            })
        else:
            console.print("No weigh-ins yet")
        return

    if json_output:
        frame = history_frame(entries)
        output_json({
            "success": True,
            "command": "history",
            "data": {"entries": json.loads(frame.to_json(orient="records", date_format="iso"))},
            "human_summary": f"{len(entries)} weigh-ins",
        })
        return

    table = Table(title="Weigh-in History")
    table.add_column("Date", style="cyan")
    table.add_column("Phase", justify="center")
    table.add_column("Weight", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("4-wk avg", justify="right", style="blue")
    table.add_column("Est. BF%", justify="right")
    table.add_column("Notes")

    for entry in reversed(entries):
        notes = entry.notes + (" (edited)" if entry.is_edited else "")
        table.add_row(
            f"{entry.date:%Y-%m-%d}",
            str(entry.phase_id),
            f"{entry.weight_kg:.1f}",
            f"{entry.weekly_delta_kg:+.1f}",
            f"{entry.four_week_avg_kg:.1f}",
            f"{entry.estimated_bf_pct:.1f}",
            notes,
        )

    console.print(table)
    console.print(f"[dim]{APPROXIMATION_NOTE}[/dim]")


# ============================================================================
# Dashboard Commands
# ============================================================================


@app.command()
def status(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the dashboard for the active phase."""
    json_output = use_json(json_output)
    snapshot = load_snapshot(get_store())
    summary = build_dashboard(
        snapshot.profile, snapshot.phases, snapshot.history, snapshot.state
    )

    if json_output:
        projection = summary.projection
        output_json({
            "success": True,
            "command": "status",
            "data": {
                "phase_id": summary.phase.id,
                "phase_name": summary.phase.name,
                "current_weight_kg": summary.current_weight,
                "remaining_kg": round(summary.remaining_kg, 1),
                "progress_pct": round(summary.progress_pct, 1),
                "weeks_min": projection.weeks_min,
                "weeks_max": projection.weeks_max,
                "date_min": projection.date_min.isoformat(),
                "date_max": projection.date_max.isoformat(),
                "trend_kg_per_week": round(summary.trend_per_week, 2),
                "plateau_mode": summary.plateau_mode,
                "next_weigh_in": summary.next_weigh_in.isoformat(),
            },
            "human_summary": (
                f"Phase {summary.phase.id}: {summary.remaining_kg:.1f} kg to go, "
                f"{projection.weeks_min}-{projection.weeks_max} weeks"
            ),
        })
    else:
        console.print(format_dashboard(summary))


@app.command()
def phases(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the three-phase plan and its progress."""
    json_output = use_json(json_output)
    snapshot = load_snapshot(get_store())

    if json_output:
        output_json({
            "success": True,
            "command": "phases",
            "data": {
                "current_phase": snapshot.state.current_phase,
                "phases": [
                    {
                        "id": p.id,
                        "name": p.name,
                        "target_weight_kg": p.target_weight_kg,
                        "is_unlocked": p.is_unlocked,
                        "completed_at": p.completed_at.isoformat() if p.completed_at else None,
                    }
                    for p in snapshot.phases
                ],
            },
        })
        return

    table = Table(title="Phases")
    table.add_column("Phase", style="cyan")
    table.add_column("Body fat", justify="center")
    table.add_column("Target", justify="right")
    table.add_column("Pace", justify="center")
    table.add_column("Duration", justify="center")
    table.add_column("Status")

    for p in snapshot.phases:
        if p.completed_at:
            phase_status = f"[green]completed {p.completed_at:%Y-%m-%d}[/green]"
        elif p.id == snapshot.state.current_phase:
            phase_status = "[bold]active[/bold]"
        elif p.is_unlocked:
            phase_status = "unlocked"
        else:
            phase_status = "[dim]locked[/dim]"
        table.add_row(
            f"{p.id}. {p.name}",
            f"{p.start_bf_pct:.0f}% -> {p.end_bf_pct:.0f}%",
            f"{p.target_weight_kg:.1f} kg",
            f"{p.weekly_loss_min_kg}-{p.weekly_loss_max_kg} kg/wk",
            f"{p.estimated_duration_weeks_min}-{p.estimated_duration_weeks_max} wk",
            phase_status,
        )

    console.print(table)


@app.command("trend-window")
def trend_window(
    weeks: int = typer.Argument(..., help="Trend window in weeks (4, 6, 8 or 12)"),
) -> None:
    """Choose how many weeks the dashboard trend covers."""
    store = get_store()
    snapshot = load_snapshot(store)
    require_initialized(snapshot, "trend-window")
    try:
        state = set_trend_view(snapshot.state, weeks)
    except PhaseWeightError as e:
        fail("trend-window", str(e), False)
    store.save_app_state(state)
    console.print(f"[green]Trend window set to {weeks} weeks[/green]")


# ============================================================================
# Profile Commands
# ============================================================================


@profile_app.command("show")
def profile_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show profile assumptions."""
    json_output = use_json(json_output)
    profile = load_snapshot(get_store()).profile

    if json_output:
        output_json({
            "success": True,
            "command": "profile show",
            "data": {
                "age": profile.age,
                "height_cm": profile.height_cm,
                "starting_weight_kg": profile.starting_weight_kg,
                "starting_body_fat_pct": profile.starting_body_fat_pct,
                "goal_body_fat_pct": profile.goal_body_fat_pct,
                "lean_mass_kg": profile.lean_mass_kg,
                "assumptions_last_updated": profile.assumptions_last_updated.isoformat(),
            },
        })
    else:
        console.print("[bold]Profile[/bold]")
        console.print(f"  Age: {profile.age}")
        console.print(f"  Height: {profile.height_cm} cm")
        console.print(f"  Starting weight: {profile.starting_weight_kg} kg")
        console.print(
            f"  Body fat: {profile.starting_body_fat_pct}% -> {profile.goal_body_fat_pct}%"
        )
        console.print(f"  Lean mass: {profile.lean_mass_kg} kg")
        console.print(f"  Last updated: {profile.assumptions_last_updated:%Y-%m-%d}")


@profile_app.command("update")
def profile_update(
    age: Optional[int] = typer.Option(None, "--age", help="Age in years"),
    height: Optional[float] = typer.Option(None, "--height", help="Height in cm"),
    starting_weight: Optional[float] = typer.Option(
        None, "--starting-weight", help="Starting weight in kg"
    ),
    starting_bf: Optional[float] = typer.Option(None, "--starting-bf", help="Starting body fat %"),
    goal_bf: Optional[float] = typer.Option(None, "--goal-bf", help="Goal body fat %"),
    lean_mass: Optional[float] = typer.Option(None, "--lean-mass", help="Lean mass in kg"),
) -> None:
    """Edit profile assumptions."""
    changes = {
        "age": age,
        "height_cm": height,
        "starting_weight_kg": starting_weight,
        "starting_body_fat_pct": starting_bf,
        "goal_body_fat_pct": goal_bf,
        "lean_mass_kg": lean_mass,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        fail("profile update", "Nothing to update", False)

    store = get_store()
    snapshot = load_snapshot(store)
    require_initialized(snapshot, "profile update")
    store.save_profile(update_profile_assumptions(snapshot.profile, **changes))
    console.print("[green]Profile updated[/green]")


if __name__ == "__main__":
    app()
