#!/usr/bin/env python3
"""
Plan Orchestrator CLI.

Command-line interface for plan generation:
- generate: Run the weekly plan pipeline for a profile JSON file
- daily: Titrate one day of a weekly plan to a check-in
- enqueue: Create a plan job for the worker

Usage:
    python cli.py generate profile.json --mock
    python cli.py generate profile.json --firestore --out plan.json
    python cli.py daily profile.json checkin.json plan.json --history history.json
    python cli.py enqueue profile.json
"""

from __future__ import annotations

import json
import os
import sys
from typing import Optional

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app.api import generate_daily_adjustment, generate_weekly_plan
from app.checkpoints.store import (
    FirestoreCheckpointStore,
    FirestorePlanStore,
    InMemoryCheckpointStore,
    InMemoryPlanStore,
)
from app.config import PipelineConfig
from app.errors import PipelineCancelled, PipelineTimeout
from app.plans.profile import DAYS, UserProfile

console = Console()


def _load_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _config(mock: bool) -> PipelineConfig:
    return PipelineConfig.from_env({"use_mock": True} if mock else None)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose: bool):
    """Plan Orchestrator CLI - Weekly plans, daily adjustments and plan jobs."""
    import logging

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
    )


# =============================================================================
# GENERATE
# =============================================================================

@cli.command("generate")
@click.argument("profile_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--mock", is_flag=True, help="Use the mock provider (deterministic fallbacks)")
@click.option("--run-id", help="Explicit run id (default: derived from user and profile)")
@click.option("--firestore", is_flag=True, help="Persist checkpoints and the plan in Firestore")
@click.option("--out", type=click.Path(dir_okay=False), help="Write the plan JSON to this file")
def generate(profile_path: str, mock: bool, run_id: Optional[str], firestore: bool, out: Optional[str]):
    """
    Generate a weekly plan for a profile.

    Examples:
        python cli.py generate profile.json --mock
        python cli.py generate profile.json --firestore --run-id plan-u1-retry
    """
    profile = UserProfile.from_dict(_load_json(profile_path))
    if firestore:
        checkpoints, plans = FirestoreCheckpointStore(), FirestorePlanStore()
    else:
        checkpoints, plans = InMemoryCheckpointStore(), InMemoryPlanStore()

    try:
        with console.status("[dim]Generating plan...[/dim]", spinner="dots"):
            plan = generate_weekly_plan(profile, run_id=run_id, config=_config(mock),
                                        checkpoint_store=checkpoints, plan_store=plans)
    except PipelineTimeout as e:
        console.print(f"[yellow]Run yielded at {e.checkpoint}; re-run the same command to resume.[/yellow]")
        sys.exit(2)
    except PipelineCancelled as e:
        console.print(f"[red]Run cancelled:[/red] {e}")
        sys.exit(1)

    summary = plan.generation_summary
    statuses = summary.get("statuses", {})
    table = Table(title=f"Weekly plan for {profile.name}")
    table.add_column("Day")
    table.add_column("Focus")
    table.add_column("Exercises", justify="right")
    table.add_column("kcal", justify="right")
    table.add_column("Protein", justify="right")
    table.add_column("Workout / Nutrition / Recovery")
    for day in DAYS:
        day_plan = plan.days[day]
        table.add_row(
            day.capitalize(),
            ", ".join(day_plan.workout.focus),
            str(len(day_plan.workout.exercise_names())),
            str(day_plan.nutrition.total_kcal),
            f"{day_plan.nutrition.protein_g} g",
            " / ".join(statuses.get(k, {}).get(day, "-") for k in ("workout", "nutrition", "supplements")),
        )
    console.print(table)
    console.print(
        f"[dim]Run {summary.get('run_id')}: {summary.get('fallback_count', 0)} fallbacks, "
        f"{summary.get('repair_count', 0)} repairs, {summary.get('duration_secs')}s[/dim]"
    )

    if out:
        with open(out, "w", encoding="utf-8") as f:
            json.dump(plan.to_dict(), f, indent=2, default=str)
        console.print(f"[green]✓[/green] Plan written to {out}")


# =============================================================================
# DAILY
# =============================================================================

@cli.command("daily")
@click.argument("profile_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("checkin_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("plan_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--history", "history_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON list of earlier check-ins")
@click.option("--no-ai", is_flag=True, help="Deterministic adjustment only")
@click.option("--mock", is_flag=True, help="Use the mock provider")
def daily(profile_path: str, checkin_path: str, plan_path: str, history_path: Optional[str],
          no_ai: bool, mock: bool):
    """Adjust today's plan day to a check-in."""
    history = _load_json(history_path) if history_path else []
    result = generate_daily_adjustment(
        _load_json(profile_path),
        _load_json(checkin_path),
        history,
        _load_json(plan_path),
        config=_config(mock),
        use_ai=not no_ai,
    )

    console.print(Panel(result.motivation, title=f"{result.day.capitalize()} {result.date}", style="bold"))
    console.print(f"[bold]Flags:[/bold] {', '.join(result.flags) or 'none'}")
    for label, items in (("Workout", result.adjustments),
                         ("Nutrition", result.nutrition_adjustments),
                         ("Memory", result.memory_adjustments)):
        for item in items:
            console.print(f"- [cyan]{label}[/cyan]: {item}")

    table = Table(title=", ".join(result.workout.focus))
    table.add_column("Block")
    table.add_column("Exercise")
    table.add_column("Sets", justify="right")
    table.add_column("Reps")
    table.add_column("RIR", justify="right")
    for block in result.workout.blocks:
        for item in block.items:
            table.add_row(block.name, item.exercise, str(item.sets), item.reps, str(item.rir))
    console.print(table)
    console.print(f"[dim]{result.nutrition.total_kcal} kcal, {result.nutrition.protein_g} g protein[/dim]")


# =============================================================================
# ENQUEUE
# =============================================================================

@cli.command("enqueue")
@click.argument("profile_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--run-id", help="Explicit run id")
def enqueue(profile_path: str, run_id: Optional[str]):
    """Create a plan generation job (supersedes queued jobs for the user)."""
    from app.jobs.queue import create_plan_job

    profile = UserProfile.from_dict(_load_json(profile_path))
    try:
        job = create_plan_job(profile, run_id=run_id)
    except Exception as e:
        console.print(f"[red]✗ Failed to create job:[/red] {e}")
        sys.exit(1)

    console.print("[green]✓ Plan job queued[/green]")
    console.print(f"  Job ID:  {job.id}")
    console.print(f"  User:    {profile.user_id}")
    console.print(f"  Status:  {job.status.value}")


if __name__ == "__main__":
    cli()
