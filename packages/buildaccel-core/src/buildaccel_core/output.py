"""Plan, artifact and build result formatters.

Rich table and JSON output for build plans, artifact snapshots and build
results.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from buildaccel_core.execution.executor import BuildResult, StepOutcome
from buildaccel_core.planner import BuildPlan
from buildaccel_core.store.artifact_store import ArtifactSnapshot


def _outcome_color(outcome: StepOutcome) -> str:
    """Get color for a step outcome."""
    colors = {
        StepOutcome.SUCCESS: "green",
        StepOutcome.SKIPPED: "dim",
        StepOutcome.FAILED: "red bold",
        StepOutcome.ABORTED: "yellow",
    }
    return colors.get(outcome, "white")


def plan_to_dict(plan: BuildPlan) -> dict[str, Any]:
    """Convert a BuildPlan to a dictionary for JSON serialization."""
    classification = plan.context.classification
    return {
        "goal": plan.goal.value,
        "enabled": plan.context.enabled,
        "classification": {
            "policy": classification.policy.value,
            "active": sorted(classification.active),
            "stable": sorted(classification.stable),
            "skipped": sorted(classification.skipped),
            "unknown": list(classification.unknown),
        },
        "decisions": [
            {
                "consumer": d.consumer,
                "target": d.target,
                "substituted": d.substituted,
                "reason": d.reason.value if d.reason else None,
                "detail": d.detail,
                "coordinates": list(d.coordinates),
            }
            for d in plan.decisions
        ],
        "publications": [
            {
                "module": p.module,
                "variant": p.variant,
                "coordinate": p.coordinate,
                "destinations": [d.value for d in p.destinations],
            }
            for p in plan.publications
        ],
        "artifact_backed": sorted(plan.artifact_backed),
        "steps": [
            {
                "id": step.id,
                "kind": step.kind.value,
                "enabled": step.enabled,
                "depends_on": sorted(step.depends_on),
            }
            for step in plan.steps_to_run()
        ],
    }


def snapshot_to_dict(snapshot: ArtifactSnapshot) -> dict[str, Any]:
    """Convert an ArtifactSnapshot to a dictionary for JSON serialization."""
    return {
        "root": str(snapshot.root),
        "artifacts": [
            {
                "module": a.module,
                "variant": a.variant,
                "version": a.version,
                "path": str(a.path),
            }
            for a in snapshot
        ],
    }


def result_to_dict(result: BuildResult) -> dict[str, Any]:
    """Convert a BuildResult to a dictionary for JSON serialization."""
    return {
        "succeeded": result.succeeded,
        "steps": [
            {
                "id": r.step_id,
                "outcome": r.outcome.value,
                "duration_ms": round(r.duration_ms, 1),
                "message": r.message,
            }
            for r in result.results
        ],
        "total_ms": round(result.timings.total_ms, 1),
    }


def format_plan_table(plan: BuildPlan, console: Console) -> None:
    """Format a build plan as Rich tables.

    Args:
        plan: BuildPlan to display.
        console: Rich console.
    """
    classification = plan.context.classification
    header = Text()
    header.append(f"Goal: {plan.goal.value}\n", style="bold")
    header.append(f"Accelerator: {'enabled' if plan.context.enabled else 'disabled'}\n")
    header.append(f"Active: {', '.join(sorted(classification.active)) or '-'}\n")
    header.append(f"Stable: {', '.join(sorted(classification.stable)) or '-'}")
    console.print(Panel(header, title="[bold]Build Plan[/bold]"))

    if plan.decisions:
        table = Table(show_header=True, header_style="bold", title="Dependencies")
        table.add_column("Consumer", min_width=12)
        table.add_column("Target", min_width=12)
        table.add_column("Resolution", min_width=8)
        table.add_column("Detail", min_width=30)
        for d in plan.decisions:
            if d.substituted:
                resolution = Text("artifact", style="green")
                detail = "\n".join(d.coordinates)
            else:
                resolution = Text("source", style="yellow")
                detail = d.detail
            table.add_row(d.consumer, d.target, resolution, detail)
        console.print(table)

    steps = Table(show_header=True, header_style="bold", title="Steps")
    steps.add_column("#", justify="right", width=4)
    steps.add_column("Step", min_width=30)
    steps.add_column("Depends on", min_width=20)
    for index, step in enumerate(plan.steps_to_run(), start=1):
        name = Text(step.id, style="" if step.enabled else "dim strike")
        steps.add_row(str(index), name, ", ".join(sorted(step.depends_on)) or "-")
    console.print(steps)


def format_snapshot_table(snapshot: ArtifactSnapshot, console: Console) -> None:
    """Format an artifact snapshot as a Rich table."""
    table = Table(show_header=True, header_style="bold", title=f"Artifacts in {snapshot.root}")
    table.add_column("Module", min_width=12)
    table.add_column("Variant", min_width=8)
    table.add_column("Version", min_width=8)
    table.add_column("File")
    for artifact in snapshot:
        table.add_row(artifact.module, artifact.variant, artifact.version, artifact.path.name)
    console.print(table)


def format_result_table(result: BuildResult, console: Console) -> None:
    """Format a build result and its timings as a Rich table."""
    table = Table(show_header=True, header_style="bold", title="Build Timings")
    table.add_column("Duration", justify="right", width=12)
    table.add_column("Step", min_width=30)
    table.add_column("Outcome", width=10)
    for r in result.results:
        table.add_row(
            f"{r.duration_ms:.1f}ms",
            r.step_id,
            Text(r.outcome.value, style=_outcome_color(r.outcome)),
        )
    console.print(table)

    problems = [r for r in result.results if r.outcome == StepOutcome.FAILED]
    if problems:
        console.print()
        console.print("[bold red]Failed Steps:[/bold red]")
        for r in problems:
            console.print(f"  [red]• {r.step_id}[/red]: {r.message}")


def write_json(data: dict[str, Any], console: Console) -> None:
    """Write raw JSON to the console's file, bypassing Rich formatting."""
    json_str = json.dumps(data, indent=2, default=str)
    if console.file is not None:
        console.file.write(json_str + "\n")
    else:
        print(json_str)
