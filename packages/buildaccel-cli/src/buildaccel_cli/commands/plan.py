"""buildaccel plan command - Show the build plan without running it."""

from __future__ import annotations

import click

from buildaccel_cli.errors import cli_errors
from buildaccel_cli.loading import load_planner, workspace_options
from buildaccel_cli.output import get_console


@click.command()
@workspace_options
@click.option(
    "--goal",
    type=click.Choice(["build", "publish"]),
    default="build",
    show_default=True,
    help="Goal to plan for.",
)
@click.option(
    "-t",
    "--target",
    "targets",
    multiple=True,
    help="Module path to build or publish (repeatable). Defaults to the goal's modules.",
)
@click.option(
    "--variant",
    "variants",
    multiple=True,
    help="Restrict steps to this variant (repeatable).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format.",
)
def plan(
    file_path: str,
    properties_path: str | None,
    goal: str,
    targets: tuple[str, ...],
    variants: tuple[str, ...],
    output_format: str,
) -> None:
    """Show classification, dependency decisions and steps.

    Examples:

        buildaccel plan

        buildaccel plan --goal publish --format json

        buildaccel plan --target :app --variant hkDebug
    """
    from buildaccel_core import BuildGoal
    from buildaccel_core.output import format_plan_table, plan_to_dict, write_json

    planner = load_planner(file_path, properties_path)
    with cli_errors(file_path):
        build_plan = planner.plan(BuildGoal(goal), targets or None, variants or None)

    console = get_console()
    if output_format == "json":
        write_json(plan_to_dict(build_plan), console)
    else:
        format_plan_table(build_plan, console)
