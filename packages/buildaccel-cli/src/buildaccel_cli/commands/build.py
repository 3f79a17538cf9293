"""buildaccel build command - Plan and execute a build."""

from __future__ import annotations

import click

from buildaccel_cli.errors import EXIT_USER_ERROR, cli_errors
from buildaccel_cli.loading import F, load_planner, workspace_options
from buildaccel_cli.output import error, get_console, success


def execute_goal(
    file_path: str,
    properties_path: str | None,
    goal: str,
    targets: tuple[str, ...],
    variants: tuple[str, ...],
    jobs: int,
    output_format: str,
) -> None:
    """Plan a goal, run it and report the result.

    Raises:
        CLIError: If the workspace cannot be planned.
        SystemExit: With status 1 when a step failed.
    """
    from buildaccel_core import BuildGoal, StepActions, StepExecutor
    from buildaccel_core.output import format_result_table, result_to_dict, write_json

    planner = load_planner(file_path, properties_path)
    with cli_errors(file_path):
        build_plan = planner.plan(BuildGoal(goal), targets or None, variants or None)

    result = StepExecutor(max_workers=jobs).execute(build_plan, StepActions(build_plan))

    console = get_console()
    if output_format == "json":
        write_json(result_to_dict(result), console)
    else:
        format_result_table(result, console)

    if not result.succeeded:
        if output_format != "json":
            error(f"{goal.capitalize()} failed")
        raise SystemExit(EXIT_USER_ERROR)

    if output_format != "json":
        success(f"{goal.capitalize()} finished: {len(result.results)} steps")


def goal_options(func: F) -> F:
    """Options shared by the build and publish commands."""
    func = click.option(
        "--format",
        "output_format",
        type=click.Choice(["table", "json"]),
        default="table",
        show_default=True,
        help="Output format.",
    )(func)
    func = click.option(
        "-j",
        "--jobs",
        type=click.IntRange(min=1),
        default=4,
        show_default=True,
        help="Number of steps run in parallel.",
    )(func)
    func = click.option(
        "--variant",
        "variants",
        multiple=True,
        help="Restrict steps to this variant (repeatable).",
    )(func)
    func = click.option(
        "-t",
        "--target",
        "targets",
        multiple=True,
        help="Module path (repeatable).",
    )(func)
    return func


@click.command()
@workspace_options
@goal_options
def build(
    file_path: str,
    properties_path: str | None,
    targets: tuple[str, ...],
    variants: tuple[str, ...],
    jobs: int,
    output_format: str,
) -> None:
    """Build the active modules, consuming artifacts for stable ones.

    Without --target every module in the accelerator workspace list is
    assembled, together with the source dependencies that have no artifact.

    Examples:

        buildaccel build

        buildaccel build --target :app --variant hkDebug --jobs 8
    """
    execute_goal(file_path, properties_path, "build", targets, variants, jobs, output_format)
