"""buildaccel publish command - Assemble and publish stable modules."""

from __future__ import annotations

import click

from buildaccel_cli.commands.build import execute_goal, goal_options
from buildaccel_cli.loading import workspace_options


@click.command()
@workspace_options
@goal_options
def publish(
    file_path: str,
    properties_path: str | None,
    targets: tuple[str, ...],
    variants: tuple[str, ...],
    jobs: int,
    output_format: str,
) -> None:
    """Assemble and publish stable modules in one go.

    Every stable module with a module setting is assembled and copied into
    the local artifact store and into the release or snapshot repository,
    depending on its version.

    Examples:

        buildaccel publish

        buildaccel publish --target :infra:network
    """
    execute_goal(file_path, properties_path, "publish", targets, variants, jobs, output_format)
