"""buildaccel artifacts command - List the local artifact store."""

from __future__ import annotations

import click

from buildaccel_cli.loading import load_planner, workspace_options
from buildaccel_cli.output import get_console, info


@click.command()
@workspace_options
@click.option(
    "-m",
    "--module",
    "module_name",
    default=None,
    help="Only list artifacts of this module name (e.g. 'network').",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format.",
)
def artifacts(
    file_path: str,
    properties_path: str | None,
    module_name: str | None,
    output_format: str,
) -> None:
    """List artifacts found in the local artifact store.

    Examples:

        buildaccel artifacts

        buildaccel artifacts --module network --format json
    """
    from buildaccel_core.output import format_snapshot_table, snapshot_to_dict, write_json
    from buildaccel_core.store import ArtifactSnapshot

    planner = load_planner(file_path, properties_path)
    snapshot = planner.store.scan()
    if module_name is not None:
        snapshot = ArtifactSnapshot(snapshot.root, snapshot.query(module_name))

    console = get_console()
    if output_format == "json":
        write_json(snapshot_to_dict(snapshot), console)
    elif len(snapshot) == 0:
        info(f"No artifacts in {snapshot.root}")
    else:
        format_snapshot_table(snapshot, console)
