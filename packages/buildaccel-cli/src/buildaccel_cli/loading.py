"""Workspace options and planner loading shared by every command."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from buildaccel_cli.errors import cli_errors, handle_file_not_found

if TYPE_CHECKING:
    from buildaccel_core import BuildPlanner

DEFAULT_WORKSPACE_FILE = "./workspace.yaml"

F = TypeVar("F", bound=Callable[..., Any])


def workspace_options(func: F) -> F:
    """Add --file and --properties to a command."""
    func = click.option(
        "-p",
        "--properties",
        "properties_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Path to accelerator.properties [default: next to workspace.yaml]",
    )(func)
    func = click.option(
        "-f",
        "--file",
        "file_path",
        type=click.Path(dir_okay=False),
        default=DEFAULT_WORKSPACE_FILE,
        help="Path to workspace.yaml [default: ./workspace.yaml]",
    )(func)
    return func


def load_planner(file_path: str, properties_path: str | None = None) -> BuildPlanner:
    """Load workspace.yaml and accelerator.properties into a planner.

    A missing workspace file exits with status 2, an invalid one with 1.
    Problems with accelerator.properties only disable the accelerator.
    """
    if not Path(file_path).exists():
        handle_file_not_found(file_path)

    # Deferred so that --help never imports the engine
    from buildaccel_core import BuildPlanner

    with cli_errors(file_path):
        return BuildPlanner.from_paths(
            Path(file_path),
            Path(properties_path) if properties_path is not None else None,
        )
