"""The ``buildaccel`` command group.

Subcommands live in ``buildaccel_cli.commands`` and are imported only when
invoked, so ``buildaccel --help`` never loads the engine.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from buildaccel_cli import __version__
from buildaccel_cli.output import set_no_color

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True

# Command name -> "module:attribute"
LAZY_COMMANDS = {
    "validate": "buildaccel_cli.commands.validate:validate",
    "plan": "buildaccel_cli.commands.plan:plan",
    "artifacts": "buildaccel_cli.commands.artifacts:artifacts",
    "build": "buildaccel_cli.commands.build:build",
    "publish": "buildaccel_cli.commands.publish:publish",
}


class LazyGroup(rclick.RichGroup):
    """Rich-click group resolving subcommands from import strings on demand."""

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = dict(lazy_subcommands or {})

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted({*super().list_commands(ctx), *self.lazy_subcommands})

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        command = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if command is not None or cmd_name not in self.lazy_subcommands:
            return command
        return self._load(cmd_name)

    def _load(self, cmd_name: str) -> click.Command:
        module_name, _, attribute = self.lazy_subcommands[cmd_name].partition(":")
        command = getattr(importlib.import_module(module_name), attribute)
        if not isinstance(command, click.Command):
            raise TypeError(f"{self.lazy_subcommands[cmd_name]} is not a click command")
        return command


def _no_color_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if value:
        set_no_color(True)


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="buildaccel")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    is_eager=True,
    expose_value=False,
    callback=_no_color_callback,
    help="Disable colored output.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Show debug log lines for every accelerator decision.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Emit log lines as JSON.",
)
def cli(verbose: bool, log_json: bool) -> None:
    """Build Accelerator - consume prebuilt artifacts for stable modules.

    Modules listed in `accelerator.properties` are built from source; every
    other module is replaced by its published artifact when one exists.

    **Getting Started:**

    - `buildaccel validate` - Validate workspace.yaml
    - `buildaccel plan` - Show what will be built from source
    - `buildaccel artifacts` - List artifacts in the local store
    - `buildaccel build` - Build the active modules
    - `buildaccel publish` - Publish stable modules to the store
    """
    from buildaccel_core.observability import configure_logging

    configure_logging(log_level="DEBUG" if verbose else "WARNING", json_format=log_json)


if __name__ == "__main__":
    cli()
