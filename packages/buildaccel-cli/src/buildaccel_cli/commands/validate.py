"""buildaccel validate command - Validate workspace.yaml and accelerator.properties."""

from __future__ import annotations

import click

from buildaccel_cli.loading import load_planner, workspace_options
from buildaccel_cli.output import info, success, warning


@click.command()
@workspace_options
def validate(file_path: str, properties_path: str | None) -> None:
    """Validate workspace.yaml.

    Validates the workspace declaration against the WorkspaceSpec schema and
    reports how accelerator.properties classifies the modules. Problems in
    accelerator.properties are warnings: the accelerator is then disabled.

    Examples:

        buildaccel validate

        buildaccel validate --file path/to/workspace.yaml
    """
    planner = load_planner(file_path, properties_path)
    context = planner.context
    classification = context.classification

    buildable = context.registry.buildable()
    success(
        f"Workspace valid: {len(buildable)} modules, "
        f"{len(context.spec.publishing.modules)} module settings"
    )

    if not context.enabled:
        info("Accelerator disabled: every module is built from source")
        return

    info(f"Active: {', '.join(sorted(classification.active)) or '-'}")
    info(f"Stable: {', '.join(sorted(classification.stable)) or '-'}")
    for path in classification.unknown:
        warning(f"Workspace entry '{path}' does not name a module")
    for module in buildable:
        if classification.is_stable(module.path) and context.module_setting(module) is None:
            warning(f"Stable module {module.path} has no module setting and is built from source")
