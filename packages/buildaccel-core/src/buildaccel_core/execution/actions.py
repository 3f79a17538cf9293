"""Step actions: what assemble and publish steps actually do."""

from __future__ import annotations

import shlex
import subprocess

import structlog

from buildaccel_core.errors import StepExecutionError
from buildaccel_core.execution.executor import StepOutcome
from buildaccel_core.graph.models import BuildStep, StepKind
from buildaccel_core.planner import BuildPlan
from buildaccel_core.publishing.publisher import Publisher, RepositoryKind
from buildaccel_core.schemas.module import capitalize_first
from buildaccel_core.store.artifact_store import ArtifactStore
from buildaccel_core.workspace.registry import Module

logger = structlog.get_logger(__name__)

# Lines of command output kept in error details
OUTPUT_TAIL_LINES = 20


def render_command(template: str, module: Module, variant: str) -> str:
    """Fill in an assemble command template.

    Placeholders: {path}, {name}, {dir}, {variant} and {Variant}.

    Example:
        >>> render_command("./gradlew {path}:assemble{Variant}", module, "debug")
        './gradlew :feature:home:assembleDebug'
    """
    return template.format(
        path=module.path,
        name=module.name,
        dir=module.directory,
        variant=variant,
        Variant=capitalize_first(variant),
    )


def _tail(text: str) -> str:
    return "\n".join(text.strip().splitlines()[-OUTPUT_TAIL_LINES:])


class StepActions:
    """Runs assemble and publish steps of one plan.

    Example:
        >>> actions = StepActions(plan)
        >>> StepExecutor().execute(plan, actions)
    """

    def __init__(self, plan: BuildPlan) -> None:
        self.plan = plan
        self.context = plan.context
        store = ArtifactStore(
            self.context.store_root,
            extensions=self.context.spec.store.extensions,
        )
        self.publisher = Publisher(self.context, None, store)
        self._publications = {(d.module, d.variant): d for d in plan.publications}
        self._log = logger.bind(component="step_actions")

    def __call__(self, step: BuildStep) -> StepOutcome:
        if step.kind == StepKind.PUBLISH:
            return self.publish(step)
        return self.assemble(step)

    def assemble(self, step: BuildStep) -> StepOutcome:
        """Run the module's assemble command for one variant.

        Raises:
            StepExecutionError: If the command template cannot be rendered or
                the command exits with a non-zero status.
        """
        module = self.context.registry.get(step.module)
        if module.assemble is None:
            self._log.info("assemble_command_missing", step=step.id)
            return StepOutcome.SKIPPED

        try:
            command = render_command(module.assemble, module, step.variant)
            args = shlex.split(command)
        except (KeyError, IndexError, ValueError) as e:
            raise StepExecutionError(
                step.id,
                f"assemble command template '{module.assemble}' is invalid",
                internal_details=repr(e),
            ) from e
        self._log.info("assemble_started", step=step.id, command=command)

        result = subprocess.run(
            args,
            cwd=self.context.root,
            check=False,
            capture_output=True,
            text=True,
        )

        if result.returncode != 0:
            raise StepExecutionError(
                step.id,
                f"command exited with status {result.returncode}",
                internal_details=_tail(result.stderr or result.stdout),
            )

        output = module.output_path(self.context.root, step.variant, self.context.artifact_extension)
        if not output.is_file():
            self._log.warning("assemble_output_missing", step=step.id, expected=str(output))
        return StepOutcome.SUCCESS

    def publish(self, step: BuildStep) -> StepOutcome:
        """Copy a variant's output to the step's destination."""
        descriptor = self._publications.get((step.module, step.variant))
        if descriptor is None or step.repository is None:
            self._log.warning("publication_unknown", step=step.id)
            return StepOutcome.SKIPPED

        written = self.publisher.publish(descriptor, RepositoryKind(step.repository))
        return StepOutcome.SUCCESS if written is not None else StepOutcome.SKIPPED
