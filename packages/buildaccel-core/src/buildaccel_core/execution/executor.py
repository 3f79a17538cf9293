"""Step executor for frozen build plans.

Runs the requested steps of a BuildPlan on a thread pool. A step is
submitted once every dependency it has inside the requested closure has
finished successfully or was skipped. A failed or aborted dependency
aborts its dependents without running them.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

from buildaccel_core.errors import BuildAccelError
from buildaccel_core.execution.instrumentation import TimingReport, TimingsRecorder
from buildaccel_core.graph.models import BuildStep
from buildaccel_core.planner import BuildPlan

logger = structlog.get_logger(__name__)

DEFAULT_MAX_WORKERS = 4


class StepOutcome(str, Enum):
    """Outcome of one build step.

    Attributes:
        SUCCESS: The step ran and completed.
        SKIPPED: Nothing to do (disabled step, no command, missing output).
        FAILED: The step ran and failed.
        ABORTED: Not run because a dependency failed.
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    ABORTED = "aborted"


# Outcomes that let dependents run
PASSING_OUTCOMES = frozenset({StepOutcome.SUCCESS, StepOutcome.SKIPPED})

StepAction = Callable[[BuildStep], StepOutcome]


class StepResult(BaseModel):
    """Result of one step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_id: str = Field(..., description="Step identity")
    outcome: StepOutcome = Field(..., description="Step outcome")
    duration_ms: float = Field(default=0.0, ge=0, description="Duration in milliseconds")
    message: str | None = Field(default=None, description="Failure or skip reason")


class BuildResult(BaseModel):
    """Results of every requested step, in completion order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    results: tuple[StepResult, ...] = Field(default=(), description="Step results")
    timings: TimingReport = Field(default_factory=TimingReport, description="Timing report")

    @property
    def succeeded(self) -> bool:
        """True when no step failed or was aborted."""
        return all(r.outcome in PASSING_OUTCOMES for r in self.results)

    def by_outcome(self, outcome: StepOutcome) -> list[StepResult]:
        """Results with the given outcome."""
        return [r for r in self.results if r.outcome == outcome]

    def outcome_of(self, step_id: str) -> StepOutcome | None:
        """Outcome of one step, or None if it was not requested."""
        for result in self.results:
            if result.step_id == step_id:
                return result.outcome
        return None


class StepExecutor:
    """Executes a BuildPlan with dependency-determined parallelism.

    Args:
        max_workers: Thread pool size.
        recorder: Timing recorder wrapped around every step.

    Example:
        >>> executor = StepExecutor(max_workers=4)
        >>> result = executor.execute(plan, StepActions(plan))
        >>> result.succeeded
        True
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        recorder: TimingsRecorder | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.recorder = recorder or TimingsRecorder()
        self._lock = threading.Lock()
        self._log = logger.bind(component="step_executor")

    def execute(self, plan: BuildPlan, action: StepAction) -> BuildResult:
        """Run the requested steps of a plan.

        Args:
            plan: Frozen build plan.
            action: Callable that runs one step. It raises BuildAccelError
                or OSError when the step fails.

        Returns:
            BuildResult with every requested step.
        """
        requested = set(plan.requested)
        pending = list(plan.requested)
        outcomes: dict[str, StepOutcome] = {}
        results: list[StepResult] = []
        running: dict[Future[StepResult], str] = {}

        def finish(result: StepResult) -> None:
            with self._lock:
                outcomes[result.step_id] = result.outcome
                results.append(result)

        self._log.info("build_started", steps=len(pending), max_workers=self.max_workers)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            while pending or running:
                # pending is in dependency order, so one pass settles chains
                for step_id in list(pending):
                    step = plan.graph.step(step_id)
                    deps = step.depends_on & requested
                    if any(outcomes.get(d) not in (None, *PASSING_OUTCOMES) for d in deps):
                        pending.remove(step_id)
                        self._log.warning("step_aborted", step=step_id)
                        finish(
                            StepResult(
                                step_id=step_id,
                                outcome=StepOutcome.ABORTED,
                                message="a dependency did not complete",
                            )
                        )
                        continue
                    if not all(d in outcomes for d in deps):
                        continue

                    pending.remove(step_id)
                    if not step.enabled:
                        self._log.debug("step_disabled", step=step_id)
                        finish(
                            StepResult(
                                step_id=step_id,
                                outcome=StepOutcome.SKIPPED,
                                message="step disabled",
                            )
                        )
                        continue
                    running[pool.submit(self._run_step, step, action)] = step_id

                if not running:
                    if pending:
                        self._log.error("steps_unschedulable", steps=pending)
                        for step_id in pending:
                            finish(
                                StepResult(
                                    step_id=step_id,
                                    outcome=StepOutcome.ABORTED,
                                    message="dependencies never completed",
                                )
                            )
                        pending.clear()
                    break

                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    running.pop(future)
                    finish(future.result())

        result = BuildResult(results=tuple(results), timings=self.recorder.on_build_finished())
        self._log.info(
            "build_finished",
            succeeded=result.succeeded,
            success=len(result.by_outcome(StepOutcome.SUCCESS)),
            skipped=len(result.by_outcome(StepOutcome.SKIPPED)),
            failed=len(result.by_outcome(StepOutcome.FAILED)),
            aborted=len(result.by_outcome(StepOutcome.ABORTED)),
        )
        return result

    def _run_step(self, step: BuildStep, action: StepAction) -> StepResult:
        self.recorder.on_step_start(step.id)
        started = time.monotonic()
        message: str | None = None

        try:
            outcome = action(step)
        except (BuildAccelError, OSError) as e:
            outcome = StepOutcome.FAILED
            message = getattr(e, "user_message", None) or str(e)
            self._log.error("step_failed", step=step.id, error=message)

        duration_ms = (time.monotonic() - started) * 1000
        self.recorder.on_step_end(step.id, outcome.value)
        self._log.debug("step_finished", step=step.id, outcome=outcome.value)
        return StepResult(
            step_id=step.id,
            outcome=outcome,
            duration_ms=duration_ms,
            message=message,
        )
