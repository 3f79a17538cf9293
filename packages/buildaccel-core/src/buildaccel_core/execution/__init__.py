"""Execution phase: step executor, step actions and timing instrumentation."""

from __future__ import annotations

from buildaccel_core.execution.actions import StepActions, render_command
from buildaccel_core.execution.executor import (
    BuildResult,
    StepExecutor,
    StepOutcome,
    StepResult,
)
from buildaccel_core.execution.instrumentation import StepTiming, TimingReport, TimingsRecorder

__all__ = [
    "StepActions",
    "render_command",
    "BuildResult",
    "StepExecutor",
    "StepOutcome",
    "StepResult",
    "StepTiming",
    "TimingReport",
    "TimingsRecorder",
]
