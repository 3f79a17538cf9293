"""Build step timing instrumentation.

TimingsRecorder is handed to the executor, which calls on_step_start and
on_step_end around every step. It never affects what runs.
"""

from __future__ import annotations

import threading
import time

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)


class StepTiming(BaseModel):
    """Elapsed time of one finished step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_id: str = Field(..., description="Step identity")
    duration_ms: float = Field(..., ge=0, description="Wall-clock duration in milliseconds")
    outcome: str = Field(..., description="Step outcome")


class TimingReport(BaseModel):
    """Timings of every finished step, in completion order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entries: tuple[StepTiming, ...] = Field(default=(), description="Step timings")

    @property
    def total_ms(self) -> float:
        """Sum of all step durations."""
        return sum(entry.duration_ms for entry in self.entries)

    def lines(self) -> list[str]:
        """Flat text listing, one "<duration>ms  <step>  <outcome>" per step."""
        return [
            f"{entry.duration_ms:>10.1f}ms  {entry.step_id}  {entry.outcome}"
            for entry in self.entries
        ]


class TimingsRecorder:
    """Thread-safe per-step wall-clock recorder.

    Example:
        >>> recorder = TimingsRecorder()
        >>> recorder.on_step_start(":app:assembleDebug")
        >>> recorder.on_step_end(":app:assembleDebug", "success")
        >>> report = recorder.on_build_finished()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started: dict[str, float] = {}
        self._finished: list[StepTiming] = []

    def on_step_start(self, step_id: str) -> None:
        """Record the start of a step."""
        now = time.monotonic()
        with self._lock:
            self._started[step_id] = now

    def on_step_end(self, step_id: str, outcome: str) -> None:
        """Record the end of a step. Ends without a start are ignored."""
        now = time.monotonic()
        with self._lock:
            started = self._started.pop(step_id, None)
            if started is None:
                return
            self._finished.append(
                StepTiming(
                    step_id=step_id,
                    duration_ms=(now - started) * 1000,
                    outcome=outcome,
                )
            )

    def on_build_finished(self) -> TimingReport:
        """Produce and log the report of every finished step.

        Steps that started but never ended are left out.
        """
        with self._lock:
            report = TimingReport(entries=tuple(self._finished))
            unfinished = sorted(self._started)

        for line in report.lines():
            logger.info("step_timing", line=line)
        logger.info(
            "build_timings",
            steps=len(report.entries),
            total_ms=round(report.total_ms, 1),
            unfinished=unfinished,
        )
        return report
