"""Custom exception hierarchy for buildaccel-core.

This module defines the exception classes used throughout buildaccel:
- BuildAccelError: Base exception for all accelerator errors
- ConfigurationError: Raised when workspace.yaml cannot be loaded or validated
- ModuleNotFoundInWorkspaceError: Raised when a module path is unknown
- PlanFrozenError: Raised when a frozen build graph is mutated
- StepExecutionError: Raised by step actions when a build step fails

Most accelerator failures are not exceptions at all: they degrade to a plain
source build and are reported as log lines. These classes cover the few
cases where there is nothing sensible to fall back to.

User-facing messages are safe to display; technical details are logged
internally via structlog.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class BuildAccelError(Exception):
    """Base exception for buildaccel.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. This is
            logged internally but never shown to the user.

    Example:
        >>> raise BuildAccelError(
        ...     "Workspace invalid",
        ...     internal_details="modules[2].path: duplicate ':feature:home'",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize BuildAccelError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "buildaccel_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ConfigurationError(BuildAccelError):
    """Raised when a valid workspace still cannot be planned.

    Schema problems in workspace.yaml surface as pydantic ValidationError.
    This covers what the schema cannot see, such as steps that depend on
    each other in a cycle.

    Attributes:
        file_path: Configuration file, if known.
        field_path: Dotted location inside the file, if known.
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        where = [f"in {file_path}"] if file_path else []
        if field_path:
            where.append(f"field '{field_path}'")
        message = f"{user_message} ({', '.join(where)})" if where else user_message
        super().__init__(message, internal_details=internal_details)
        self.file_path = file_path
        self.field_path = field_path


class ModuleNotFoundInWorkspaceError(BuildAccelError):
    """Raised when a module path does not exist in the workspace.

    Always includes the known module paths for actionable feedback.

    Attributes:
        module_path: The requested module path.
        available_paths: Paths of every declared module.

    Example:
        >>> raise ModuleNotFoundInWorkspaceError(":feature:missing", [":app"])
        # User sees: "Module ':feature:missing' not found. Available: :app"
    """

    def __init__(
        self,
        module_path: str,
        available_paths: list[str],
        *,
        internal_details: str | None = None,
    ) -> None:
        available_str = ", ".join(available_paths) if available_paths else "none"
        user_message = f"Module '{module_path}' not found. Available: {available_str}"

        super().__init__(user_message, internal_details=internal_details)

        self.module_path = module_path
        self.available_paths = available_paths


class PlanFrozenError(BuildAccelError):
    """Raised when code tries to change a graph after the configuration phase.

    Example:
        >>> raise PlanFrozenError("add_edge")
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"Build graph is frozen; '{operation}' is not allowed")
        self.operation = operation


class StepExecutionError(BuildAccelError):
    """Raised by a step action when the build step cannot complete.

    Attributes:
        step_id: Identity of the failing step.
    """

    def __init__(
        self,
        step_id: str,
        reason: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(f"Step '{step_id}' failed: {reason}", internal_details=internal_details)
        self.step_id = step_id
        self.reason = reason
