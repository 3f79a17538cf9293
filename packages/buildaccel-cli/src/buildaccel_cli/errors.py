"""Exit codes and error reporting for the buildaccel command line.

Every failure a command can hit ends up as a CLIError:

- 1: the workspace or the build is wrong (invalid YAML, schema violations,
  unknown modules, failed steps)
- 2: the environment is wrong (missing files, permissions)

Commands wrap their work in ``cli_errors()`` instead of catching engine
exceptions one by one.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, NoReturn

import click
import yaml
from pydantic import ValidationError as PydanticValidationError

from buildaccel_cli.output import error

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2


class CLIError(click.ClickException):
    """A failure reported to the user, with the exit code to leave with."""

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Print through the Rich console instead of click's stderr echo."""
        error(self.format_message())


def _location(details: ErrorDetails) -> str:
    return ".".join(str(part) for part in details["loc"])


def format_pydantic_error(err: PydanticValidationError) -> str:
    """One line per validation problem, prefixed with its dotted location.

    Example:
        >>> print(format_pydantic_error(err))
        Validation failed:
          - modules.0.path: String should match pattern '^(:[a-zA-Z0-9_]...'
    """
    lines = ["Validation failed:"]
    for details in err.errors():
        where = _location(details)
        lines.append(f"  - {where}: {details['msg']}" if where else f"  - {details['msg']}")
    return "\n".join(lines)


def handle_yaml_error(err: yaml.YAMLError, file_path: str) -> NoReturn:
    """Raise a CLIError pointing at the line and column of a YAML error."""
    mark = getattr(err, "problem_mark", None)
    if mark is not None:
        reason = getattr(err, "problem", None) or "invalid syntax"
        detail = f"YAML syntax error at line {mark.line + 1}, column {mark.column + 1}: {reason}"
    else:
        detail = str(err)
    raise CLIError(f"Invalid YAML in {file_path}: {detail}")


def handle_validation_error(err: PydanticValidationError, file_path: str) -> NoReturn:
    """Raise a CLIError listing every schema violation in a file."""
    raise CLIError(f"Invalid configuration in {file_path}:\n{format_pydantic_error(err)}")


def handle_file_not_found(file_path: str) -> NoReturn:
    """Raise a system-level CLIError for a missing input file."""
    raise CLIError(
        f"File not found: {file_path}\n\nUse --file to point at your workspace.yaml.",
        exit_code=EXIT_SYSTEM_ERROR,
    )


@contextmanager
def cli_errors(file_path: str) -> Iterator[None]:
    """Translate engine and loading exceptions into CLIError.

    Args:
        file_path: The workspace file named in messages.

    Raises:
        CLIError: For any BuildAccelError, YAML, validation or OS error.
    """
    from buildaccel_core import BuildAccelError

    try:
        yield
    except yaml.YAMLError as e:
        handle_yaml_error(e, file_path)
    except PydanticValidationError as e:
        handle_validation_error(e, file_path)
    except BuildAccelError as e:
        raise CLIError(e.user_message) from None
    except FileNotFoundError as e:
        handle_file_not_found(e.filename or file_path)
    except PermissionError as e:
        raise CLIError(
            f"Permission denied: {e.filename or file_path}",
            exit_code=EXIT_SYSTEM_ERROR,
        ) from None
