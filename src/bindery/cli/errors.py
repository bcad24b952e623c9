"""CLI error handling for bindery.

Wraps bindery exceptions and settings validation errors in user-friendly
messages with appropriate exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click
from pydantic import ValidationError as PydanticValidationError

from bindery.cli.output import error

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

    from bindery.errors import BinderyError


EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Fatal resolution failure, invalid settings
EXIT_SYSTEM_ERROR = 2  # Missing or unreadable package.json


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format a Pydantic validation error into a user-friendly message.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - metadata_timeout_seconds: Input should be greater than 0"
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]

    for e in errors:
        loc = ".".join(str(x) for x in e["loc"])
        msg = e["msg"]
        lines.append(f"  - {loc}: {msg}")

    return "\n".join(lines)


def handle_validation_error(err: PydanticValidationError, source: str) -> NoReturn:
    """Handle settings validation errors.

    Args:
        err: Pydantic ValidationError instance.
        source: Where the invalid values came from (e.g. "environment").

    Raises:
        CLIError: Always raises with formatted error message.
    """
    formatted = format_pydantic_error(err)
    raise CLIError(f"Invalid settings in {source}:\n{formatted}")


def handle_bindery_error(err: BinderyError, exit_code: int = EXIT_USER_ERROR) -> NoReturn:
    """Report a fatal bindery error and exit.

    Only the user message is shown; internal details were already logged.

    Raises:
        CLIError: Always raises with the error's user message.
    """
    raise CLIError(err.user_message, exit_code=exit_code)

