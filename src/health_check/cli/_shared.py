"""Exit codes and operator-facing error reporting for the CLI."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Process exit codes of ``health-check``.

    FAILURE covers every failed run (deadlock, unexpected exit, stream or
    signal errors). CONFIG_ERROR means the run never started because the
    options did not validate.
    """

    SUCCESS = 0
    FAILURE = 1
    CONFIG_ERROR = 2


def get_error_console() -> Console:
    """Return a rich console bound to stderr, leaving stdout to the child."""
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.FAILURE,
    *,
    console: Console | None = None,
) -> Never:
    """Report ``message`` as an error line and terminate with ``code``.

    The message is markup-escaped so child output or file paths containing
    square brackets print literally. A stderr console is created when none
    is passed in.
    """
    from rich.markup import escape

    target = console if console is not None else get_error_console()
    target.print(f"[red]Error:[/red] {escape(message)}")
    raise SystemExit(code)
