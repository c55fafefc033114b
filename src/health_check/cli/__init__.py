"""Utilities used by the health-check CLI."""

from ._app import create_app, main
from ._shared import ExitCode, exit_with_error

__all__ = ["ExitCode", "create_app", "exit_with_error", "main"]
