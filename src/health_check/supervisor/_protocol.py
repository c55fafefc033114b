"""Protocol definitions for the supervisor system.

This module defines the interfaces that decouple the supervision engine
from its collaborators:
- Notifier: Delivers a failure summary to an operator
- ChildProcess: The process handle the workers operate on
"""

from typing import IO, Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """Protocol for failure notification delivery.

    Called at most once per run, after the run has resolved as a failure.
    Implementations raise on delivery failure; the supervisor logs the
    error and otherwise ignores it.
    """

    def notify(self, cause: BaseException, recent_output: str) -> None:
        """Deliver a failure notification.

        Args:
            cause: The exception that resolved the run as a failure.
            recent_output: Recent child output, one line per newline.

        Raises:
            NotifyError: If the notification could not be delivered.
        """
        ...


@runtime_checkable
class ChildProcess(Protocol):
    """Protocol for the supervised child process handle.

    ``subprocess.Popen`` with piped stdout and stderr satisfies it.
    """

    @property
    def pid(self) -> int:
        """Return the process ID."""
        ...

    @property
    def stdout(self) -> IO[bytes] | None:
        """Return the readable stdout pipe."""
        ...

    @property
    def stderr(self) -> IO[bytes] | None:
        """Return the readable stderr pipe."""
        ...

    def wait(self, timeout: float | None = None) -> int:
        """Block until the process exits and return its return code."""
        ...
