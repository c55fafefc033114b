"""Data models for the supervisor system.

This module defines the core data types for a supervised run:
- StreamKind: Which child output stream a worker handles
- ExitStatus: Decoded child exit status
- ErrorEvent, DeadlockDetected, ChildExited: Worker events
- Outcome: Final classification of a run
- RunResult: What the supervisor reports once resolved
- SupervisorConfig: Settings for a single supervised run
"""

import signal
from dataclasses import dataclass, field
from enum import StrEnum


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    import pendulum  # noqa: PLC0415

    return pendulum.now("UTC").to_iso8601_string()


class StreamKind(StrEnum):
    """Child output streams captured by the supervisor."""

    STDOUT = "stdout"
    STDERR = "stderr"


class Outcome(StrEnum):
    """Terminal outcomes of a supervised run.

    - SUCCESS: The child exited in an expected way
    - FAILURE: An error, a suspected deadlock, or an unexpected exit
    """

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class ExitStatus:
    """Exit status of a child process.

    Built from a ``Popen.returncode``: non-negative values are exit codes,
    negative values mean the child was terminated by that signal.

    Attributes:
        returncode: Raw return code as reported by ``subprocess``.
    """

    returncode: int

    @property
    def code(self) -> int | None:
        """Return the exit code, or None if the child was killed by a signal."""
        return self.returncode if self.returncode >= 0 else None

    @property
    def signal(self) -> int | None:
        """Return the terminating signal number, if any."""
        return -self.returncode if self.returncode < 0 else None

    @property
    def success(self) -> bool:
        """Return True only for a zero exit code."""
        return self.returncode == 0

    def __str__(self) -> str:
        signum = self.signal
        if signum is None:
            return f"exit status: {self.returncode}"
        try:
            name = signal.Signals(signum).name
        except ValueError:
            return f"signal: {signum}"
        return f"signal: {signum} ({name})"


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """A worker failed; the cause becomes the run's failure cause.

    Attributes:
        cause: The exception describing the failure.
        timestamp: ISO 8601 formatted timestamp.
    """

    cause: BaseException
    timestamp: str = field(default_factory=_get_timestamp)


@dataclass(frozen=True, slots=True)
class DeadlockDetected:
    """The child produced no output within the configured window.

    Attributes:
        timeout: The output timeout in seconds that elapsed.
        timestamp: ISO 8601 formatted timestamp.
    """

    timeout: float
    timestamp: str = field(default_factory=_get_timestamp)


@dataclass(frozen=True, slots=True)
class ChildExited:
    """The child process exited.

    Attributes:
        status: The child's exit status.
        timestamp: ISO 8601 formatted timestamp.
    """

    status: ExitStatus
    timestamp: str = field(default_factory=_get_timestamp)


SupervisorEvent = ErrorEvent | DeadlockDetected | ChildExited


@dataclass(frozen=True, slots=True)
class RunResult:
    """Resolution of a supervised run.

    Attributes:
        outcome: Whether the run succeeded or failed.
        cause: The failure cause, None on success.
        status: The child's exit status, if the run resolved on its exit.
    """

    outcome: Outcome
    cause: BaseException | None = None
    status: ExitStatus | None = None

    @property
    def success(self) -> bool:
        """Return True if the run resolved as a success."""
        return self.outcome == Outcome.SUCCESS


@dataclass(frozen=True, slots=True)
class SupervisorConfig:
    """Configuration for a supervised run.

    Attributes:
        command: Command and arguments to execute.
        task_output_timeout: Seconds of silence before a deadlock is
            reported, or None to disable detection.
        can_exit: Whether a successful exit of the child on its own counts
            as success.
        output_lines: Number of recent output lines kept for notifications.
        drain_timeout: Seconds to wait for the capture threads to finish
            before the recent output is sent with a failure notification.
    """

    command: tuple[str, ...]
    task_output_timeout: float | None = None
    can_exit: bool = False
    output_lines: int = 50
    drain_timeout: float = 1.0
