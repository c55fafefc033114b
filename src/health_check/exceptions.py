"""health-check exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from health_check.supervisor._models import ExitStatus, StreamKind


class HealthCheckError(Exception):
    """Base exception for health-check errors."""


class ConfigError(HealthCheckError):
    """Raised when the supervisor settings are invalid."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        """Initialize with error message and the offending setting."""
        super().__init__(message)
        self.key: str | None = key


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(HealthCheckError):
    """Base exception for failures that resolve a supervised run."""


class SpawnError(SupervisorError):
    """Raised when the child process cannot be started.

    Attributes:
        command: The command that failed to start.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...] = (),
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and command context.

        Args:
            message: Human-readable error message.
            command: The command that failed to start.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.command: tuple[str, ...] = command
        self.cause: Exception | None = cause


class StreamError(SupervisorError):
    """Base exception for child output stream failures.

    Attributes:
        stream: The stream being read or mirrored.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        stream: StreamKind,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and stream context.

        Args:
            message: Human-readable error message.
            stream: The stream being read or mirrored.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.stream: StreamKind = stream
        self.cause: Exception | None = cause


class StreamReadError(StreamError):
    """Raised when reading from a child output stream fails."""


class StreamWriteError(StreamError):
    """Raised when mirroring child output to our own stream fails."""


class DeadlineOverflowError(SupervisorError):
    """Raised when the output deadline cannot be represented."""


class DeadlockDetectedError(SupervisorError):
    """Raised when the child has produced no output for too long.

    Attributes:
        timeout: The configured output timeout in seconds.
    """

    def __init__(self, message: str, *, timeout: float | None = None) -> None:
        """Initialize with error message and the timeout that elapsed."""
        super().__init__(message)
        self.timeout: float | None = timeout


class SignalError(SupervisorError):
    """Base exception for signal relay failures.

    Attributes:
        signum: The raw signal number involved.
        pid: The child process ID, when known.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        signum: int | None = None,
        pid: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and signal context.

        Args:
            message: Human-readable error message.
            signum: The raw signal number involved.
            pid: The child process ID, when known.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.signum: int | None = signum
        self.pid: int | None = pid
        self.cause: Exception | None = cause


class SignalSetupError(SignalError):
    """Raised when signal handlers cannot be installed."""


class SignalTranslationError(SignalError):
    """Raised when a received signal number is not a known signal."""


class SignalDeliveryError(SignalError):
    """Raised when a signal cannot be forwarded to the child."""


class ChildWaitError(SupervisorError):
    """Raised when waiting for the child process to exit fails.

    Attributes:
        pid: The child process ID.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        pid: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context."""
        super().__init__(message)
        self.pid: int | None = pid
        self.cause: Exception | None = cause


class UnexpectedExitError(SupervisorError):
    """Raised when the child exits without being asked to.

    Attributes:
        status: The exit status of the child.
    """

    def __init__(self, message: str, *, status: ExitStatus) -> None:
        """Initialize with error message and exit status."""
        super().__init__(message)
        self.status: ExitStatus = status


# =============================================================================
# Notification Exceptions
# =============================================================================


class NotifyError(HealthCheckError):
    """Raised when a failure notification cannot be delivered.

    Attributes:
        status_code: HTTP status code of the rejected request, if any.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and delivery context."""
        super().__init__(message)
        self.status_code: int | None = status_code
        self.cause: Exception | None = cause
