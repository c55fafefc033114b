"""Supervisor coordinating the workers of a single supervised run.

This module provides the Supervisor class that spawns the child, starts
one thread per responsibility, and arbitrates the outcome of the run from
the first event any worker sends.
"""

from __future__ import annotations

import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, assert_never, final

from health_check.exceptions import (
    DeadlockDetectedError,
    SignalSetupError,
    SpawnError,
    UnexpectedExitError,
)
from health_check.utils import create_logger

from ._capture import OutputCapture
from ._channel import EventChannel
from ._deadlock import DeadlockDetector
from ._models import (
    ChildExited,
    DeadlockDetected,
    ErrorEvent,
    Outcome,
    RunResult,
    StreamKind,
)
from ._shared import KilledFlag, LastOutputTimestamp, RecentOutputLog
from ._signals import SignalRelay
from ._watcher import ChildWatcher

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import SupervisorConfig, SupervisorEvent
    from ._protocol import ChildProcess, Notifier

SpawnFunc = Callable[[Sequence[str]], "ChildProcess"]


def spawn_child(command: Sequence[str]) -> ChildProcess:
    """Start the child with both output streams piped to us.

    Raises:
        SpawnError: If the process cannot be started.
    """
    try:
        return subprocess.Popen(  # noqa: S603
            list(command),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        msg = f"Failed to spawn {command[0] if command else '<empty command>'}"
        raise SpawnError(msg, command=tuple(command), cause=e) from e


def classify(
    event: SupervisorEvent,
    *,
    externally_killed: bool,
    can_exit: bool,
) -> RunResult:
    """Decide the outcome of a run from the event that resolved it.

    Args:
        event: The first event received from any worker.
        externally_killed: Whether a signal was relayed to the child.
        can_exit: Whether the child may exit successfully on its own.

    Returns:
        The classified run result.
    """
    match event:
        case ErrorEvent(cause=cause):
            return RunResult(Outcome.FAILURE, cause=cause)
        case DeadlockDetected(timeout=timeout):
            msg = (
                "Potential deadlock detected, "
                "too long without output from child process"
            )
            return RunResult(
                Outcome.FAILURE, cause=DeadlockDetectedError(msg, timeout=timeout)
            )
        case ChildExited(status=status):
            if externally_killed or (can_exit and status.success):
                return RunResult(Outcome.SUCCESS, status=status)
            msg = f"Child exited with status {status}"
            return RunResult(
                Outcome.FAILURE,
                cause=UnexpectedExitError(msg, status=status),
                status=status,
            )
        case _:
            assert_never(event)


@final
class Supervisor:
    """Runs one child process and decides whether the run succeeded.

    Workers run on daemon threads and report through a shared EventChannel.
    The first event resolves the run; later events are dropped. Workers are
    never cancelled, they end on their own or with the process.

    Attributes:
        config: Immutable configuration for this run.
    """

    __slots__ = (
        "_clock",
        "_logger",
        "_notifier",
        "_recent_output",
        "_spawn",
        "_threads",
        "config",
    )

    def __init__(
        self,
        config: SupervisorConfig,
        notifier: Notifier | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
        spawn: SpawnFunc = spawn_child,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the supervisor.

        Args:
            config: Configuration for the run.
            notifier: Receives the failure summary. No notification is sent
                if None.
            logger: Logger for diagnostics. Logs to stderr if None.
            spawn: Function starting the child process.
            clock: Monotonic clock used for output timestamps.
        """
        self.config = config
        self._notifier = notifier
        self._logger = logger or create_logger()
        self._spawn = spawn
        self._clock = clock
        self._recent_output = RecentOutputLog(config.output_lines)
        self._threads: dict[str, threading.Thread] = {}

    @property
    def recent_output(self) -> RecentOutputLog:
        """Return the recent output log of the latest run."""
        return self._recent_output

    @property
    def threads(self) -> dict[str, threading.Thread]:
        """Return the worker threads started by the latest run, by name."""
        return self._threads

    def _start(self, name: str, target: Callable[[], None]) -> None:
        thread = threading.Thread(
            target=target, name=f"health-check-{name}", daemon=True
        )
        self._threads[name] = thread
        thread.start()

    def _start_workers(
        self,
        child: ChildProcess,
        channel: EventChannel,
        killed: KilledFlag,
    ) -> SignalRelay:
        last_output = LastOutputTimestamp(self._clock)

        for stream, reader in (
            (StreamKind.STDOUT, child.stdout),
            (StreamKind.STDERR, child.stderr),
        ):
            if reader is None:
                continue
            capture = OutputCapture(
                reader,
                stream,
                sender=channel.sender(str(stream)),
                last_output=last_output,
                recent_output=self._recent_output,
                logger=self._logger,
            )
            self._start(str(stream), capture.run)

        if self.config.task_output_timeout is not None:
            detector = DeadlockDetector(
                self.config.task_output_timeout,
                sender=channel.sender("deadlock"),
                last_output=last_output,
                logger=self._logger,
                clock=self._clock,
            )
            self._start("deadlock", detector.run)

        relay = SignalRelay(
            child.pid,
            sender=channel.sender("signals"),
            killed=killed,
            logger=self._logger,
        )
        try:
            relay.install()
        except SignalSetupError as e:
            _ = channel.sender("signals").send(ErrorEvent(e))
        else:
            self._start("signals", relay.run)

        watcher = ChildWatcher(
            child,
            sender=channel.sender("watcher"),
            logger=self._logger,
        )
        self._start("watcher", watcher.run)
        return relay

    def _drain_output(self) -> None:
        deadline = time.monotonic() + self.config.drain_timeout
        for stream in (StreamKind.STDOUT, StreamKind.STDERR):
            thread = self._threads.get(str(stream))
            if thread is not None:
                thread.join(max(0.0, deadline - time.monotonic()))

    def _notify(self, cause: BaseException) -> None:
        if self._notifier is None:
            return
        self._drain_output()
        try:
            self._notifier.notify(cause, self._recent_output.render())
        except Exception as e:  # noqa: BLE001
            # Notification failure never changes the outcome of the run
            self._logger.error(
                "notification_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    def run(self) -> RunResult:
        """Run the child until the first worker event and classify it.

        Returns:
            The result of the run. Failures have already been notified.
        """
        # Each run gets its own output log and workers.
        self._recent_output = RecentOutputLog(self.config.output_lines)
        self._threads = {}
        channel = EventChannel(self._logger)
        killed = KilledFlag()
        relay: SignalRelay | None = None

        try:
            try:
                child = self._spawn(self.config.command)
            except SpawnError as e:
                event: SupervisorEvent = ErrorEvent(e)
            else:
                self._logger.info(
                    "child_spawned", pid=child.pid, command=list(self.config.command)
                )
                relay = self._start_workers(child, channel, killed)
                event = channel.receive()
            channel.close()

            result = classify(
                event,
                externally_killed=killed.is_set(),
                can_exit=self.config.can_exit,
            )
            self._logger.info(
                "run_resolved",
                outcome=str(result.outcome),
                cause=str(result.cause) if result.cause is not None else None,
                event_type=type(event).__name__,
            )

            if result.outcome == Outcome.FAILURE and result.cause is not None:
                self._notify(result.cause)

            return result
        finally:
            if relay is not None:
                relay.uninstall()
