"""Termination signal relay.

Python runs signal handlers on the main thread only, so the relay is split
in two: handlers installed from the main thread push the signal number onto
a queue, and the relay worker thread takes them off and forwards them to the
child. A failed forward is reported but never stops the relay.
"""

from __future__ import annotations

import os
import queue
import signal
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, final

from health_check.exceptions import (
    SignalDeliveryError,
    SignalSetupError,
    SignalTranslationError,
)

from ._models import ErrorEvent

if TYPE_CHECKING:
    from types import FrameType

    from structlog.typing import FilteringBoundLogger

    from ._channel import EventSender
    from ._shared import KilledFlag

RELAYED_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)

KillFunc = Callable[[int, int], None]


@final
class SignalRelay:
    """Forward termination signals received by the supervisor to the child.

    Attributes:
        pid: Process ID of the child receiving forwarded signals.
        signals: Signals the relay subscribes to.
    """

    __slots__ = (
        "_installed",
        "_kill",
        "_killed",
        "_logger",
        "_pending",
        "_sender",
        "pid",
        "signals",
    )

    def __init__(  # noqa: PLR0913
        self,
        pid: int,
        *,
        sender: EventSender,
        killed: KilledFlag,
        logger: FilteringBoundLogger,
        signals: Sequence[int] = RELAYED_SIGNALS,
        kill: KillFunc = os.kill,
    ) -> None:
        """Initialize the relay.

        Args:
            pid: Process ID of the child.
            sender: Event sender for translation and delivery failures.
            killed: Flag set before each forwarded signal.
            logger: Logger for diagnostics.
            signals: Signals to subscribe to.
            kill: Function delivering a signal to a process.
        """
        self.pid = pid
        self.signals = tuple(signals)
        self._sender = sender
        self._killed = killed
        self._logger = logger
        self._kill = kill
        self._pending: queue.SimpleQueue[int] = queue.SimpleQueue()
        self._installed: dict[int, Any] = {}

    def install(self) -> None:
        """Subscribe to the relayed signals.

        Must be called from the main thread.

        Raises:
            SignalSetupError: If a handler cannot be installed.
        """
        for signum in self.signals:
            try:
                previous = signal.signal(signum, self._on_signal)
            except (OSError, ValueError) as e:
                self.uninstall()
                msg = f"Unable to install handler for signal {signum}"
                raise SignalSetupError(msg, signum=signum, cause=e) from e
            self._installed[signum] = previous

    def uninstall(self) -> None:
        """Restore the handlers that were active before install()."""
        while self._installed:
            signum, previous = self._installed.popitem()
            try:
                _ = signal.signal(signum, previous)
            except (OSError, ValueError, TypeError):
                self._logger.warning("signal_restore_failed", signum=signum)

    def _on_signal(self, signum: int, _frame: FrameType | None) -> None:
        self._pending.put(signum)

    def post(self, signum: int) -> None:
        """Queue a signal number as though it had been delivered."""
        self._pending.put(signum)

    def relay(self, signum: int) -> None:
        """Mark the child as killed and forward one signal to it."""
        try:
            sig = signal.Signals(signum)
        except ValueError as e:
            msg = f"Unable to convert signal value: {signum}"
            error = SignalTranslationError(msg, signum=signum, cause=e)
            error.__cause__ = e
            _ = self._sender.send(ErrorEvent(error))
            return

        self._killed.set()
        try:
            self._kill(self.pid, sig)
        except OSError as e:
            msg = "Unable to send signal to child process"
            error = SignalDeliveryError(msg, signum=signum, pid=self.pid, cause=e)
            error.__cause__ = e
            _ = self._sender.send(ErrorEvent(error))
            return

        self._logger.info("signal_forwarded", signal=sig.name, pid=self.pid)

    def run(self) -> None:
        """Forward queued signals for as long as the process lives."""
        self._logger.debug(
            "signal_relay_started",
            signals=list(self.signals),
        )
        while True:
            self.relay(self._pending.get())
