"""Output-liveness watchdog.

The DeadlockDetector does not find real deadlocks. It only notices that
the child has been silent on both streams for longer than the configured
timeout, which cannot be told apart from a child quietly doing work.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, final

from health_check.exceptions import DeadlineOverflowError

from ._models import DeadlockDetected, ErrorEvent

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._channel import EventSender
    from ._shared import LastOutputTimestamp

# Longest single sleep; time.sleep rejects durations far below float range.
MAX_SLEEP_SLICE = 3600.0


@final
class DeadlockDetector:
    """Report a suspected deadlock when output stops for too long."""

    __slots__ = ("_clock", "_last_output", "_logger", "_sender", "_sleep", "timeout")

    def __init__(  # noqa: PLR0913
        self,
        timeout: float,
        *,
        sender: EventSender,
        last_output: LastOutputTimestamp,
        logger: FilteringBoundLogger,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the detector.

        Args:
            timeout: Seconds of silence tolerated before reporting.
            sender: Event sender for the detection or a failure.
            last_output: Timestamp of the latest child output.
            logger: Logger for diagnostics.
            clock: Monotonic clock; must match the timestamp's clock.
            sleep: Blocking sleep function.
        """
        if not timeout > 0:
            msg = f"timeout must be positive, got {timeout}"
            raise ValueError(msg)
        self.timeout = timeout
        self._sender = sender
        self._last_output = last_output
        self._logger = logger
        self._clock = clock
        self._sleep = sleep

    def next_deadline(self, last: float) -> float:
        """Compute the instant at which silence since ``last`` is too long.

        Raises:
            DeadlineOverflowError: If the deadline cannot be represented.
        """
        try:
            deadline = last + self.timeout
        except OverflowError as e:
            msg = "Deadlock detection: overflowed deadline"
            raise DeadlineOverflowError(msg) from e
        if not math.isfinite(deadline):
            msg = "Deadlock detection: overflowed deadline"
            raise DeadlineOverflowError(msg)
        return deadline

    def run(self) -> None:
        """Sleep until the output deadline, re-arming whenever output arrived."""
        self._logger.debug("deadlock_detector_started", timeout=self.timeout)

        while True:
            try:
                deadline = self.next_deadline(self._last_output.get())
            except DeadlineOverflowError as e:
                _ = self._sender.send(ErrorEvent(e))
                return

            remaining = deadline - self._clock()
            if remaining > 0:
                try:
                    self._sleep(min(remaining, MAX_SLEEP_SLICE))
                except (OverflowError, ValueError) as e:
                    msg = "Deadlock detection: overflowed deadline"
                    error = DeadlineOverflowError(msg)
                    error.__cause__ = e
                    _ = self._sender.send(ErrorEvent(error))
                    return
                continue

            self._logger.warning("deadlock_detected", timeout=self.timeout)
            _ = self._sender.send(DeadlockDetected(self.timeout))
            return
