"""Multi-producer event channel between workers and the supervisor.

Workers each hold an EventSender; the supervisor owns the single
EventChannel receiver. Once the supervisor has taken its event it closes
the channel, and any later send is dropped with a debug log entry.
"""

from __future__ import annotations

import queue
import threading
from typing import TYPE_CHECKING, final

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import SupervisorEvent


@final
class EventChannel:
    """Receiving end of the worker event funnel."""

    __slots__ = ("_closed", "_lock", "_logger", "_queue")

    def __init__(self, logger: FilteringBoundLogger) -> None:
        """Initialize an open, empty channel.

        Args:
            logger: Logger for sends that arrive after close.
        """
        self._queue: queue.SimpleQueue[SupervisorEvent] = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._closed = False
        self._logger = logger

    @property
    def closed(self) -> bool:
        """Return True once the receiver has stopped listening."""
        with self._lock:
            return self._closed

    def sender(self, name: str) -> EventSender:
        """Create a sender handle for one worker.

        Args:
            name: Worker name, used in log entries.
        """
        return EventSender(self, name)

    def put(self, event: SupervisorEvent, *, sender: str = "") -> bool:
        """Enqueue an event unless the channel is closed.

        Returns:
            True if the event was enqueued, False if it was dropped.
        """
        with self._lock:
            if not self._closed:
                self._queue.put(event)
                return True
        self._logger.debug(
            "event_dropped",
            sender=sender,
            event_type=type(event).__name__,
            reason="supervisor already resolved",
        )
        return False

    def receive(self, timeout: float | None = None) -> SupervisorEvent:
        """Block until an event arrives.

        Args:
            timeout: Seconds to wait, or None to wait forever.

        Raises:
            queue.Empty: If the timeout elapsed with no event.
        """
        return self._queue.get(timeout=timeout)

    def close(self) -> None:
        """Stop accepting events and discard anything still queued."""
        with self._lock:
            self._closed = True
        while True:
            try:
                _ = self._queue.get_nowait()
            except queue.Empty:
                break


@final
class EventSender:
    """Sending handle given to a single worker."""

    __slots__ = ("_channel", "name")

    def __init__(self, channel: EventChannel, name: str) -> None:
        self._channel = channel
        self.name = name

    def send(self, event: SupervisorEvent) -> bool:
        """Send an event to the supervisor.

        Never raises: an event sent after the supervisor resolved is
        logged and dropped.

        Returns:
            True if the event was enqueued.
        """
        return self._channel.put(event, sender=self.name)
