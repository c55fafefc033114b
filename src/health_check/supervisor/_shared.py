"""Shared state cells passed to supervisor workers.

Each cell guards its own value with its own lock, held only for the
read or write itself. Cells are created by the supervisor for a single
run and handed to workers at construction time.
"""

import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from typing import final

DEFAULT_OUTPUT_LINES: int = 50


@final
class RecentOutputLog:
    """Bounded FIFO of the most recent output lines from both streams.

    Once the log holds ``capacity`` lines, appending a line evicts the
    oldest one.
    """

    __slots__ = ("_capacity", "_lines", "_lock")

    def __init__(self, capacity: int = DEFAULT_OUTPUT_LINES) -> None:
        """Initialize an empty log.

        Args:
            capacity: Maximum number of lines retained. Zero retains nothing.
        """
        if capacity < 0:
            msg = f"capacity must not be negative, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._lines: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        """Return the maximum number of retained lines."""
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def append(self, line: str) -> None:
        """Add a line, evicting the oldest if the log is full."""
        with self._lock:
            self._lines.append(line)

    def extend(self, lines: Iterable[str]) -> None:
        """Add several lines in order, evicting the oldest as needed."""
        with self._lock:
            self._lines.extend(lines)

    def snapshot(self) -> list[str]:
        """Return a copy of the retained lines, oldest first."""
        with self._lock:
            return list(self._lines)

    def render(self) -> str:
        """Join the retained lines, each followed by a newline."""
        return "".join(f"{line}\n" for line in self.snapshot())


@final
class LastOutputTimestamp:
    """Monotonic instant of the most recent child output.

    Written by both capture threads, read by the deadlock detector.
    The most recent write wins.
    """

    __slots__ = ("_clock", "_lock", "_value")

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the timestamp to the current instant.

        Args:
            clock: Monotonic clock returning seconds.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._value = clock()

    def get(self) -> float:
        """Return the instant of the latest recorded output."""
        with self._lock:
            return self._value

    def touch(self) -> float:
        """Record output at the current instant and return it."""
        now = self._clock()
        with self._lock:
            self._value = now
        return now


@final
class KilledFlag:
    """Write-once flag marking the child as killed by a relayed signal."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        """Mark the child as externally killed."""
        self._event.set()

    def is_set(self) -> bool:
        """Return True if a signal has been relayed to the child."""
        return self._event.is_set()
