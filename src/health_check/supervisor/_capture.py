"""Output capture worker for one child stream.

Each OutputCapture reads raw bytes from one of the child's pipes, mirrors
them unchanged to the supervisor's matching stream, and feeds a LineFramer
so completed lines land in the shared RecentOutputLog.
"""

from __future__ import annotations

import sys
from typing import IO, TYPE_CHECKING, final

from health_check.exceptions import StreamReadError, StreamWriteError

from ._framer import LineFramer
from ._models import ErrorEvent, StreamKind

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._channel import EventSender
    from ._shared import LastOutputTimestamp, RecentOutputLog

READ_SIZE: int = 4096
"""Maximum bytes taken from the child per read."""


def _default_mirror(stream: StreamKind) -> IO[bytes]:
    target = sys.stdout if stream == StreamKind.STDOUT else sys.stderr
    return target.buffer


@final
class OutputCapture:
    """Capture, mirror, and frame the output of one child stream.

    Attributes:
        stream: Which child stream this worker handles.
    """

    __slots__ = (
        "_framer",
        "_last_output",
        "_logger",
        "_mirror",
        "_reader",
        "_recent_output",
        "_sender",
        "stream",
    )

    def __init__(  # noqa: PLR0913
        self,
        reader: IO[bytes],
        stream: StreamKind,
        *,
        sender: EventSender,
        last_output: LastOutputTimestamp,
        recent_output: RecentOutputLog,
        logger: FilteringBoundLogger,
        mirror: IO[bytes] | None = None,
    ) -> None:
        """Initialize the capture worker.

        Args:
            reader: The child's pipe for this stream.
            stream: Which stream the pipe carries.
            sender: Event sender for failures.
            last_output: Timestamp refreshed on every non-empty read.
            recent_output: Log receiving completed lines.
            logger: Logger for diagnostics.
            mirror: Where raw bytes are copied to. Defaults to the
                supervisor's own stdout or stderr, resolved when run starts.
        """
        self.stream = stream
        self._reader = reader
        self._sender = sender
        self._last_output = last_output
        self._recent_output = recent_output
        self._logger = logger.bind(stream=str(stream))
        self._mirror = mirror
        self._framer = LineFramer()

    def _read(self) -> bytes:
        read1 = getattr(self._reader, "read1", None)
        if read1 is not None:
            return read1(READ_SIZE)
        return self._reader.read(READ_SIZE)

    def run(self) -> None:
        """Pump the stream until end-of-file or the first failure."""
        mirror = self._mirror or _default_mirror(self.stream)
        self._logger.debug("capture_started")

        try:
            while True:
                try:
                    chunk = self._read()
                except (OSError, ValueError) as e:
                    msg = f"Unable to read from child {self.stream}"
                    error = StreamReadError(msg, stream=self.stream, cause=e)
                    error.__cause__ = e
                    _ = self._sender.send(ErrorEvent(error))
                    return

                if not chunk:
                    self._logger.debug("capture_finished")
                    return

                _ = self._last_output.touch()

                try:
                    _ = mirror.write(chunk)
                    mirror.flush()
                except (OSError, ValueError) as e:
                    msg = f"Unable to write to {self.stream}"
                    error = StreamWriteError(msg, stream=self.stream, cause=e)
                    error.__cause__ = e
                    _ = self._sender.send(ErrorEvent(error))
                    return

                self._recent_output.extend(self._framer.append(chunk))
        finally:
            remainder = self._framer.finish()
            if remainder is not None:
                self._recent_output.append(remainder)
