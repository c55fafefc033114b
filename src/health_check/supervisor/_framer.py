"""Line framing for raw child output.

Turns an arbitrary sequence of byte chunks into decoded lines using a
fixed-capacity buffer, so a child that never writes a newline cannot make
the supervisor grow without bound.
"""

from typing import final

BUFFER_SIZE: int = 8192
"""Capacity of the line buffer in bytes."""


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode("utf-8", errors="replace")


@final
class LineFramer:
    """Split a byte stream into lines with bounded memory.

    Lines end at ``\\n``; a ``\\r`` directly before the newline is dropped.
    Invalid UTF-8 is replaced rather than rejected.

    When a chunk would overflow the buffer, whatever partial line is held
    is emitted as a line of its own before the chunk is taken in.
    """

    __slots__ = ("_buffer", "_capacity", "_finished")

    def __init__(self, capacity: int = BUFFER_SIZE) -> None:
        """Initialize an empty framer.

        Args:
            capacity: Buffer capacity in bytes.
        """
        if capacity <= 0:
            msg = f"capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._buffer = bytearray()
        self._finished = False

    @property
    def pending(self) -> int:
        """Return the number of buffered bytes not yet emitted as a line."""
        return len(self._buffer)

    def append(self, data: bytes) -> list[str]:
        """Ingest a chunk and return the lines it completes.

        Args:
            data: Raw bytes read from the child.

        Returns:
            Completed lines in order, without line terminators.

        Raises:
            RuntimeError: If the framer has already been finished.
        """
        if self._finished:
            msg = "LineFramer.append() called after finish()"
            raise RuntimeError(msg)

        if not data:
            return []

        lines: list[str] = []

        if len(data) + len(self._buffer) > self._capacity:
            lines.append(_decode(self._buffer))
            self._buffer.clear()

        self._buffer += data

        start = 0
        while (idx := self._buffer.find(b"\n", start)) != -1:
            end = idx - 1 if idx > start and self._buffer[idx - 1] == 0x0D else idx
            lines.append(_decode(self._buffer[start:end]))
            start = idx + 1

        if start:
            del self._buffer[:start]

        return lines

    def finish(self) -> str | None:
        """Consume the framer and return any unterminated remainder.

        Returns:
            The remaining partial line, or None if nothing is buffered.

        Raises:
            RuntimeError: If the framer has already been finished.
        """
        if self._finished:
            msg = "LineFramer.finish() called twice"
            raise RuntimeError(msg)
        self._finished = True

        if not self._buffer:
            return None
        line = _decode(self._buffer)
        self._buffer.clear()
        return line
