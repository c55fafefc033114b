"""Child exit watcher."""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from health_check.exceptions import ChildWaitError

from ._models import ChildExited, ErrorEvent, ExitStatus

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._channel import EventSender
    from ._protocol import ChildProcess


@final
class ChildWatcher:
    """Wait for the child to exit once and report its status."""

    __slots__ = ("_child", "_logger", "_sender")

    def __init__(
        self,
        child: ChildProcess,
        *,
        sender: EventSender,
        logger: FilteringBoundLogger,
    ) -> None:
        self._child = child
        self._sender = sender
        self._logger = logger

    def run(self) -> None:
        """Block until the child exits, then send ChildExited or ErrorEvent."""
        pid = self._child.pid
        try:
            returncode = self._child.wait()
        except Exception as e:  # noqa: BLE001
            msg = "Unable to wait for child process to exit"
            error = ChildWaitError(msg, pid=pid, cause=e)
            error.__cause__ = e
            _ = self._sender.send(ErrorEvent(error))
            return

        status = ExitStatus(returncode)
        self._logger.info("child_exited", pid=pid, status=str(status))
        _ = self._sender.send(ChildExited(status))
