"""Shared test fixtures for health-check tests."""

from __future__ import annotations

import io
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


@pytest.fixture
def logger() -> FilteringBoundLogger:
    """Return a debug-level text logger writing to stderr."""
    import logging

    from health_check.utils._logging import _create_logger

    return _create_logger(log_level=logging.DEBUG)


@dataclass
class RecordingNotifier:
    """Notifier that records every call instead of delivering it."""

    calls: list[tuple[BaseException, str]] = field(default_factory=list)
    error: Exception | None = None
    called: threading.Event = field(default_factory=threading.Event)

    def notify(self, cause: BaseException, recent_output: str) -> None:
        self.calls.append((cause, recent_output))
        self.called.set()
        if self.error is not None:
            raise self.error


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@dataclass
class FakeChild:
    """In-memory stand-in for a spawned child process.

    ``wait()`` blocks until ``exit()`` is called.
    """

    pid: int = 4242
    stdout: io.BytesIO | None = field(default_factory=io.BytesIO)
    stderr: io.BytesIO | None = field(default_factory=io.BytesIO)
    returncode: int | None = None
    wait_error: Exception | None = None
    _exited: threading.Event = field(default_factory=threading.Event)

    def exit(self, returncode: int) -> None:
        self.returncode = returncode
        self._exited.set()

    def wait(self, timeout: float | None = None) -> int:
        if self.wait_error is not None:
            raise self.wait_error
        _ = self._exited.wait(timeout)
        assert self.returncode is not None
        return self.returncode


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def make_child() -> type[FakeChild]:
    """Return the FakeChild class so tests can build children inline."""
    return FakeChild
