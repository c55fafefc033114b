"""Supervisor package for running and watching a single child process.

The supervisor launches a command, mirrors and records its output, watches
for output silence, relays termination signals, and decides from the first
worker event whether the run succeeded. Failed runs are handed to a
Notifier together with the most recent output.

Key Components:
    - SupervisorConfig: Configuration for a supervised run
    - Supervisor: Spawns workers and arbitrates the outcome
    - classify: Pure outcome classification for a resolving event
    - LineFramer: Bounded byte-to-line framing
    - RecentOutputLog, LastOutputTimestamp, KilledFlag: Shared worker state
    - EventChannel, EventSender: Worker-to-supervisor event funnel
    - OutputCapture, DeadlockDetector, SignalRelay, ChildWatcher: Workers
    - Notifier: Protocol for failure notification delivery

Example:
    >>> from health_check.supervisor import Supervisor, SupervisorConfig
    >>> config = SupervisorConfig(command=("my-indexer",), task_output_timeout=60)
    >>> result = Supervisor(config, notifier).run()  # Blocks until resolved
"""

from ._capture import OutputCapture
from ._channel import EventChannel, EventSender
from ._deadlock import DeadlockDetector
from ._framer import BUFFER_SIZE, LineFramer
from ._models import (
    ChildExited,
    DeadlockDetected,
    ErrorEvent,
    ExitStatus,
    Outcome,
    RunResult,
    StreamKind,
    SupervisorConfig,
    SupervisorEvent,
)
from ._protocol import ChildProcess, Notifier
from ._shared import KilledFlag, LastOutputTimestamp, RecentOutputLog
from ._signals import RELAYED_SIGNALS, SignalRelay
from ._supervisor import Supervisor, classify, spawn_child
from ._watcher import ChildWatcher

__all__ = [
    "BUFFER_SIZE",
    "RELAYED_SIGNALS",
    "ChildExited",
    "ChildProcess",
    "ChildWatcher",
    "DeadlockDetected",
    "DeadlockDetector",
    "ErrorEvent",
    "EventChannel",
    "EventSender",
    "ExitStatus",
    "KilledFlag",
    "LastOutputTimestamp",
    "LineFramer",
    "Notifier",
    "OutputCapture",
    "Outcome",
    "RecentOutputLog",
    "RunResult",
    "SignalRelay",
    "StreamKind",
    "Supervisor",
    "SupervisorConfig",
    "SupervisorEvent",
    "classify",
    "spawn_child",
]
