"""Unit tests for run classification and the Supervisor."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from health_check.supervisor import ChildProcess
    from tests.conftest import FakeChild, RecordingNotifier


class TestClassify:
    @pytest.mark.parametrize(
        ("returncode", "killed", "can_exit", "success"),
        [
            (0, False, False, False),
            (1, False, False, False),
            (-9, False, False, False),
            (0, False, True, True),
            (1, False, True, False),
            (-15, False, True, False),
            (0, True, False, True),
            (1, True, False, True),
            (-15, True, False, True),
            (2, True, True, True),
        ],
    )
    def test_child_exit(
        self, returncode: int, killed: bool, can_exit: bool, success: bool
    ) -> None:
        from health_check.supervisor import ChildExited, ExitStatus, classify

        result = classify(
            ChildExited(ExitStatus(returncode)),
            externally_killed=killed,
            can_exit=can_exit,
        )

        assert result.success is success
        assert result.status == ExitStatus(returncode)

    def test_unexpected_exit_cause(self) -> None:
        from health_check.exceptions import UnexpectedExitError
        from health_check.supervisor import ChildExited, ExitStatus, classify

        result = classify(
            ChildExited(ExitStatus(1)), externally_killed=False, can_exit=False
        )

        assert isinstance(result.cause, UnexpectedExitError)
        assert str(result.cause) == "Child exited with status exit status: 1"
        assert result.cause.status == ExitStatus(1)

    @pytest.mark.parametrize("killed", [True, False])
    @pytest.mark.parametrize("can_exit", [True, False])
    def test_deadlock_always_fails(self, killed: bool, can_exit: bool) -> None:
        from health_check.exceptions import DeadlockDetectedError
        from health_check.supervisor import DeadlockDetected, Outcome, classify

        result = classify(
            DeadlockDetected(30.0), externally_killed=killed, can_exit=can_exit
        )

        assert result.outcome == Outcome.FAILURE
        assert isinstance(result.cause, DeadlockDetectedError)
        assert result.cause.timeout == 30.0
        assert str(result.cause) == (
            "Potential deadlock detected, too long without output from child process"
        )

    @pytest.mark.parametrize("killed", [True, False])
    @pytest.mark.parametrize("can_exit", [True, False])
    def test_error_always_fails(self, killed: bool, can_exit: bool) -> None:
        from health_check.supervisor import ErrorEvent, Outcome, classify

        cause = OSError("broken pipe")
        result = classify(
            ErrorEvent(cause), externally_killed=killed, can_exit=can_exit
        )

        assert result.outcome == Outcome.FAILURE
        assert result.cause is cause
        assert result.status is None


def _spawner(child: ChildProcess) -> Callable[[Sequence[str]], ChildProcess]:
    def spawn(_command: Sequence[str]) -> ChildProcess:
        return child

    return spawn


class TestSupervisorRun:
    def test_unexpected_exit_is_notified_with_recent_output(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
    ) -> None:
        import io

        from health_check.exceptions import UnexpectedExitError
        from health_check.supervisor import Supervisor, SupervisorConfig

        child = make_child(
            stdout=io.BytesIO(b"starting\nworking\n"),
            stderr=io.BytesIO(b"warn: low disk"),
        )
        child.exit(1)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",)),
            notifier,
            logger=logger,
            spawn=_spawner(child),
        )

        result = supervisor.run()

        assert not result.success
        assert isinstance(result.cause, UnexpectedExitError)
        assert len(notifier.calls) == 1
        cause, output = notifier.calls[0]
        assert cause is result.cause
        assert sorted(output.splitlines()) == ["starting", "warn: low disk", "working"]

    def test_allowed_exit_is_success_without_notification(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
    ) -> None:
        from health_check.supervisor import ExitStatus, Supervisor, SupervisorConfig

        child = make_child()
        child.exit(0)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",), can_exit=True),
            notifier,
            logger=logger,
            spawn=_spawner(child),
        )

        result = supervisor.run()

        assert result.success
        assert result.status == ExitStatus(0)
        assert notifier.calls == []

    def test_silent_child_is_reported_as_deadlock(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
    ) -> None:
        from health_check.exceptions import DeadlockDetectedError
        from health_check.supervisor import Supervisor, SupervisorConfig

        child = make_child()
        supervisor = Supervisor(
            SupervisorConfig(
                command=("fake",), task_output_timeout=0.05, drain_timeout=0.1
            ),
            notifier,
            logger=logger,
            spawn=_spawner(child),
        )

        try:
            result = supervisor.run()
        finally:
            child.exit(0)

        assert isinstance(result.cause, DeadlockDetectedError)
        assert notifier.calls == [(result.cause, "")]

    def test_spawn_failure_is_notified(
        self, logger: FilteringBoundLogger, notifier: RecordingNotifier
    ) -> None:
        from health_check.exceptions import SpawnError
        from health_check.supervisor import Supervisor, SupervisorConfig

        error = SpawnError("Failed to spawn nope", command=("nope",))

        def spawn(_command: Sequence[str]) -> ChildProcess:
            raise error

        supervisor = Supervisor(
            SupervisorConfig(command=("nope",)), notifier, logger=logger, spawn=spawn
        )

        result = supervisor.run()

        assert not result.success
        assert result.cause is error
        assert notifier.calls == [(error, "")]
        assert supervisor.threads == {}

    def test_notifier_failure_does_not_change_outcome(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
    ) -> None:
        from health_check.exceptions import NotifyError, UnexpectedExitError
        from health_check.supervisor import Supervisor, SupervisorConfig

        notifier.error = NotifyError("Slack down", status_code=500)
        child = make_child()
        child.exit(4)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",)),
            notifier,
            logger=logger,
            spawn=_spawner(child),
        )

        result = supervisor.run()

        assert isinstance(result.cause, UnexpectedExitError)
        assert len(notifier.calls) == 1

    def test_runs_without_notifier(
        self, logger: FilteringBoundLogger, make_child: type[FakeChild]
    ) -> None:
        from health_check.supervisor import Supervisor, SupervisorConfig

        child = make_child()
        child.exit(1)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",)), logger=logger, spawn=_spawner(child)
        )

        assert not supervisor.run().success

    def test_starts_one_thread_per_worker(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
    ) -> None:
        from health_check.supervisor import Supervisor, SupervisorConfig

        child = make_child()
        child.exit(0)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",), task_output_timeout=60),
            logger=logger,
            spawn=_spawner(child),
        )

        _ = supervisor.run()

        assert set(supervisor.threads) == {
            "stdout",
            "stderr",
            "deadlock",
            "signals",
            "watcher",
        }
        assert all(t.daemon for t in supervisor.threads.values())
        assert supervisor.threads["watcher"].name == "health-check-watcher"

    def test_no_detector_without_timeout(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
    ) -> None:
        from health_check.supervisor import Supervisor, SupervisorConfig

        child = make_child()
        child.exit(0)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",)), logger=logger, spawn=_spawner(child)
        )

        _ = supervisor.run()

        assert "deadlock" not in supervisor.threads

    def test_restores_signal_handlers(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
    ) -> None:
        import signal

        from health_check.supervisor import Supervisor, SupervisorConfig

        before = signal.getsignal(signal.SIGTERM)
        child = make_child()
        child.exit(0)

        _ = Supervisor(
            SupervisorConfig(command=("fake",)), logger=logger, spawn=_spawner(child)
        ).run()

        assert signal.getsignal(signal.SIGTERM) == before

    def test_recent_output_respects_capacity(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
    ) -> None:
        import io

        from health_check.supervisor import Supervisor, SupervisorConfig

        lines = b"".join(f"line {i}\n".encode() for i in range(10))
        child = make_child(stdout=io.BytesIO(lines), stderr=None)
        child.exit(1)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",), output_lines=3),
            notifier,
            logger=logger,
            spawn=_spawner(child),
        )

        _ = supervisor.run()

        assert notifier.calls[0][1] == "line 7\nline 8\nline 9\n"


    def test_resolution_is_logged_with_event_type(
        self,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        from health_check.supervisor import Supervisor, SupervisorConfig
        from health_check.utils._logging import _create_logger

        child = make_child()
        child.exit(3)
        supervisor = Supervisor(
            SupervisorConfig(command=("fake",), can_exit=True),
            notifier,
            logger=_create_logger(log_format="json"),
            spawn=_spawner(child),
        )

        result = supervisor.run()

        assert not result.success
        assert notifier.calls == [(result.cause, "")]
        err = capsys.readouterr().err
        assert '"event": "run_resolved"' in err
        assert '"event_type": "ChildExited"' in err
        assert '"outcome": "failure"' in err

    def test_each_run_keeps_its_own_output_and_threads(
        self,
        logger: FilteringBoundLogger,
        make_child: type[FakeChild],
        notifier: RecordingNotifier,
    ) -> None:
        import io

        from health_check.supervisor import Supervisor, SupervisorConfig

        children = [
            make_child(stdout=io.BytesIO(b"first run\n"), stderr=None),
            make_child(stdout=io.BytesIO(b"second run\n"), stderr=None),
        ]
        for child in children:
            child.exit(1)
        remaining = iter(children)

        def spawn(_command: Sequence[str]) -> ChildProcess:
            return next(remaining)

        supervisor = Supervisor(
            SupervisorConfig(command=("fake",)), notifier, logger=logger, spawn=spawn
        )

        _ = supervisor.run()
        first_threads = dict(supervisor.threads)
        _ = supervisor.run()

        assert [output for _, output in notifier.calls] == [
            "first run\n",
            "second run\n",
        ]
        assert supervisor.threads["watcher"] is not first_threads["watcher"]


class TestSpawnChild:
    def test_missing_program_raises_spawn_error(self) -> None:
        from health_check.exceptions import SpawnError
        from health_check.supervisor import spawn_child

        with pytest.raises(SpawnError) as exc_info:
            _ = spawn_child(["/nonexistent/health-check-test-binary"])

        assert exc_info.value.command == ("/nonexistent/health-check-test-binary",)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
