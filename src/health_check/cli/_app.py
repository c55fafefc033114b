"""The command-line interface for health-check."""

from typing import Annotated, Literal

from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape

from health_check.config import ConfigError, load_config
from health_check.notify import AppDetail, SlackNotifier
from health_check.supervisor import Supervisor
from health_check.utils import create_logger

from ._shared import ExitCode, exit_with_error

LogLevelName = Literal["debug", "info", "warning", "error"]
LogFormatName = Literal["json", "text"]

HELP = "Run a process, watch its output, and raise an alert when it fails."


def _register(app: App, error_console: Console) -> None:
    @app.default
    def health_check(  # noqa: PLR0913  # pyright: ignore[reportUnusedFunction]
        command: Annotated[str, Parameter(help="Process to run")],
        *args: Annotated[
            str,
            Parameter(help="Arguments to the process", allow_leading_hyphen=True),
        ],
        task_output_timeout: Annotated[
            float | None,
            Parameter(help="Seconds to wait for output before killing the task"),
        ] = None,
        slack_webhook: Annotated[
            str,
            Parameter(
                help="Slack Webhook for notification",
                env_var="HEALTH_CHECK_SLACK_WEBHOOK",
            ),
        ],
        app_description: Annotated[str, Parameter(help="Application description")],
        app_version: Annotated[
            str,
            Parameter(help="Application version", env_var="HEALTH_CHECK_APP_VERSION"),
        ],
        notification_context: Annotated[
            str,
            Parameter(
                help="Notification Context",
                env_var="HEALTH_CHECK_NOTIFICATION_CONTEXT",
            ),
        ],
        image_url: Annotated[
            str | None,
            Parameter(
                help="Image url for notification message",
                env_var="HEALTH_CHECK_IMAGE_URL",
            ),
        ] = None,
        can_exit: Annotated[
            bool,
            Parameter(
                help="Is the child process allowed to exit on its own?",
                negative=(),
            ),
        ] = False,
        output_lines: Annotated[
            int,
            Parameter(
                help="How many lines of output should we store for error messages?",
                env_var="HEALTH_CHECK_OUTPUT_LINES",
            ),
        ] = 50,
        log_level: Annotated[
            LogLevelName,
            Parameter(help="Log level", env_var="HEALTH_CHECK_LOG_LEVEL"),
        ] = "info",
        log_format: Annotated[
            LogFormatName,
            Parameter(help="Log output format", env_var="HEALTH_CHECK_LOG_FORMAT"),
        ] = "text",
        log_file: Annotated[
            str,
            Parameter(
                help="Write logs to this file instead of stderr",
                env_var="HEALTH_CHECK_LOG_FILE",
            ),
        ] = "",
        log_max_bytes: Annotated[
            int | None,
            Parameter(
                help="Rotate the log file after this many bytes",
                env_var="HEALTH_CHECK_LOG_MAX_BYTES",
            ),
        ] = None,
        log_backup_count: Annotated[
            int | None,
            Parameter(
                help="Number of rotated log files to keep",
                env_var="HEALTH_CHECK_LOG_BACKUP_COUNT",
            ),
        ] = None,
    ) -> None:
        """Run COMMAND under supervision.

        Output of the child is mirrored to our own stdout and stderr. The run
        fails if the child exits on its own (unless --can-exit is given and it
        exits successfully), if it is silent for longer than
        --task-output-timeout, or if supervision itself breaks. Failures are
        posted to Slack together with the most recent output.
        """
        try:
            config = load_config(
                command=(command, *args),
                task_output_timeout=task_output_timeout,
                can_exit=can_exit,
                output_lines=output_lines,
                notification={
                    "slack_webhook": slack_webhook,
                    "app_description": app_description,
                    "app_version": app_version,
                    "notification_context": notification_context,
                    "image_url": image_url,
                },
                logging={
                    "level": log_level,
                    "format": log_format,
                    "file": log_file,
                    "max_bytes": log_max_bytes,
                    "backup_count": log_backup_count,
                },
            )
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)

        logger = create_logger(
            level=config.logging.level.value,
            log_format=config.logging.format.value,  # type: ignore[arg-type]
            log_file=config.logging.file,
            max_bytes=config.logging.max_bytes,
            backup_count=config.logging.backup_count,
            command=command,
        )
        notifier = SlackNotifier(
            str(config.notification.slack_webhook),
            AppDetail(
                message=config.notification.notification_context,
                description=config.notification.app_description,
                version=config.notification.app_version,
                image_url=config.notification.image_url,
            ),
        )

        result = Supervisor(config.supervisor_config(), notifier, logger=logger).run()

        if not result.success:
            exit_with_error(
                str(result.cause), ExitCode.FAILURE, console=error_console
            )
        error_console.print(
            escape(f"Child exited ({result.status}), treating as a success case")
        )


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the health-check application.

    Args:
        console: Console for regular output.
        error_console: Console for errors and the final verdict.
        exit_on_error: Whether parse errors exit the process.

    Returns:
        The configured cyclopts application.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="health-check",
        help=HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    _register(app, error_console)
    return app


def main() -> None:
    """Default entrypoint for the `health-check` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
