"""Configuration models.

This module provides the Pydantic models describing a health-check run:
what to supervise, how to notify on failure, and how to log.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from health_check.supervisor import SupervisorConfig


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
        max_bytes: Size of the log file in bytes before it is rotated.
        backup_count: Number of rotated log files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: str = ""
    max_bytes: int | None = Field(
        default=None,
        gt=0,
        description=(
            "Rotate the log file once it reaches this many bytes. "
            "Only applies to file logging, together with backup_count."
        ),
    )
    backup_count: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Number of rotated log files to keep "
            "(e.g., 3 for health-check.log.1 through health-check.log.3)."
        ),
    )


class NotificationConfig(BaseModel):
    """Failure notification settings.

    Attributes:
        slack_webhook: Slack incoming webhook URL.
        app_description: Human-readable application name.
        app_version: Application version or image reference.
        notification_context: Free text leading the notification.
        image_url: Optional image shown in the notification.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    slack_webhook: HttpUrl
    app_description: str
    app_version: str
    notification_context: str
    image_url: str | None = None


class HealthCheckConfig(BaseModel):
    """Complete settings of a health-check run.

    Attributes:
        command: Command and arguments of the child process.
        task_output_timeout: Seconds without output before the child is
            considered stuck, or None to disable detection.
        can_exit: Whether the child may exit successfully on its own.
        output_lines: Number of recent output lines kept for notifications.
        notification: Failure notification settings.
        logging: Logging settings.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    command: tuple[str, ...] = Field(min_length=1)
    task_output_timeout: float | None = Field(default=None, gt=0)
    can_exit: bool = False
    output_lines: int = Field(default=50, ge=0)
    notification: NotificationConfig
    logging: LoggingConfig = LoggingConfig()

    @field_validator("command")
    @classmethod
    def _program_not_blank(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value[0].strip():
            msg = "program name must not be blank"
            raise ValueError(msg)
        return value

    def supervisor_config(self) -> SupervisorConfig:
        """Return the settings the supervision engine needs."""
        return SupervisorConfig(
            command=self.command,
            task_output_timeout=self.task_output_timeout,
            can_exit=self.can_exit,
            output_lines=self.output_lines,
        )
