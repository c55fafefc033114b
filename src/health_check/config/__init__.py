"""health-check configuration.

Example:
    >>> from health_check.config import load_config
    >>> config = load_config(
    ...     command=("my-indexer",),
    ...     notification={
    ...         "slack_webhook": "https://hooks.slack.com/services/T/B/X",
    ...         "app_description": "Indexer",
    ...         "app_version": "ghcr.io/acme/indexer:1.2.3",
    ...         "notification_context": "Mainnet",
    ...     },
    ... )
    >>> config.output_lines
    50
"""

from health_check.exceptions import ConfigError

from ._load import load_config
from ._models import (
    HealthCheckConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NotificationConfig,
)

__all__ = [
    "ConfigError",
    "HealthCheckConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "NotificationConfig",
    "load_config",
]
