"""Configuration construction with error translation."""

from typing import Any

from pydantic import ValidationError

from health_check.exceptions import ConfigError

from ._models import HealthCheckConfig


def _format_location(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def load_config(**values: Any) -> HealthCheckConfig:  # noqa: ANN401
    """Validate raw settings into a HealthCheckConfig.

    Args:
        **values: Field values, with ``notification`` and ``logging`` given
            as nested mappings.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If any setting is invalid. The message lists every
            problem; ``key`` names the first one.
    """
    try:
        return HealthCheckConfig.model_validate(values)
    except ValidationError as e:
        errors = e.errors()
        problems = "; ".join(
            f"{_format_location(err['loc'])}: {err['msg']}" for err in errors
        )
        key = _format_location(errors[0]["loc"]) if errors else None
        msg = f"Invalid configuration: {problems}"
        raise ConfigError(msg, key=key) from e
