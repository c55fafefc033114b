"""Utilities shared across health-check."""

from ._logging import create_logger

__all__ = ["create_logger"]
